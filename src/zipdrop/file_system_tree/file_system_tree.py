"""Materialized tree of a picked folder with configurable exclusion rules.

This module provides the FileSystemTree class, which wraps the tree builder with
lazy construction, counting, lookup by relative path and a text rendering used
for previewing what an archive will contain.
"""

from typing import AbstractSet, Dict, Iterator, Optional

from anytree import PreOrderIter

from zipdrop.exclusion_rules.base_rules import BaseExclusionRules
from zipdrop.file_system_tree.handles import DirectoryHandle
from zipdrop.file_system_tree.tree_builder import build_tree
from zipdrop.file_system_tree.tree_node import TreeNode
from zipdrop.sizes import format_size

SELECTED_MARK = "[x]"
DESELECTED_MARK = "[ ]"


class FileSystemTree:
    """A tree representation of a picked folder with support for exclusion rules.

    The tree is built lazily on first access and can be refreshed to reflect
    changes on the host. It contains only entries that survive the exclusion
    rules, and only directories with at least one surviving file; when nothing
    survives, ``get_tree()`` returns None.

    Attributes:
        root (DirectoryHandle): Handle of the picked root folder.
        exclusion_rules (Optional[BaseExclusionRules]): Rules for excluding entries.

    Example:
        >>> from zipdrop.file_system_tree.memory_handle import InMemoryDirectoryHandle
        >>> root = InMemoryDirectoryHandle("project", {
        ...     "src": {"main.py": "print('hi')"},
        ...     "README.md": "# Project",
        ... })
        >>> tree = FileSystemTree(root)
        >>> print(tree.get_tree_representation())
        project/
        ├── [x] src/
        │   └── [x] main.py (11 bytes)
        └── [x] README.md (9 bytes)
    """

    def __init__(self, root: DirectoryHandle, exclusion_rules: Optional[BaseExclusionRules] = None) -> None:
        """Initialize a FileSystemTree.

        Args:
            root: Handle of the folder to represent.
            exclusion_rules: Rules for excluding files and directories. Defaults to None.
        """
        self.root = root
        self.exclusion_rules = exclusion_rules
        self._built = False
        self._tree: Optional[TreeNode] = None
        self._index: Dict[str, TreeNode] = {}
        self._file_count: int = 0
        self._directory_count: int = 0
        self._total_size: int = 0

    def get_tree(self) -> Optional[TreeNode]:
        """Get the root node of the tree, building it on first access.

        Returns:
            The root node, or None if no file survives the exclusion rules.

        Raises:
            OSError: If any entry cannot be accessed while building.
        """
        if not self._built:
            self._build_tree()
        return self._tree

    def _build_tree(self) -> None:
        self._tree = build_tree(self.root, self.exclusion_rules)
        self._built = True
        self._index_tree()

    def _index_tree(self) -> None:
        """Index nodes by relative path and count files, directories and bytes.

        The root directory is included in the directory count.
        """
        self._index = {}
        self._file_count = 0
        self._directory_count = 0
        self._total_size = 0

        if self._tree is None:
            return

        for node in PreOrderIter(self._tree):
            self._index[node.relative_path] = node
            if node.is_dir:
                self._directory_count += 1
            else:
                self._file_count += 1
                self._total_size += node.size_bytes or 0

    def get_file_count(self) -> int:
        """Get the number of files that survived the exclusion rules."""
        self.get_tree()
        return self._file_count

    def get_directory_count(self) -> int:
        """Get the number of directories in the tree, the root included."""
        self.get_tree()
        return self._directory_count

    def get_total_size(self) -> int:
        """Get the summed scan-time size of every file in the tree."""
        self.get_tree()
        return self._total_size

    def find_node(self, relative_path: str) -> Optional[TreeNode]:
        """Look up a node by its path relative to the root.

        Args:
            relative_path: Slash-separated path; ``""`` names the root. Leading and
                trailing slashes are ignored.

        Returns:
            The node, or None if no such node exists in the tree.

        Example:
            >>> from zipdrop.file_system_tree.memory_handle import InMemoryDirectoryHandle
            >>> tree = FileSystemTree(InMemoryDirectoryHandle("p", {"src": {"a.py": "x"}}))
            >>> tree.find_node("src/a.py").size_bytes
            1
            >>> tree.find_node("missing") is None
            True
        """
        self.get_tree()
        return self._index.get(relative_path.strip("/"))

    def stream_tree_representation(self, excluded_paths: AbstractSet[str] = frozenset()) -> Iterator[str]:
        """Generate a tree representation of the folder one line at a time.

        Output resembles the Unix ``tree`` command. Children are listed with
        directories first, then by name ignoring case. Every non-root entry carries
        a selection mark, ``[ ]`` if its path is in ``excluded_paths`` and ``[x]``
        otherwise, and every file shows its size.

        Args:
            excluded_paths: Paths deselected by the user.

        Yields:
            Lines of the tree representation, including the connecting lines.
        """
        tree = self.get_tree()
        if tree is None:
            return

        def write_node(node: TreeNode, prefix: str = "", is_last: bool = True, is_root: bool = False) -> Iterator[str]:
            if is_root:
                yield f"{node.name}/"
            else:
                connector = "└── " if is_last else "├── "
                mark = DESELECTED_MARK if node.relative_path in excluded_paths else SELECTED_MARK
                if node.is_dir:
                    label = f"{node.name}/"
                else:
                    label = f"{node.name} ({format_size(node.size_bytes or 0)})"
                yield f"{prefix}{connector}{mark} {label}"

            if node.is_dir:
                sorted_children = sorted(node.children, key=lambda n: (not n.is_dir, n.name.lower()))

                for i, child in enumerate(sorted_children):
                    is_last_child = i == len(sorted_children) - 1
                    if is_root:
                        new_prefix = ""
                    else:
                        new_prefix = prefix + ("    " if is_last else "│   ")
                    yield from write_node(child, new_prefix, is_last_child)

        yield from write_node(tree, is_root=True)

    def get_tree_representation(self, excluded_paths: AbstractSet[str] = frozenset()) -> str:
        """Get the complete tree representation as a single string."""
        return "\n".join(self.stream_tree_representation(excluded_paths))

    def refresh(self) -> None:
        """Rebuild the tree to reflect the current state of the host.

        Raises:
            OSError: If any entry cannot be accessed while rebuilding.
        """
        self._built = False
        self._tree = None
        self._build_tree()
