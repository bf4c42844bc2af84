"""Manual deselection state layered on top of the pattern-filtered tree."""

from typing import FrozenSet, Iterable, NamedTuple, Optional, Set

from anytree import PreOrderIter

from zipdrop.exclusion_rules.manual_rules import ManualExclusionRules
from zipdrop.file_system_tree.tree_node import TreeNode


class SelectionStats(NamedTuple):
    """Counts of what is currently selected for archiving.

    Attributes:
        files (int): Number of selected files.
        folders (int): Number of selected directories, the root included.
        bytes (int): Summed scan-time size of the selected files.
    """

    files: int
    folders: int
    bytes: int


def collect_paths(node: TreeNode) -> Set[str]:
    """Collect the relative paths of ``node`` and every node below it.

    Example:
        >>> from zipdrop.types import NodeKind
        >>> docs = TreeNode("docs", relative_path="docs", kind=NodeKind.DIRECTORY)
        >>> _ = TreeNode("a.md", parent=docs, relative_path="docs/a.md", size_bytes=1)
        >>> sorted(collect_paths(docs))
        ['docs', 'docs/a.md']
    """
    return {descendant.relative_path for descendant in PreOrderIter(node)}


def compute_stats(tree: Optional[TreeNode], excluded_paths: FrozenSet[str]) -> SelectionStats:
    """Count the selected files, folders and bytes of ``tree``.

    The walk is top-down: a node whose path is excluded is skipped together with
    its whole subtree, even if some descendant path is not in the set.

    Args:
        tree: Root of the tree, or None for an empty selection.
        excluded_paths: Paths deselected by the user.

    Returns:
        The selection totals.
    """
    if tree is None:
        return SelectionStats(0, 0, 0)

    files = folders = total_bytes = 0
    for node in PreOrderIter(tree, stop=lambda n: n.relative_path in excluded_paths):
        if node.is_dir:
            folders += 1
        else:
            files += 1
            total_bytes += node.size_bytes or 0

    return SelectionStats(files, folders, total_bytes)


class SelectionState:
    """Immutable set of manually deselected paths.

    Every operation returns a new SelectionState; the underlying frozenset is
    never mutated, so a set handed to a running build cannot change under it.

    Example:
        >>> from zipdrop.file_system_tree.memory_handle import InMemoryDirectoryHandle
        >>> from zipdrop.file_system_tree.tree_builder import build_tree
        >>> tree = build_tree(InMemoryDirectoryHandle("p", {"docs": {"a.md": "aa"}, "b.txt": "b"}))
        >>> state = SelectionState().toggle(tree.children[0])
        >>> sorted(state.excluded_paths)
        ['docs', 'docs/a.md']
        >>> state.stats(tree)
        SelectionStats(files=1, folders=1, bytes=1)
    """

    def __init__(self, excluded_paths: Iterable[str] = ()) -> None:
        self._excluded_paths: FrozenSet[str] = frozenset(excluded_paths)

    @property
    def excluded_paths(self) -> FrozenSet[str]:
        return self._excluded_paths

    def is_excluded(self, path: str) -> bool:
        return path in self._excluded_paths

    def toggle(self, node: TreeNode) -> "SelectionState":
        """Flip the selection of ``node`` and its whole subtree.

        If the node itself is currently excluded, every path of its subtree is
        re-included; otherwise every path of its subtree is excluded. Descendants
        follow the node even if they were toggled individually before.

        Args:
            node: Node of the current tree.

        Returns:
            A new SelectionState.
        """
        subtree_paths = collect_paths(node)
        if node.relative_path in self._excluded_paths:
            return SelectionState(self._excluded_paths - subtree_paths)
        return SelectionState(self._excluded_paths | subtree_paths)

    def select_all(self) -> "SelectionState":
        return SelectionState()

    def deselect_all(self, tree: Optional[TreeNode]) -> "SelectionState":
        """Exclude every path of ``tree``, the root included."""
        if tree is None:
            return SelectionState()
        return SelectionState(collect_paths(tree))

    def stats(self, tree: Optional[TreeNode]) -> SelectionStats:
        return compute_stats(tree, self._excluded_paths)

    def prune(self, tree: Optional[TreeNode]) -> "SelectionState":
        """Drop excluded paths that no longer name a node of ``tree``.

        Used after a rebuild so that paths removed by a pattern change do not
        linger in the set and resurface as deselected if they reappear later.
        """
        if tree is None:
            return SelectionState()
        return SelectionState(self._excluded_paths & collect_paths(tree))

    def as_exclusion_rules(self) -> ManualExclusionRules:
        return ManualExclusionRules(self._excluded_paths)

    def __len__(self) -> int:
        return len(self._excluded_paths)

    def __repr__(self) -> str:
        return f"SelectionState({sorted(self._excluded_paths)!r})"
