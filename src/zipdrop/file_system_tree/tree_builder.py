"""Recursive walk of a directory handle into a pruned TreeNode tree.

Both functions here check exclusion BEFORE descending, so an excluded directory
is never enumerated. That keeps the cost of walking dependency-heavy folders
(node_modules, virtual environments) proportional to what survives.

Errors raised by the handles are not caught: a failure anywhere aborts the walk.
"""

import logging
from typing import Iterator, Optional, Tuple

from zipdrop.exclusion_rules.base_rules import BaseExclusionRules
from zipdrop.file_system_tree.handles import DirectoryHandle, FileHandle
from zipdrop.file_system_tree.tree_node import TreeNode
from zipdrop.types import NodeKind

logger = logging.getLogger(__name__)


def join_relative_path(parent_path: str, name: str) -> str:
    """Join a relative parent path and an entry name with a forward slash.

    Example:
        >>> join_relative_path("", "src")
        'src'
        >>> join_relative_path("src", "main.py")
        'src/main.py'
    """
    return f"{parent_path}/{name}" if parent_path else name


def build_tree(root: DirectoryHandle, exclusion_rules: Optional[BaseExclusionRules] = None) -> Optional[TreeNode]:
    """Build the tree of entries under ``root`` that survive exclusion.

    File sizes are read eagerly, file contents never. A directory is only
    materialized if at least one file survives somewhere below it; when nothing
    survives at all the root collapses and None is returned.

    Args:
        root: Handle of the picked root folder.
        exclusion_rules: Rules deciding which relative paths to skip. None keeps
            everything.

    Returns:
        The root TreeNode, or None if no file survives.

    Raises:
        OSError: If any directory or file cannot be accessed.

    Example:
        >>> from zipdrop.exclusion_rules.pattern_rules import PatternExclusionRules
        >>> from zipdrop.file_system_tree.memory_handle import InMemoryDirectoryHandle
        >>> root = InMemoryDirectoryHandle("X", {"a.log": "0123456789", "b.txt": "x" * 20})
        >>> tree = build_tree(root, PatternExclusionRules(["*.log"]))
        >>> [(child.name, child.size_bytes) for child in tree.children]
        [('b.txt', 20)]
    """
    logger.debug("Building tree for %s", root.name)
    node = _create_directory_node(root, "", exclusion_rules)
    if node is not None:
        node.name = root.name
    return node


def _create_directory_node(
    handle: DirectoryHandle,
    relative_path: str,
    exclusion_rules: Optional[BaseExclusionRules],
) -> Optional[TreeNode]:
    """Recursively create a directory node and its surviving children."""
    node = TreeNode(handle.name, relative_path=relative_path, kind=NodeKind.DIRECTORY)

    for entry in handle.iter_entries():
        child_path = join_relative_path(relative_path, entry.name)
        is_dir = entry.kind is NodeKind.DIRECTORY

        if exclusion_rules is not None and exclusion_rules.exclude(child_path, is_dir=is_dir):
            logger.debug("Excluded %s", child_path)
            continue

        if isinstance(entry, DirectoryHandle):
            child = _create_directory_node(entry, child_path, exclusion_rules)
            if child is None:
                # Nothing survived below this directory
                continue
            child.parent = node
        else:
            TreeNode(entry.name, parent=node, relative_path=child_path, kind=NodeKind.FILE, size_bytes=entry.size)

    return node if node.children else None


def iter_included_files(
    root: DirectoryHandle,
    exclusion_rules: Optional[BaseExclusionRules] = None,
    relative_path: str = "",
) -> Iterator[Tuple[str, FileHandle]]:
    """Walk ``root`` depth-first and yield every file that survives exclusion.

    Entries are visited in the order the handles enumerate them. Directories
    produce no output of their own.

    Args:
        root: Directory handle to walk.
        exclusion_rules: Rules deciding which relative paths to skip.
        relative_path: Path of ``root`` relative to the picked root folder.

    Yields:
        Pairs of (relative_path, file_handle).

    Raises:
        OSError: If any directory cannot be enumerated.
    """
    for entry in root.iter_entries():
        child_path = join_relative_path(relative_path, entry.name)
        is_dir = entry.kind is NodeKind.DIRECTORY

        if exclusion_rules is not None and exclusion_rules.exclude(child_path, is_dir=is_dir):
            continue

        if isinstance(entry, DirectoryHandle):
            yield from iter_included_files(entry, exclusion_rules, child_path)
        else:
            yield child_path, entry
