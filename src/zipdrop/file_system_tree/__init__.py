"""Directory handles and the materialized tree built from them.

This package provides the handle interface the traversal pipeline walks, adapters
for local folders and in-memory trees, and the tree builder with its
FileSystemTree wrapper.
"""

from .file_system_tree import FileSystemTree
from .handles import DirectoryHandle, EntryHandle, FileHandle
from .local_handle import LocalDirectoryHandle, LocalFileHandle
from .memory_handle import InMemoryDirectoryHandle, InMemoryFileHandle
from .tree_builder import build_tree, iter_included_files
from .tree_node import TreeNode

__all__ = [
    "DirectoryHandle",
    "EntryHandle",
    "FileHandle",
    "FileSystemTree",
    "InMemoryDirectoryHandle",
    "InMemoryFileHandle",
    "LocalDirectoryHandle",
    "LocalFileHandle",
    "TreeNode",
    "build_tree",
    "iter_included_files",
]
