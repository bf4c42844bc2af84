"""Capability interface for directory and file handles.

The traversal pipeline never touches the host file system directly. It walks
objects implementing these two small interfaces, so the same tree builder and
archive assembler work for a folder on disk, an in-memory tree, or any other
host that can enumerate children and read bytes.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Union

from zipdrop.types import NodeKind


class FileHandle(ABC):
    """A readable file entry.

    Attributes:
        kind (NodeKind): Always NodeKind.FILE.
    """

    kind = NodeKind.FILE

    @property
    @abstractmethod
    def name(self) -> str:
        """Final path segment of the file."""
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        """Current byte length of the file."""
        pass

    @property
    def last_modified(self) -> Optional[float]:
        """Modification time as a POSIX timestamp, or None if the host has none."""
        return None

    @abstractmethod
    def read_bytes(self) -> bytes:
        """Read the complete file content.

        Raises:
            OSError: If the content cannot be read.
        """
        pass


class DirectoryHandle(ABC):
    """An enumerable directory entry.

    Attributes:
        kind (NodeKind): Always NodeKind.DIRECTORY.
    """

    kind = NodeKind.DIRECTORY

    @property
    @abstractmethod
    def name(self) -> str:
        """Final path segment of the directory."""
        pass

    @abstractmethod
    def iter_entries(self) -> Iterator["EntryHandle"]:
        """Yield the direct children of this directory.

        Children are yielded in the order the host enumerates them. Each child is
        either a DirectoryHandle or a FileHandle; callers dispatch on ``kind``.

        Raises:
            OSError: If the directory cannot be enumerated.
        """
        pass


EntryHandle = Union[DirectoryHandle, FileHandle]
