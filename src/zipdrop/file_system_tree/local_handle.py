"""Directory and file handles for folders on the local disk."""

import logging
import os
from pathlib import Path
from typing import FrozenSet, Iterator, Optional

from zipdrop.file_system_tree.file_identifier import FileIdentifier
from zipdrop.file_system_tree.handles import DirectoryHandle, EntryHandle, FileHandle
from zipdrop.types import PathType

logger = logging.getLogger(__name__)


class LocalFileHandle(FileHandle):
    """File handle for a regular file on disk.

    Size and modification time are read from the file system on every access,
    so a handle always reports the current state of the file.
    """

    def __init__(self, path: PathType) -> None:
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    @property
    def last_modified(self) -> Optional[float]:
        return self.path.stat().st_mtime

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def __repr__(self) -> str:
        return f"LocalFileHandle({str(self.path)!r})"


class LocalDirectoryHandle(DirectoryHandle):
    """Directory handle for a folder on disk.

    Children are enumerated in sorted name order, which makes traversal order and
    therefore archive entry order reproducible across runs.

    Symbolic Link Behavior:
        By default, symbolic links are not enumerated at all. With
        ``follow_symlinks=True`` they are enumerated as the file or directory they
        point to; a directory link that points back at one of its own ancestors is
        skipped to prevent infinite recursion. Dangling links and special files
        (sockets, FIFOs, devices) are always skipped.

    Attributes:
        path (Path): The directory on disk.
        follow_symlinks (bool): Whether symbolic links are followed.

    Example:
        >>> handle = LocalDirectoryHandle("src")  # doctest: +SKIP
        >>> [entry.name for entry in handle.iter_entries()]  # doctest: +SKIP
        ['main.py', 'utils']
    """

    def __init__(
        self,
        path: PathType,
        follow_symlinks: bool = False,
        _ancestors: Optional[FrozenSet[FileIdentifier]] = None,
    ) -> None:
        """Initialize a LocalDirectoryHandle.

        Args:
            path: Directory to expose. Can be any path-like object.
            follow_symlinks: Whether to follow symbolic links during enumeration.
                Defaults to False.

        Raises:
            FileNotFoundError: If the path doesn't exist.
            NotADirectoryError: If the path isn't a directory.
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"Root path does not exist: {self.path}")
        if not self.path.is_dir():
            raise NotADirectoryError(f"Root path is not a directory: {self.path}")

        self.follow_symlinks = follow_symlinks
        self._ancestors: FrozenSet[FileIdentifier] = _ancestors if _ancestors is not None else frozenset()
        # The picked root may be given as "." or ".."; use the real directory name
        self._name = self.path.name if _ancestors is not None else self.path.resolve().name

    @property
    def name(self) -> str:
        return self._name

    def iter_entries(self) -> Iterator[EntryHandle]:
        ancestors = self._ancestors | {FileIdentifier.from_path(self.path)}

        for child_name in sorted(os.listdir(self.path)):
            child_path = self.path / child_name

            if child_path.is_symlink():
                if not self.follow_symlinks:
                    logger.debug("Skipping symlink %s", child_path)
                    continue
                if child_path.is_dir() and FileIdentifier.from_path(child_path) in ancestors:
                    logger.debug("Skipping symlink loop %s", child_path)
                    continue

            if child_path.is_dir():
                yield LocalDirectoryHandle(child_path, self.follow_symlinks, _ancestors=ancestors)
            elif child_path.is_file():
                yield LocalFileHandle(child_path)
            else:
                logger.debug("Skipping special or dangling entry %s", child_path)

    def __repr__(self) -> str:
        return f"LocalDirectoryHandle({str(self.path)!r})"
