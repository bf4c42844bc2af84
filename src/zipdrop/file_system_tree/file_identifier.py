"""File identifier for uniquely identifying directories by device and inode."""

import os
from typing import NamedTuple

from zipdrop.types import PathType


class FileIdentifier(NamedTuple):
    """Device and inode pair that uniquely identifies a file or directory.

    Used to detect symlink loops while walking a local folder with symlink
    following enabled: a directory whose identifier is already among its
    ancestors is a loop and is not entered again.

    Attributes:
        device_id (int): The device ID from stat information.
        inode_number (int): The inode number from stat information.

    Note:
        On Windows, inode numbers are synthesized by Python's os.stat, but they
        are still stable enough for loop detection.
    """

    device_id: int
    inode_number: int

    @classmethod
    def from_path(cls, path: PathType) -> "FileIdentifier":
        """Build an identifier from the stat information of ``path``.

        Symlinks are followed, so a link and its target share an identifier.

        Raises:
            OSError: If the path cannot be stat'ed.
        """
        stat_info = os.stat(path)
        return cls(stat_info.st_dev, stat_info.st_ino)
