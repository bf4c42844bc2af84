from enum import Enum
from os import PathLike
from typing import Union

# Complete path type including strings and any path-like object
PathType = Union[str, PathLike[str]]


class NodeKind(Enum):
    """Enumeration of entry kinds produced while walking a directory handle.

    Attributes:
        FILE: Regular file with readable bytes
        DIRECTORY: Directory whose children can be enumerated
    """

    FILE = "file"
    DIRECTORY = "directory"
