"""Node representation for entries surviving pattern exclusion."""

from typing import Any, Optional

from anytree import Node

from zipdrop.types import NodeKind


class TreeNode(Node):  # type: ignore
    """Node class representing a file or directory in the materialized tree.

    Extends anytree.Node with the entry's path relative to the picked root, its
    kind and, for files, its byte size at scan time. Inherits tree traversal and
    manipulation capabilities from anytree.Node.

    Attributes:
        name (str): Final path segment, used as the display label. For the root
            node this is the picked folder's name.
        relative_path (str): Slash-joined path from the picked root. The root
            node's relative path is the empty string.
        kind (NodeKind): FILE or DIRECTORY.
        size_bytes (Optional[int]): Byte length for files, None for directories.
        children (tuple[TreeNode]): The child nodes (inherited from anytree.Node).

    Example:
        >>> root = TreeNode("project", kind=NodeKind.DIRECTORY)
        >>> readme = TreeNode("README.md", parent=root, relative_path="README.md", size_bytes=12)
        >>> readme.is_dir
        False
        >>> root.children[0].relative_path
        'README.md'
    """

    def __init__(
        self,
        name: str,
        parent: Optional["TreeNode"] = None,
        relative_path: str = "",
        kind: NodeKind = NodeKind.FILE,
        size_bytes: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, parent, **kwargs)
        self.relative_path = relative_path
        self.kind = kind
        self.size_bytes = size_bytes if kind is NodeKind.FILE else None

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY
