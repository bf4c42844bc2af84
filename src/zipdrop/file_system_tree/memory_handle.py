"""Directory and file handles backed by in-memory data."""

from typing import Iterator, List, Mapping, Optional, Union

from zipdrop.file_system_tree.handles import DirectoryHandle, EntryHandle, FileHandle

# A file is given as its content; a directory as a nested mapping
EntrySpec = Union[bytes, str, Mapping[str, "EntrySpec"]]


class InMemoryFileHandle(FileHandle):
    """File handle holding its content in memory.

    String content is stored UTF-8 encoded.

    Example:
        >>> handle = InMemoryFileHandle("a.txt", "hello")
        >>> handle.size
        5
        >>> handle.read_bytes()
        b'hello'
    """

    def __init__(self, name: str, content: Union[bytes, str] = b"", last_modified: Optional[float] = None) -> None:
        self._name = name
        self._content = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        self._last_modified = last_modified

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return len(self._content)

    @property
    def last_modified(self) -> Optional[float]:
        return self._last_modified

    def read_bytes(self) -> bytes:
        return self._content


class InMemoryDirectoryHandle(DirectoryHandle):
    """Directory handle whose children are built from a nested mapping.

    Children are enumerated in mapping insertion order, which lets callers model
    hosts that do not enumerate in sorted order.

    Example:
        >>> root = InMemoryDirectoryHandle("project", {
        ...     "src": {"main.py": "print('hi')"},
        ...     "README.md": "# Project",
        ... })
        >>> [entry.name for entry in root.iter_entries()]
        ['src', 'README.md']
    """

    def __init__(
        self,
        name: str,
        entries: Optional[Mapping[str, EntrySpec]] = None,
        last_modified: Optional[float] = None,
    ) -> None:
        """Initialize an InMemoryDirectoryHandle.

        Args:
            name: Directory name.
            entries: Mapping of child names to file content (bytes or str) or to a
                nested mapping for a subdirectory.
            last_modified: Modification time applied to every file in the tree.
        """
        self._name = name
        self._children: List[EntryHandle] = []

        for child_name, spec in (entries or {}).items():
            if isinstance(spec, Mapping):
                self._children.append(InMemoryDirectoryHandle(child_name, spec, last_modified))
            else:
                self._children.append(InMemoryFileHandle(child_name, spec, last_modified))

    @property
    def name(self) -> str:
        return self._name

    def iter_entries(self) -> Iterator[EntryHandle]:
        return iter(list(self._children))
