"""In-memory ZIP codec built on the standard zipfile module."""

import io
import logging
import time
import zipfile
from typing import Optional, Tuple

from zipdrop.exceptions import ArchiveCodecError

logger = logging.getLogger(__name__)

DateTime = Tuple[int, int, int, int, int, int]

# Earliest and latest timestamps the ZIP format can store
ZIP_EPOCH: DateTime = (1980, 1, 1, 0, 0, 0)
ZIP_MAX_DATE_TIME: DateTime = (2107, 12, 31, 23, 59, 58)

DEFAULT_COMPRESSLEVEL = 9


def zip_date_time(timestamp: Optional[float]) -> DateTime:
    """Convert a POSIX timestamp to a ZIP entry timestamp in local time.

    Timestamps outside the range the ZIP format can represent are clamped to it.
    A missing timestamp maps to the ZIP epoch.

    Example:
        >>> zip_date_time(None)
        (1980, 1, 1, 0, 0, 0)
        >>> zip_date_time(0.0)  # 1970 is before the ZIP epoch
        (1980, 1, 1, 0, 0, 0)
    """
    if timestamp is None:
        return ZIP_EPOCH
    try:
        date_time: DateTime = tuple(time.localtime(timestamp)[:6])  # type: ignore
    except (OverflowError, OSError, ValueError):
        return ZIP_EPOCH
    return min(max(date_time, ZIP_EPOCH), ZIP_MAX_DATE_TIME)


class ZipArchiveCodec:
    """Accumulate entries in memory and serialize them as a DEFLATE ZIP archive.

    Entries are stored in the order they are added. ``finalize()`` can be called
    more than once: entries added after a finalize are appended to the archive
    produced so far, which is how the manifest ends up after the file entries.

    Attributes:
        compresslevel (int): DEFLATE level, 0 to 9.

    Example:
        >>> codec = ZipArchiveCodec()
        >>> codec.add_entry("hello.txt", b"hello world")
        >>> first = codec.finalize()
        >>> codec.add_entry("notes.txt", b"more")
        >>> len(codec.finalize()) > len(first)
        True
    """

    def __init__(self, compresslevel: int = DEFAULT_COMPRESSLEVEL) -> None:
        self.compresslevel = compresslevel
        self._buffer = io.BytesIO()
        self._zip: Optional[zipfile.ZipFile] = None
        self._entry_count = 0

    @property
    def entry_count(self) -> int:
        return self._entry_count

    def _open(self) -> zipfile.ZipFile:
        if self._zip is None:
            # Reopen a finalized archive in append mode to keep earlier entries
            mode = "a" if self._buffer.getbuffer().nbytes else "w"
            try:
                self._zip = zipfile.ZipFile(
                    self._buffer, mode, compression=zipfile.ZIP_DEFLATED, compresslevel=self.compresslevel
                )
            except (zipfile.BadZipFile, ValueError) as e:
                raise ArchiveCodecError(f"Failed to open archive: {e}") from e
        return self._zip

    def add_entry(self, path: str, data: bytes, date_time: Optional[DateTime] = None) -> None:
        """Add one file entry.

        Args:
            path: Slash-separated path of the entry inside the archive.
            data: Complete file content.
            date_time: Entry timestamp as a 6-tuple. Defaults to the ZIP epoch.

        Raises:
            ArchiveCodecError: If the entry cannot be written.
        """
        archive = self._open()
        info = zipfile.ZipInfo(path, date_time=date_time or ZIP_EPOCH)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
        try:
            archive.writestr(info, data, compresslevel=self.compresslevel)
        except (zipfile.LargeZipFile, ValueError, RuntimeError) as e:
            raise ArchiveCodecError(f"Failed to add {path!r} to archive: {e}") from e
        self._entry_count += 1

    def finalize(self) -> bytes:
        """Write the central directory and return the complete archive bytes.

        Raises:
            ArchiveCodecError: If the archive cannot be finalized.
        """
        archive = self._open()
        try:
            archive.close()
        except (zipfile.LargeZipFile, ValueError) as e:
            raise ArchiveCodecError(f"Failed to finalize archive: {e}") from e
        finally:
            self._zip = None
        return self._buffer.getvalue()

    def close(self) -> None:
        """Release an archive that was opened for writing and never finalized.

        Used when a build is aborted. Does nothing after ``finalize()``.
        """
        if self._zip is None:
            return
        archive, self._zip = self._zip, None
        try:
            archive.close()
        except (zipfile.LargeZipFile, ValueError, OSError) as e:
            logger.debug("Discarding unfinished archive: %s", e)
