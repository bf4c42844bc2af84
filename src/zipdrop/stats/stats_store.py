"""Local usage statistics and recent archive history."""

import logging
import secrets
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from zipdrop.sizes import compression_ratio
from zipdrop.storage import KeyValueStore

logger = logging.getLogger(__name__)

STATS_KEY = "zipdrop:stats"
HISTORY_KEY = "zipdrop:history"
MAX_HISTORY_ITEMS = 50


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _iso_now() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class ZipStats:
    """Running totals across every archive created.

    Stored under camelCase keys, e.g. ``totalZipsCreated``.
    """

    total_zips_created: int = 0
    total_files_zipped: int = 0
    total_raw_size_bytes: int = 0
    total_zipped_size_bytes: int = 0
    first_used_at: Optional[str] = None
    last_used_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {_to_camel(key): value for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ZipStats":
        return cls(
            total_zips_created=int(data.get("totalZipsCreated", 0)),
            total_files_zipped=int(data.get("totalFilesZipped", 0)),
            total_raw_size_bytes=int(data.get("totalRawSizeBytes", 0)),
            total_zipped_size_bytes=int(data.get("totalZippedSizeBytes", 0)),
            first_used_at=data.get("firstUsedAt"),
            last_used_at=data.get("lastUsedAt"),
        )


@dataclass(frozen=True)
class ZipHistoryItem:
    """One archive in the recent history."""

    id: str
    timestamp: str
    folder_name: str
    files_count: int
    raw_size_bytes: int
    zipped_size_bytes: int
    compression_ratio: float

    def to_dict(self) -> Dict[str, Any]:
        return {_to_camel(key): value for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ZipHistoryItem":
        return cls(
            id=str(data["id"]),
            timestamp=str(data["timestamp"]),
            folder_name=str(data["folderName"]),
            files_count=int(data["filesCount"]),
            raw_size_bytes=int(data["rawSizeBytes"]),
            zipped_size_bytes=int(data["zippedSizeBytes"]),
            compression_ratio=float(data["compressionRatio"]),
        )


class StatsStore:
    """Record completed archives in a key-value store.

    Totals and history are kept under separate keys. History is newest first and
    capped at MAX_HISTORY_ITEMS entries. Values that cannot be parsed are logged and
    treated as empty.

    Example:
        >>> from zipdrop.storage import MemoryStore
        >>> stats = StatsStore(MemoryStore())
        >>> _ = stats.record_zip_creation("project", files_count=3, raw_size_bytes=300, zipped_size_bytes=210)
        >>> stats.get_stats().total_zips_created
        1
        >>> stats.total_saved()
        90
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get_stats(self) -> ZipStats:
        value = self.store.get(STATS_KEY)
        if value is None:
            return ZipStats()
        try:
            return ZipStats.from_dict(value)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Ignoring unreadable statistics: %s", e)
            return ZipStats()

    def get_history(self) -> List[ZipHistoryItem]:
        value = self.store.get(HISTORY_KEY)
        if value is None:
            return []
        try:
            return [ZipHistoryItem.from_dict(item) for item in value]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring unreadable history: %s", e)
            return []

    def record_zip_creation(
        self,
        folder_name: str,
        files_count: int,
        raw_size_bytes: int,
        zipped_size_bytes: int,
    ) -> ZipHistoryItem:
        """Add one archive to the totals and prepend it to the history.

        Args:
            folder_name: Name of the archived folder.
            files_count: Number of files in the archive.
            raw_size_bytes: Total size of the archived files.
            zipped_size_bytes: Size of the archive before its manifest was added.

        Returns:
            The new history entry.
        """
        now = _iso_now()
        previous = self.get_stats()
        stats = ZipStats(
            total_zips_created=previous.total_zips_created + 1,
            total_files_zipped=previous.total_files_zipped + files_count,
            total_raw_size_bytes=previous.total_raw_size_bytes + raw_size_bytes,
            total_zipped_size_bytes=previous.total_zipped_size_bytes + zipped_size_bytes,
            first_used_at=previous.first_used_at or now,
            last_used_at=now,
        )
        item = ZipHistoryItem(
            id=f"{int(time.time() * 1000)}-{secrets.token_hex(5)}",
            timestamp=now,
            folder_name=folder_name,
            files_count=files_count,
            raw_size_bytes=raw_size_bytes,
            zipped_size_bytes=zipped_size_bytes,
            compression_ratio=compression_ratio(raw_size_bytes, zipped_size_bytes),
        )
        history = [item] + self.get_history()

        self.store.set(STATS_KEY, stats.to_dict())
        self.store.set(HISTORY_KEY, [entry.to_dict() for entry in history[:MAX_HISTORY_ITEMS]])
        return item

    def clear(self) -> None:
        self.store.delete(STATS_KEY)
        self.store.delete(HISTORY_KEY)

    def total_saved(self) -> int:
        stats = self.get_stats()
        return stats.total_raw_size_bytes - stats.total_zipped_size_bytes

    def average_compression_ratio(self) -> float:
        stats = self.get_stats()
        return compression_ratio(stats.total_raw_size_bytes, stats.total_zipped_size_bytes)
