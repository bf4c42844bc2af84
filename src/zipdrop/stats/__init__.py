"""Local usage statistics and the optional remote statistics client."""

from .remote import RemoteStatsClient
from .stats_store import StatsStore, ZipHistoryItem, ZipStats

__all__ = ["RemoteStatsClient", "StatsStore", "ZipHistoryItem", "ZipStats"]
