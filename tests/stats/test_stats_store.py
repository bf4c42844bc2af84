"""Tests for local usage statistics and archive history."""

import logging

import pytest

from zipdrop.stats.stats_store import HISTORY_KEY, MAX_HISTORY_ITEMS, STATS_KEY, StatsStore, ZipHistoryItem, ZipStats
from zipdrop.storage import JSONFileStore, MemoryStore


@pytest.fixture
def stats():
    return StatsStore(MemoryStore())


def test_empty_store(stats):
    assert stats.get_stats() == ZipStats()
    assert stats.get_history() == []
    assert stats.total_saved() == 0
    assert stats.average_compression_ratio() == 0.0


def test_record_updates_totals(stats):
    stats.record_zip_creation("project", files_count=3, raw_size_bytes=300, zipped_size_bytes=210)
    stats.record_zip_creation("other", files_count=2, raw_size_bytes=100, zipped_size_bytes=90)

    totals = stats.get_stats()
    assert totals.total_zips_created == 2
    assert totals.total_files_zipped == 5
    assert totals.total_raw_size_bytes == 400
    assert totals.total_zipped_size_bytes == 300
    assert stats.total_saved() == 100
    assert stats.average_compression_ratio() == 25.0


def test_first_used_is_kept(stats):
    stats.record_zip_creation("a", 1, 10, 5)
    first_used = stats.get_stats().first_used_at

    stats.record_zip_creation("b", 1, 10, 5)

    assert stats.get_stats().first_used_at == first_used
    assert stats.get_stats().last_used_at >= first_used
    assert first_used.endswith("Z")


def test_history_entry(stats):
    item = stats.record_zip_creation("project", files_count=3, raw_size_bytes=300, zipped_size_bytes=210)

    assert item.folder_name == "project"
    assert item.compression_ratio == 30.0
    assert stats.get_history() == [item]


def test_history_is_newest_first_and_capped(stats):
    for i in range(MAX_HISTORY_ITEMS + 5):
        stats.record_zip_creation(f"folder-{i}", 1, 10, 5)

    history = stats.get_history()

    assert len(history) == MAX_HISTORY_ITEMS
    assert history[0].folder_name == f"folder-{MAX_HISTORY_ITEMS + 4}"
    assert history[-1].folder_name == "folder-5"
    assert len({item.id for item in history}) == MAX_HISTORY_ITEMS


def test_stored_with_camel_case_keys():
    store = MemoryStore()
    StatsStore(store).record_zip_creation("project", 3, 300, 210)

    assert set(store.get(STATS_KEY)) == {
        "totalZipsCreated",
        "totalFilesZipped",
        "totalRawSizeBytes",
        "totalZippedSizeBytes",
        "firstUsedAt",
        "lastUsedAt",
    }
    assert store.get(HISTORY_KEY)[0]["folderName"] == "project"
    assert store.get(HISTORY_KEY)[0]["compressionRatio"] == 30.0


def test_history_item_round_trip():
    item = ZipHistoryItem("1-ab", "2024-05-01T12:30:00.000Z", "p", 1, 300, 210, 30.0)

    assert ZipHistoryItem.from_dict(item.to_dict()) == item


def test_clear(stats):
    stats.record_zip_creation("project", 3, 300, 210)

    stats.clear()

    assert stats.get_stats() == ZipStats()
    assert stats.get_history() == []


def test_unreadable_values_are_treated_as_empty(caplog):
    store = MemoryStore({STATS_KEY: ["not", "a", "dict"], HISTORY_KEY: [{"id": "x"}]})
    stats = StatsStore(store)

    with caplog.at_level(logging.WARNING, logger="zipdrop.stats.stats_store"):
        assert stats.get_stats() == ZipStats()
        assert stats.get_history() == []
    assert "Ignoring unreadable statistics" in caplog.text
    assert "Ignoring unreadable history" in caplog.text

    stats.record_zip_creation("project", 1, 10, 5)
    assert stats.get_stats().total_zips_created == 1
    assert len(stats.get_history()) == 1


def test_persists_to_file(tmp_path):
    path = tmp_path / "state.json"
    StatsStore(JSONFileStore(path)).record_zip_creation("project", 3, 300, 210)

    reloaded = StatsStore(JSONFileStore(path))

    assert reloaded.get_stats().total_files_zipped == 3
    assert reloaded.get_history()[0].raw_size_bytes == 300
