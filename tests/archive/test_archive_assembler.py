"""Tests for the two-pass archive build."""

import io
import logging
import zipfile
from datetime import datetime, timezone
from typing import Iterator

import pytest

from zipdrop.archive.archive_assembler import ArchiveAssembler, BuildPhase, BuildProgress
from zipdrop.archive.codec import ZipArchiveCodec, zip_date_time
from zipdrop.archive.digest import content_digest
from zipdrop.archive.manifest import MANIFEST_PATH
from zipdrop.exceptions import ArchiveCodecError
from zipdrop.exclusion_rules.composite_rules import CompositeExclusionRules
from zipdrop.exclusion_rules.manual_rules import ManualExclusionRules
from zipdrop.exclusion_rules.pattern_rules import PatternExclusionRules
from zipdrop.file_system_tree.handles import FileHandle
from zipdrop.file_system_tree.memory_handle import InMemoryDirectoryHandle

FIXED_TIME = datetime(2024, 5, 1, 12, 30, 0, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_TIME


class UnreadableFile(FileHandle):
    @property
    def name(self) -> str:
        return "secret.bin"

    @property
    def size(self) -> int:
        return 10

    def read_bytes(self) -> bytes:
        raise PermissionError("Permission denied: 'secret.bin'")


class ShrinkingFile(FileHandle):
    """Reports one size at scan time and returns fewer bytes when read."""

    @property
    def name(self) -> str:
        return "changed.txt"

    @property
    def size(self) -> int:
        return 1000

    def read_bytes(self) -> bytes:
        return b"short"


class FailingCodec(ZipArchiveCodec):
    def finalize(self) -> bytes:
        raise ArchiveCodecError("Failed to finalize archive")


def entries(blob):
    with zipfile.ZipFile(io.BytesIO(blob)) as archive:
        return archive.namelist(), {name: archive.read(name) for name in archive.namelist()}


def test_log_files_are_excluded():
    root = InMemoryDirectoryHandle("X", {"a.log": "0" * 10, "b.txt": "b" * 20})

    result = ArchiveAssembler(root, PatternExclusionRules(["*.log"]), clock=fixed_clock).build()

    names, contents = entries(result.blob)
    assert names == ["b.txt", MANIFEST_PATH]
    assert contents["b.txt"] == b"b" * 20
    assert result.files_added == 1
    assert result.raw_bytes == 20


def test_entries_follow_traversal_order(project_root):
    rules = CompositeExclusionRules(
        [ManualExclusionRules(["docs/api.md"]), PatternExclusionRules(["node_modules", "*.log"])]
    )

    result = ArchiveAssembler(project_root, rules, clock=fixed_clock).build()

    names, _ = entries(result.blob)
    assert names == ["README.md", "src/main.py", "src/utils/helpers.py", "docs/guide.md", MANIFEST_PATH]


def test_sizes(project_root):
    result = ArchiveAssembler(project_root, clock=fixed_clock).build()

    _, contents = entries(result.blob)
    assert result.raw_bytes == sum(len(data) for name, data in contents.items() if name != MANIFEST_PATH)
    assert result.compressed_bytes < result.archive_bytes
    assert result.archive_bytes == len(result.blob)
    assert result.bytes_saved == result.raw_bytes - result.compressed_bytes


def test_raw_bytes_counts_bytes_read():
    root = InMemoryDirectoryHandle("p")
    root._children.append(ShrinkingFile())

    result = ArchiveAssembler(root, clock=fixed_clock).build()

    assert result.raw_bytes == len(b"short")


def test_digest_covers_archive_before_manifest():
    root = InMemoryDirectoryHandle("p", {"a.txt": "alpha", "b": {"c.txt": "gamma"}}, last_modified=1700000000.0)

    result = ArchiveAssembler(root, clock=fixed_clock).build()

    codec = ZipArchiveCodec()
    codec.add_entry("a.txt", b"alpha", zip_date_time(1700000000.0))
    codec.add_entry("b/c.txt", b"gamma", zip_date_time(1700000000.0))
    provisional = codec.finalize()

    assert result.digest == content_digest(provisional)
    assert result.compressed_bytes == len(provisional)


def test_digest_is_deterministic(project_root):
    first = ArchiveAssembler(project_root, clock=fixed_clock).build()
    second = ArchiveAssembler(project_root, clock=lambda: datetime(2030, 1, 1, tzinfo=timezone.utc)).build()

    assert first.digest == second.digest
    assert first.blob != second.blob


def test_manifest_describes_provisional_archive():
    root = InMemoryDirectoryHandle("project", {"a.txt": "a" * 300})

    result = ArchiveAssembler(root, output_name="backup", clock=fixed_clock).build()

    _, contents = entries(result.blob)
    manifest = contents[MANIFEST_PATH].decode("utf-8")
    assert "Archive Name:        backup.zip" in manifest
    assert "Source Folder:       project" in manifest
    assert "Created:             2024-05-01T12:30:00.000Z" in manifest
    assert "Files Included:      1\n" in manifest
    assert f"MD5 Hash:            {result.digest}" in manifest
    assert f"({result.compressed_bytes:,} bytes)" in manifest


def test_manifest_entry_timestamp():
    root = InMemoryDirectoryHandle("p", {"a.txt": "a"})

    result = ArchiveAssembler(root, clock=fixed_clock).build()

    with zipfile.ZipFile(io.BytesIO(result.blob)) as archive:
        assert archive.getinfo(MANIFEST_PATH).date_time == zip_date_time(FIXED_TIME.timestamp())
        assert archive.getinfo("a.txt").date_time == zip_date_time(None)


@pytest.mark.parametrize(
    "output_name,expected",
    [(None, "project.zip"), ("", "project.zip"), ("   ", "project.zip"), (" release ", "release.zip")],
)
def test_output_name(output_name, expected):
    root = InMemoryDirectoryHandle("project", {"a.txt": "a"})

    assembler = ArchiveAssembler(root, output_name=output_name)

    assert assembler.file_name == expected


def test_progress_events():
    root = InMemoryDirectoryHandle("p", {"a.txt": "a", "b": {"c.txt": "c"}})
    events = []

    ArchiveAssembler(root, clock=fixed_clock).build(events.append)

    assert events == [
        BuildProgress(BuildPhase.COUNTING, 0, 0),
        BuildProgress(BuildPhase.COLLECTING, 0, 2),
        BuildProgress(BuildPhase.COLLECTING, 1, 2),
        BuildProgress(BuildPhase.COLLECTING, 2, 2),
        BuildProgress(BuildPhase.COMPRESSING, 2, 2),
        BuildProgress(BuildPhase.HASHING, 2, 2),
        BuildProgress(BuildPhase.FINALIZING, 2, 2),
    ]


def test_count_files(project_root):
    assembler = ArchiveAssembler(project_root, PatternExclusionRules(["node_modules"]))

    assert assembler.count_files() == 6


def test_empty_selection_still_builds():
    root = InMemoryDirectoryHandle("p", {"a.log": "x"})

    result = ArchiveAssembler(root, PatternExclusionRules(["*.log"]), clock=fixed_clock).build()

    names, _ = entries(result.blob)
    assert names == [MANIFEST_PATH]
    assert result.files_added == 0
    assert result.compression_ratio == 0.0


def test_read_failure_aborts_build():
    root = InMemoryDirectoryHandle("p", {"a.txt": "a"})
    root._children.append(UnreadableFile())
    assembler = ArchiveAssembler(root)

    with pytest.raises(PermissionError):
        assembler.build()

    with pytest.raises(RuntimeError, match="has not completed"):
        assembler.result


def test_codec_failure_propagates():
    root = InMemoryDirectoryHandle("p", {"a.txt": "a"})

    with pytest.raises(ArchiveCodecError):
        ArchiveAssembler(root, codec_factory=FailingCodec).build()


def test_single_build_per_assembler():
    root = InMemoryDirectoryHandle("p", {"a.txt": "a"})
    assembler = ArchiveAssembler(root)
    assembler.build()

    with pytest.raises(RuntimeError, match="only run one build"):
        assembler.build()


def test_abandoned_build_has_no_result():
    root = InMemoryDirectoryHandle("p", {"a.txt": "a"})
    assembler = ArchiveAssembler(root)

    events: Iterator[BuildProgress] = assembler.iter_build()
    next(events)
    next(events)
    events.close()

    with pytest.raises(RuntimeError):
        assembler.result


def test_manifest_path_holds_only_the_manifest(caplog):
    """A root file named like the manifest is left out; nested files of that name are kept."""
    root = InMemoryDirectoryHandle(
        "p", {MANIFEST_PATH: "user notes", "a.txt": "a", "docs": {MANIFEST_PATH: "nested notes"}}
    )

    with caplog.at_level(logging.WARNING, logger="zipdrop.archive.archive_assembler"):
        result = ArchiveAssembler(root, clock=fixed_clock).build()

    names, contents = entries(result.blob)
    assert names.count(MANIFEST_PATH) == 1
    assert names[-1] == MANIFEST_PATH
    assert contents[MANIFEST_PATH].startswith(b"=" * 80)
    assert contents[f"docs/{MANIFEST_PATH}"] == b"nested notes"
    assert result.files_added == 2
    assert result.raw_bytes == len("a") + len("nested notes")
    assert f"Leaving out {MANIFEST_PATH}" in caplog.text


def test_failed_build_releases_codec():
    codecs = []

    def recording_codec():
        codec = ZipArchiveCodec()
        codecs.append(codec)
        return codec

    root = InMemoryDirectoryHandle("p", {"a.txt": "a"})
    root._children.append(UnreadableFile())

    with pytest.raises(PermissionError):
        ArchiveAssembler(root, codec_factory=recording_codec).build()

    assert len(codecs) == 1
    assert codecs[0]._zip is None
