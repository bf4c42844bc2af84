"""Two-pass archive build with an embedded integrity manifest.

The assembler walks the picked folder twice: once to count the files that survive
exclusion, once to read them into the codec. The archive is then finalized a
first time, hashed, extended with a manifest describing that provisional archive,
and finalized again. The build is expressed as a generator of progress events so
callers can report progress between file reads without threads.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator, NamedTuple, Optional, Tuple

from zipdrop.archive.codec import ZipArchiveCodec, zip_date_time
from zipdrop.archive.digest import content_digest
from zipdrop.archive.manifest import MANIFEST_PATH, generate_manifest_content
from zipdrop.exclusion_rules.base_rules import BaseExclusionRules
from zipdrop.file_system_tree.handles import DirectoryHandle, FileHandle
from zipdrop.file_system_tree.tree_builder import iter_included_files
from zipdrop.sizes import compression_ratio

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"


class BuildPhase(str, Enum):
    """Phases of an archive build, in the order they run.

    Attributes:
        COUNTING: Walking the folder to count included files
        COLLECTING: Reading included files into the codec
        COMPRESSING: Producing the provisional archive without the manifest
        HASHING: Computing the digest of the provisional archive
        FINALIZING: Adding the manifest and producing the delivered archive
    """

    COUNTING = "counting"
    COLLECTING = "collecting"
    COMPRESSING = "compressing"
    HASHING = "hashing"
    FINALIZING = "finalizing"


class BuildProgress(NamedTuple):
    """A progress event emitted by ``ArchiveAssembler.iter_build()``.

    ``total`` is 0 until counting has finished; ``current`` is the number of files
    added to the codec so far.
    """

    phase: BuildPhase
    current: int
    total: int


@dataclass(frozen=True)
class ArchiveBuildResult:
    """Outcome of a successful archive build.

    Attributes:
        output_name: Archive name without extension.
        file_name: Archive file name, ``output_name`` plus ``.zip``.
        files_added: Number of file entries, manifest excluded.
        raw_bytes: Total bytes actually read from the included files.
        compressed_bytes: Size of the provisional archive, before the manifest.
        archive_bytes: Size of the delivered archive, manifest included.
        digest: Hex MD5 of the provisional archive.
        created_at: Timezone-aware time recorded in the manifest.
        blob: The delivered archive bytes.
    """

    output_name: str
    file_name: str
    files_added: int
    raw_bytes: int
    compressed_bytes: int
    archive_bytes: int
    digest: str
    created_at: datetime
    blob: bytes = field(repr=False)

    @property
    def bytes_saved(self) -> int:
        return self.raw_bytes - self.compressed_bytes

    @property
    def compression_ratio(self) -> float:
        """Percentage saved by compression, measured against the provisional archive."""
        return compression_ratio(self.raw_bytes, self.compressed_bytes)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ArchiveAssembler:
    """Build a ZIP archive from the files under a directory handle.

    A file is included if no exclusion rule excludes its path or the path of any
    of its ancestors. Entries are written in traversal order; directories are
    implicit in the entry paths. An assembler runs a single build.

    Attributes:
        root (DirectoryHandle): Handle of the picked root folder.
        exclusion_rules (Optional[BaseExclusionRules]): Combined pattern and manual
            exclusion predicate.
        output_name (str): Archive name without extension.
        source_name (str): Folder name recorded in the manifest.

    Example:
        >>> from zipdrop.file_system_tree.memory_handle import InMemoryDirectoryHandle
        >>> root = InMemoryDirectoryHandle("X", {"a.txt": "a" * 100})
        >>> result = ArchiveAssembler(root).build()
        >>> result.file_name, result.files_added, result.raw_bytes
        ('X.zip', 1, 100)
        >>> result.compressed_bytes < result.archive_bytes
        True
    """

    def __init__(
        self,
        root: DirectoryHandle,
        exclusion_rules: Optional[BaseExclusionRules] = None,
        output_name: Optional[str] = None,
        *,
        source_name: Optional[str] = None,
        codec_factory: Callable[[], ZipArchiveCodec] = ZipArchiveCodec,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize an ArchiveAssembler.

        Args:
            root: Handle of the folder to archive.
            exclusion_rules: Predicate deciding which paths to skip. None keeps
                everything.
            output_name: Archive name without extension. Blank or None falls back to
                the folder name.
            source_name: Folder name recorded in the manifest. Defaults to the
                folder name.
            codec_factory: Callable returning a fresh codec.
            clock: Callable returning the timezone-aware creation time. Defaults to
                the current UTC time.
        """
        self.root = root
        self.exclusion_rules = exclusion_rules
        self.output_name = (output_name or "").strip() or root.name
        self.source_name = source_name or root.name
        self._codec_factory = codec_factory
        self._clock = clock or _utc_now
        self._started = False
        self._result: Optional[ArchiveBuildResult] = None

    @property
    def file_name(self) -> str:
        return f"{self.output_name}{ARCHIVE_SUFFIX}"

    @property
    def result(self) -> ArchiveBuildResult:
        """The build result.

        Raises:
            RuntimeError: If the build has not completed successfully.
        """
        if self._result is None:
            raise RuntimeError("Archive build has not completed")
        return self._result

    def _iter_files(self) -> Iterator[Tuple[str, FileHandle]]:
        for path, handle in iter_included_files(self.root, self.exclusion_rules):
            if path == MANIFEST_PATH:
                logger.warning("Leaving out %s: the archive manifest is stored at that path", path)
                continue
            yield path, handle

    def count_files(self) -> int:
        """Count the files under the root that will be archived.

        A file at the root named like the manifest is not counted; the manifest
        takes its place.
        """
        return sum(1 for _ in self._iter_files())

    def iter_build(self) -> Iterator[BuildProgress]:
        """Run the build, yielding a progress event before each phase and after each file.

        The result is available from ``result`` once the generator is exhausted.
        Abandoning the generator early abandons the build.

        Yields:
            BuildProgress events.

        Raises:
            RuntimeError: If this assembler has already started a build.
            OSError: If a directory cannot be enumerated or a file cannot be read.
            ArchiveCodecError: If the codec fails.
        """
        if self._started:
            raise RuntimeError("An archive assembler can only run one build")
        self._started = True

        yield BuildProgress(BuildPhase.COUNTING, 0, 0)
        total = self.count_files()
        logger.debug("Counted %d files under %s", total, self.root.name)

        yield BuildProgress(BuildPhase.COLLECTING, 0, total)
        codec = self._codec_factory()
        try:
            files_added = 0
            raw_bytes = 0
            for path, handle in self._iter_files():
                data = handle.read_bytes()
                codec.add_entry(path, data, zip_date_time(handle.last_modified))
                files_added += 1
                raw_bytes += len(data)
                yield BuildProgress(BuildPhase.COLLECTING, files_added, total)

            yield BuildProgress(BuildPhase.COMPRESSING, files_added, total)
            provisional = codec.finalize()

            yield BuildProgress(BuildPhase.HASHING, files_added, total)
            digest = content_digest(provisional)

            yield BuildProgress(BuildPhase.FINALIZING, files_added, total)
            created_at = self._clock()
            manifest = generate_manifest_content(
                archive_name=self.file_name,
                source_name=self.source_name,
                files_count=files_added,
                raw_bytes=raw_bytes,
                compressed_bytes=len(provisional),
                digest=digest,
                created_at=created_at,
            )
            codec.add_entry(MANIFEST_PATH, manifest.encode("utf-8"), zip_date_time(created_at.timestamp()))
            blob = codec.finalize()
        finally:
            # Releases the codec if a read or codec error aborted the build
            codec.close()

        self._result = ArchiveBuildResult(
            output_name=self.output_name,
            file_name=self.file_name,
            files_added=files_added,
            raw_bytes=raw_bytes,
            compressed_bytes=len(provisional),
            archive_bytes=len(blob),
            digest=digest,
            created_at=created_at,
            blob=blob,
        )
        logger.debug(
            "Built %s: %d files, %d raw bytes, %d archive bytes", self.file_name, files_added, raw_bytes, len(blob)
        )

    def build(self, progress_callback: Optional[Callable[[BuildProgress], None]] = None) -> ArchiveBuildResult:
        """Run the build to completion.

        Args:
            progress_callback: Called with every progress event.

        Returns:
            The build result.

        Raises:
            RuntimeError: If this assembler has already started a build.
            OSError: If a directory cannot be enumerated or a file cannot be read.
            ArchiveCodecError: If the codec fails.
        """
        for progress in self.iter_build():
            if progress_callback is not None:
                progress_callback(progress)
        return self.result
