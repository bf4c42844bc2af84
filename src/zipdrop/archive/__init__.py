"""ZIP archive assembly, codec, digest and manifest."""

from .archive_assembler import ArchiveAssembler, ArchiveBuildResult, BuildPhase, BuildProgress
from .codec import ZipArchiveCodec, zip_date_time
from .digest import content_digest
from .manifest import MANIFEST_PATH, generate_manifest_content

__all__ = [
    "ArchiveAssembler",
    "ArchiveBuildResult",
    "BuildPhase",
    "BuildProgress",
    "MANIFEST_PATH",
    "ZipArchiveCodec",
    "content_digest",
    "generate_manifest_content",
    "zip_date_time",
]
