"""Plain-text manifest embedded as the last entry of every archive."""

from datetime import datetime, timezone

from zipdrop.sizes import compression_ratio, format_size

MANIFEST_PATH = "_ZIPDROP_MANIFEST.txt"

RULE = "=" * 80
LABEL_WIDTH = 21


def _banner(title: str) -> str:
    return f"{RULE}\n{title.center(80).rstrip()}\n{RULE}"


def _field(label: str, value: str) -> str:
    return f"{label + ':':<{LABEL_WIDTH}}{value}"


def format_iso_timestamp(moment: datetime) -> str:
    """Format a timezone-aware datetime as ISO-8601 UTC with millisecond precision.

    Example:
        >>> format_iso_timestamp(datetime(2024, 5, 1, 12, 30, 0, 250000, tzinfo=timezone.utc))
        '2024-05-01T12:30:00.250Z'
    """
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def format_percent_saved(raw_bytes: int, compressed_bytes: int) -> str:
    """Format the percentage saved with one decimal, or ``"0"`` when nothing was read.

    Example:
        >>> format_percent_saved(300, 210)
        '30.0'
        >>> format_percent_saved(0, 22)
        '0'
    """
    if raw_bytes <= 0:
        return "0"
    return f"{compression_ratio(raw_bytes, compressed_bytes):.1f}"


def generate_manifest_content(
    archive_name: str,
    source_name: str,
    files_count: int,
    raw_bytes: int,
    compressed_bytes: int,
    digest: str,
    created_at: datetime,
) -> str:
    """Render the manifest text for a finished build.

    Args:
        archive_name: File name of the delivered archive, e.g. ``project.zip``.
        source_name: Name of the picked root folder.
        files_count: Number of file entries in the archive, manifest excluded.
        raw_bytes: Total bytes read from the included files.
        compressed_bytes: Size of the archive before the manifest was added.
        digest: Hex digest of the archive before the manifest was added.
        created_at: Timezone-aware creation time.

    Returns:
        The manifest text, newline terminated.
    """
    sections = [
        _banner("ZIPDROP ARCHIVE MANIFEST"),
        "",
        "This ZIP archive was created with ZipDrop",
        "",
        _banner("ARCHIVE DETAILS"),
        "",
        _field("Archive Name", archive_name),
        _field("Source Folder", source_name),
        _field("Created", format_iso_timestamp(created_at)),
        " " * LABEL_WIDTH + created_at.astimezone().strftime("%c"),
        "",
        _banner("METRICS"),
        "",
        _field("Files Included", f"{files_count:,}"),
        _field("Original Size", f"{format_size(raw_bytes)} ({raw_bytes:,} bytes)"),
        _field("Compressed Size", f"{format_size(compressed_bytes)} ({compressed_bytes:,} bytes)"),
        _field(
            "Space Saved",
            f"{format_size(raw_bytes - compressed_bytes)} ({format_percent_saved(raw_bytes, compressed_bytes)}%)",
        ),
        "",
        _banner("INTEGRITY"),
        "",
        _field("MD5 Hash", digest),
        "",
        "Note: This hash is calculated from the ZIP content BEFORE this manifest file",
        "was added. Use it to verify the integrity of your archived files.",
        "",
        _banner("CREDITS"),
        "",
        "ZipDrop - selective folder-to-ZIP archiving",
        "",
        "All processing happens locally.",
        "No files are ever uploaded to any server.",
        "",
        RULE,
    ]
    return "\n".join(sections) + "\n"
