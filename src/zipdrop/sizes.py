"""Byte size formatting and compression arithmetic."""

from humanfriendly import format_size as _humanfriendly_format_size

# Rough DEFLATE ratio for mixed source trees, used for the pre-build preview
ESTIMATED_COMPRESSION_FACTOR = 0.7


def format_size(num_bytes: int) -> str:
    """Format a byte count for display using binary (1024-based) units.

    Negative counts, such as the savings of an archive that grew, keep their sign.

    Example:
        >>> format_size(0)
        '0 bytes'
        >>> format_size(1536)
        '1.5 KiB'
        >>> format_size(-2048)
        '-2 KiB'
    """
    if num_bytes < 0:
        return "-" + format_size(-num_bytes)
    return str(_humanfriendly_format_size(num_bytes, binary=True))


def compression_ratio(raw_bytes: int, compressed_bytes: int) -> float:
    """Percentage of bytes saved by compression.

    Returns 0 when there is nothing to compress, so empty inputs never divide by
    zero.

    Example:
        >>> compression_ratio(300, 210)
        30.0
        >>> compression_ratio(0, 22)
        0.0
    """
    if raw_bytes <= 0:
        return 0.0
    return (raw_bytes - compressed_bytes) * 100 / raw_bytes


def estimate_zip_size(raw_bytes: int) -> int:
    """Estimate the archive size of ``raw_bytes`` before anything is compressed.

    Example:
        >>> estimate_zip_size(1000)
        700
    """
    return int(raw_bytes * ESTIMATED_COMPRESSION_FACTOR)
