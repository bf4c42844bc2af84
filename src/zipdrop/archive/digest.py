import hashlib


def content_digest(data: bytes) -> str:
    """Compute the lowercase hex MD5 digest of ``data``.

    MD5 serves as an integrity checksum recorded in the manifest, not as a
    security primitive.

    Example:
        >>> content_digest(b"")
        'd41d8cd98f00b204e9800998ecf8427e'
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest()
