"""Selective folder-to-ZIP archiving.

This package walks a directory, applies glob-style exclusion patterns and manual
deselections, previews the surviving tree and packs it into a single ZIP archive
with an embedded integrity manifest.
"""

from importlib.metadata import PackageNotFoundError, version

# Expose the version for both programmatic use and CLI
try:
    __version__ = version("zipdrop")
except PackageNotFoundError:
    __version__ = "unknown"
