from typing import Optional


class ZipDropError(Exception):
    """Base class for all errors raised by zipdrop."""

    pass


class BuildInProgressError(ZipDropError):
    """
    Exception raised when session state is changed while an archive build is running.

    A session allows exactly one build at a time, and the tree, pattern set and
    selection must not change until that build has finished or failed.

    Example:
        >>> str(BuildInProgressError())
        'An archive build is already in progress'
    """

    def __init__(self, message: str = "An archive build is already in progress") -> None:
        super().__init__(message)


class NoFolderSelectedError(ZipDropError):
    """
    Exception raised when an operation needs a picked root folder and none is selected.

    Example:
        >>> str(NoFolderSelectedError())
        'Please select a folder first'
    """

    def __init__(self, message: str = "Please select a folder first") -> None:
        super().__init__(message)


class NoFilesSelectedError(ZipDropError):
    """
    Exception raised when an archive is requested but every file is excluded.

    Example:
        >>> str(NoFilesSelectedError())
        'No files to zip'
    """

    def __init__(self, message: str = "No files to zip") -> None:
        super().__init__(message)


class ArchiveCodecError(ZipDropError):
    """
    Exception raised when the archive codec cannot add an entry or finalize the archive.

    Example:
        >>> error = ArchiveCodecError("Failed to finalize archive")
        >>> str(error)
        'Failed to finalize archive'
    """

    pass


class ArchiveBuildError(ZipDropError):
    """
    Exception raised when an archive build is aborted.

    The build is all-or-nothing: when this exception is raised no archive has been
    written and all progress state has been discarded.

    Attributes:
        cause (Optional[BaseException]): The I/O or codec error that aborted the build.

    Example:
        >>> error = ArchiveBuildError(OSError("disk on fire"))
        >>> str(error)
        'Error creating ZIP file: disk on fire'
        >>> isinstance(error.cause, OSError)
        True
    """

    def __init__(self, cause: Optional[BaseException] = None) -> None:
        """
        Initialize the exception with the error that aborted the build.

        Args:
            cause (Optional[BaseException]): The underlying error, if any.
        """
        self.cause = cause
        message = "Error creating ZIP file"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class UnknownPresetError(ZipDropError):
    """
    Exception raised when a pattern preset identifier is not recognised.

    Attributes:
        preset_id (str): The identifier that was requested.

    Example:
        >>> str(UnknownPresetError("cobol"))
        "Unknown pattern preset: 'cobol'"
    """

    def __init__(self, preset_id: str) -> None:
        self.preset_id = preset_id
        super().__init__(f"Unknown pattern preset: '{preset_id}'")
