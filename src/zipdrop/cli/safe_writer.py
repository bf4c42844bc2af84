"""Signal-aware output for zipdrop CLI.

Tree previews and summaries can be long and are often piped into pagers or
``head``. SafeWriter stops writing as soon as the reader goes away or the user
presses Ctrl+C, instead of surfacing a traceback.
"""

import errno
import os
import types
from pathlib import Path
from typing import Iterable, Optional, Type, Union

from zipdrop.cli.signal_handler import signal_handler


class SafeWriter:
    """Write text to a file descriptor or file while watching for SIGPIPE and SIGINT.

    Attributes:
        file: Either a file path or file descriptor for output.
        fd: The actual file descriptor being written to.
    """

    def __init__(self, file: Union[int, Path]):
        """Initialize the safe writer.

        Args:
            file: Either a file descriptor (int) or Path object for writing output.

        Raises:
            TypeError: If ``file`` is neither.
        """
        self.file = file
        self._closed = False

        if isinstance(file, int):
            self.fd = file
            self._file_obj = None
        elif isinstance(file, (str, os.PathLike)):
            self._file_obj = Path(file).open("w")
            self.fd = self._file_obj.fileno()
        else:
            raise TypeError(f"Expected int, str, or PathLike, got {type(file).__name__}")

    def write(self, data: str) -> None:
        """Write ``data`` as UTF-8.

        Raises:
            BrokenPipeError: If SIGPIPE or SIGINT was received, or the pipe is broken.
            OSError: If an I/O error occurs during writing.
            ValueError: If the writer is closed.
        """
        if self._closed:
            raise ValueError("Cannot write to closed SafeWriter")

        if signal_handler.sigpipe_received.is_set() or signal_handler.sigint_received.is_set():
            raise BrokenPipeError()

        # Pipes accept large previews in pieces
        view = memoryview(data.encode("utf-8"))
        while view:
            try:
                written = os.write(self.fd, view)
            except OSError as e:
                if e.errno == errno.EPIPE:
                    raise BrokenPipeError()
                raise
            view = view[written:]

    def write_lines(self, lines: Iterable[str]) -> None:
        """Write each line followed by a newline."""
        for line in lines:
            self.write(line + "\n")

    def close(self) -> None:
        """Close the file if this writer opened it. Broken pipes on close are ignored."""
        if self._closed:
            return

        if self._file_obj is not None:
            try:
                self._file_obj.close()
            except OSError as e:
                if e.errno != errno.EPIPE:
                    raise

        self._closed = True

    def __enter__(self) -> "SafeWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> None:
        try:
            self.close()
        except OSError:
            # An exception from the with block takes precedence
            if exc_type is None:
                raise
