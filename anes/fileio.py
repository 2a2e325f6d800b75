"""Binary file access and directory enumeration."""

from __future__ import annotations

import glob
import io
import os
import struct
from typing import Iterator, Optional

_INT = struct.Struct("<i")


class FileIOError(OSError):
    """Raised when a file cannot be opened, read or written."""


class BinaryFile:
    """A binary file opened for reading or created for writing."""

    def __init__(self, filename: Optional[str | os.PathLike] = None) -> None:
        self._handle: Optional[io.BufferedIOBase] = None
        if filename is not None:
            self.open(filename)

    def open(self, filename: str | os.PathLike) -> None:
        """Open an existing file for reading, closing any file already open."""
        self.close()
        try:
            self._handle = io.open(filename, "rb")
        except OSError as exc:
            raise FileIOError(f"cannot open {filename}") from exc

    def create(self, filename: str | os.PathLike) -> None:
        """Create (or truncate) a file for writing."""
        self.close()
        try:
            self._handle = io.open(filename, "wb")
        except OSError as exc:
            raise FileIOError(f"cannot create {filename}") from exc

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _require_open(self) -> io.BufferedIOBase:
        if self._handle is None:
            raise FileIOError("file is not open")
        return self._handle

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` bytes."""
        handle = self._require_open()
        try:
            data = handle.read(size)
        except (OSError, ValueError) as exc:
            raise FileIOError("read failed") from exc
        if data is None or len(data) < size:
            raise FileIOError(f"short read: wanted {size} bytes")
        return data

    def write(self, data: bytes) -> None:
        handle = self._require_open()
        try:
            written = handle.write(data)
        except (OSError, ValueError) as exc:
            raise FileIOError("write failed") from exc
        if written is not None and written < len(data):
            raise FileIOError("short write")

    def read_int(self) -> int:
        return _INT.unpack(self.read(_INT.size))[0]

    def write_int(self, value: int) -> None:
        self.write(_INT.pack(value))

    def size(self) -> int:
        """Return the file length, or 0 when no file is open."""
        if self._handle is None:
            return 0
        if self._handle.writable():
            self._handle.flush()
        return os.fstat(self._handle.fileno()).st_size

    def tell(self) -> int:
        """Return the current position, or 0 when no file is open."""
        return 0 if self._handle is None else self._handle.tell()

    def seek(self, position: int) -> None:
        if self._handle is not None:
            self._handle.seek(position, os.SEEK_SET)

    def __enter__(self) -> "BinaryFile":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def enumerate_dir(pattern: str) -> Iterator[str]:
    """Yield the names of regular files matching a path pattern."""
    for path in sorted(glob.glob(pattern)):
        if os.path.isfile(path):
            yield os.path.basename(path)