"""Bounded reads of a byte range inside a file."""

import io
from pathlib import Path
from typing import Iterator


class ByteRangeReader(io.RawIOBase):
    """
    Read-only binary stream over bytes [offset, offset + size) of a file.

    Usage:
        with ByteRangeReader(path, 120, 4096) as reader:
            for chunk in reader.iter_chunks(1024):
                ...
    """

    def __init__(self, path: Path, offset: int, size: int):
        if offset < 0 or size < 0:
            raise ValueError(f"Invalid byte range: offset={offset} size={size}")

        super().__init__()
        self._handle = open(path, "rb")
        self._handle.seek(offset)
        self._remaining = size

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._remaining <= 0:
            return 0

        data = self._handle.read(min(len(buffer), self._remaining))
        count = len(data)
        buffer[:count] = data
        self._remaining -= count
        return count

    def iter_chunks(self, chunk_size: int = 65536) -> Iterator[bytes]:
        while True:
            chunk = self.read(chunk_size)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        handle = getattr(self, "_handle", None)
        if handle is not None and not self.closed:
            handle.close()
        super().close()
