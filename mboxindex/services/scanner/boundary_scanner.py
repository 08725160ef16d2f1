"""Incremental detection of message boundaries in an mbox byte stream."""

import logging
from typing import BinaryIO, Iterable, Iterator

from .base import FormatValidationError, UsageError

logger = logging.getLogger(__name__)

DELIMITER = b"\nFrom "
DELIMITER_START = b"From "
DEFAULT_CHUNK_SIZE = 65536


class BoundaryScanner:
    """
    Push-based scanner reporting the absolute offset of every message start.

    Chunks of any size are passed to feed() in stream order. A delimiter
    split across two chunks is still found because the last few bytes of
    each search buffer are carried into the next call.

    Usage:
        scanner = BoundaryScanner()
        for chunk in chunks:
            offsets.extend(scanner.feed(chunk))
        scanner.finish()
    """

    def __init__(self, strict: bool = False):
        """
        Initialize scanner.

        Args:
            strict: Reject streams whose first bytes are not "From "
        """
        self._strict = strict
        self.reset()

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def bytes_consumed(self) -> int:
        """Total number of bytes fed since construction or the last reset."""
        return self._absolute_offset

    @property
    def finished(self) -> bool:
        return self._finished

    def reset(self) -> None:
        """Return to the construction-time state so a new stream can be scanned."""
        self._absolute_offset = 0
        self._carry = b""
        self._first_chunk_pending = True
        self._finished = False
        self._failed = False

    def feed(self, chunk: bytes) -> list[int]:
        """
        Scan the next chunk of the stream.

        Args:
            chunk: Next bytes of the stream (may be empty)

        Returns:
            Absolute offsets of boundaries completed by this chunk, ascending

        Raises:
            FormatValidationError: Strict mode and the stream does not start with "From "
            UsageError: Called after finish() or after a validation failure
        """
        if self._finished:
            raise UsageError("feed() called after finish()")
        if self._failed:
            raise UsageError("feed() called after a validation failure; call reset() first")

        chunk = bytes(chunk)
        buffer = self._carry + chunk
        carry_length = len(self._carry)
        boundaries: list[int] = []

        if self._first_chunk_pending:
            self._check_stream_start(buffer, boundaries)

        search_from = 0
        while True:
            match = buffer.find(DELIMITER, search_from)
            if match == -1:
                break
            # +1 skips the newline so the offset points at "F"
            boundaries.append(self._absolute_offset + (match - carry_length) + 1)
            search_from = match + 1

        if self._first_chunk_pending:
            self._carry = buffer[: len(DELIMITER_START)]
        else:
            keep = min(len(DELIMITER) - 1, len(buffer))
            self._carry = buffer[len(buffer) - keep :]

        self._absolute_offset += len(chunk)

        if boundaries:
            logger.debug("Found %d boundaries in chunk of %d bytes", len(boundaries), len(chunk))
        return boundaries

    def finish(self) -> list[int]:
        """
        Signal end of input.

        Returns:
            Always an empty list; the final message is closed by the caller

        Raises:
            FormatValidationError: Strict mode and the stream ended inside a
                partial "From " (e.g. b"Fro"); an empty stream is accepted
            UsageError: Called after a validation failure
        """
        if self._failed:
            raise UsageError("finish() called after a validation failure; call reset() first")

        self._finished = True
        if self._first_chunk_pending and self._carry:
            self._first_chunk_pending = False
            self._reject_stream_start()
        self._carry = b""
        logger.debug("Scan finished after %d bytes", self._absolute_offset)
        return []

    def _check_stream_start(self, buffer: bytes, boundaries: list[int]) -> None:
        """Decide, once enough bytes are known, whether offset 0 is a boundary."""
        if len(buffer) >= len(DELIMITER_START):
            self._first_chunk_pending = False
            if buffer.startswith(DELIMITER_START):
                boundaries.append(0)
                return
            self._reject_stream_start()
            return

        if not DELIMITER_START.startswith(buffer):
            self._first_chunk_pending = False
            self._reject_stream_start()

    def _reject_stream_start(self) -> None:
        logger.debug("Stream does not start with a From line")
        if self._strict:
            self._failed = True
            raise FormatValidationError('File does not start with "From " line')


def scan_chunks(chunks: Iterable[bytes], strict: bool = False) -> Iterator[int]:
    """
    Lazily yield boundary offsets for a stream given as an iterable of chunks.

    Args:
        chunks: Byte chunks in stream order
        strict: Require the stream to start with "From "

    Yields:
        Absolute boundary offsets in increasing order
    """
    scanner = BoundaryScanner(strict=strict)
    for chunk in chunks:
        yield from scanner.feed(chunk)
    yield from scanner.finish()


def iter_file_chunks(handle: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """
    Read a binary file object sequentially in fixed-size chunks.

    Args:
        handle: File object opened in binary mode
        chunk_size: Maximum bytes per read

    Yields:
        Non-empty byte chunks until EOF
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive: {chunk_size}")

    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            return
        yield chunk
