"""Turns boundary offsets into sized message index entries."""

from typing import Iterable, Optional

from mboxindex.models.mbox_message import MboxMessage
from mboxindex.services.scanner.base import UsageError
from mboxindex.services.scanner.boundary_scanner import BoundaryScanner


class IndexBuilder:
    """
    Pairs consecutive boundaries into MboxMessage entries.

    Each boundary closes the previous message; close() sizes the last
    message from the total stream length.
    """

    def __init__(self):
        self._messages: list[MboxMessage] = []
        self._closed = False

    @property
    def messages(self) -> list[MboxMessage]:
        return list(self._messages)

    def add_boundary(self, offset: int) -> None:
        """
        Record the start of a new message.

        Args:
            offset: Absolute offset of the "From " line

        Raises:
            UsageError: Offset not after the previous one, or builder closed
        """
        if self._closed:
            raise UsageError("add_boundary() called after close()")

        if self._messages:
            previous = self._messages[-1]
            if offset <= previous.offset:
                raise UsageError(
                    f"Boundary offsets must increase: {offset} after {previous.offset}"
                )
            self._messages[-1] = previous.with_size(offset - previous.offset)

        self._messages.append(MboxMessage(index=len(self._messages), offset=offset, size=0))

    def close(self, total_length: int) -> list[MboxMessage]:
        """
        Finish the index.

        Args:
            total_length: Byte length of the whole stream

        Returns:
            The completed list of entries
        """
        if self._closed:
            return self.messages

        if self._messages:
            last = self._messages[-1]
            if total_length < last.offset:
                raise UsageError(
                    f"Stream length {total_length} is before the last boundary {last.offset}"
                )
            self._messages[-1] = last.with_size(total_length - last.offset)

        self._closed = True
        return self.messages


def build_index(
    chunks: Iterable[bytes],
    strict: bool = False,
    scanner: Optional[BoundaryScanner] = None,
) -> list[MboxMessage]:
    """
    Scan a chunked stream and return its message index.

    Args:
        chunks: Byte chunks in stream order
        strict: Require the stream to start with "From "
        scanner: Optional scanner to reuse (it is reset first)

    Returns:
        List of MboxMessage entries in file order
    """
    if scanner is None:
        scanner = BoundaryScanner(strict=strict)
    else:
        scanner.reset()

    builder = IndexBuilder()
    total_length = 0

    for chunk in chunks:
        total_length += len(chunk)
        for offset in scanner.feed(chunk):
            builder.add_boundary(offset)

    for offset in scanner.finish():
        builder.add_boundary(offset)

    return builder.close(total_length)
