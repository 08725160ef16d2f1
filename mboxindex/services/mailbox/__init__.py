"""Mailbox facade over the scanner and index."""

from .base import InvalidIndexError, MboxNotReadyError, MessageNotFoundError
from .mbox import Mbox
from .range_reader import ByteRangeReader

__all__ = [
    "Mbox",
    "ByteRangeReader",
    "MboxNotReadyError",
    "MessageNotFoundError",
    "InvalidIndexError",
]
