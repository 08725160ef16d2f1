"""Errors raised while parsing message content."""

from mboxindex.services.scanner.base import MboxError


class EmailParseError(MboxError):
    """Base exception for email parsing errors."""

    pass
