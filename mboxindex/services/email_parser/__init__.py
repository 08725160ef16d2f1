"""Email parsing services."""

from .base import EmailParseError
from .message_parser import MessageParser, strip_envelope

__all__ = ["MessageParser", "EmailParseError", "strip_envelope"]
