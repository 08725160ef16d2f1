"""Structured view of a parsed mbox message."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class EmailAttachment:
    """
    A single attachment taken from a parsed message.

    Attributes:
        filename: Declared filename, if any
        content_type: MIME type, e.g. 'application/pdf'
        content: Decoded payload bytes
        size: Payload length in bytes
        checksum: SHA-256 hex digest (only when requested)
        cid: Content-ID without angle brackets, for inline parts
        content_disposition: 'attachment' or 'inline'
    """

    filename: Optional[str]
    content_type: str
    content: bytes
    size: int
    checksum: Optional[str] = None
    cid: Optional[str] = None
    content_disposition: Optional[str] = None


@dataclass
class ParsedEmail:
    """Headers, bodies and attachments of one message."""

    from_: Optional[str] = None
    to: Optional[list[str]] = None
    cc: Optional[list[str]] = None
    bcc: Optional[list[str]] = None
    subject: Optional[str] = None
    date: Optional[datetime] = None
    message_id: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    attachments: list[EmailAttachment] = field(default_factory=list)
    headers: dict[str, list[str]] = field(default_factory=dict)
