"""Parsing of raw mbox messages into structured emails."""

import hashlib
from email import message_from_bytes
from email.message import EmailMessage
from email.policy import default
from email.utils import parsedate_to_datetime
from typing import Optional

from mboxindex.models.parsed_email import EmailAttachment, ParsedEmail
from mboxindex.utils.path_utils import normalize_message_id
from .base import EmailParseError


def strip_envelope(raw: bytes) -> bytes:
    """Drop the mbox "From " envelope line, if present."""
    if raw.startswith(b"From "):
        newline = raw.find(b"\n")
        return b"" if newline == -1 else raw[newline + 1 :]
    return raw


class MessageParser:
    """Parse raw message bytes taken from an mbox file."""

    def parse(
        self,
        raw: bytes,
        skip_text_body: bool = False,
        skip_html_body: bool = False,
        checksum_attachments: bool = False,
    ) -> ParsedEmail:
        """
        Parse a single message.

        Args:
            raw: Message bytes, optionally starting with the envelope line
            skip_text_body: Do not decode the text/plain body
            skip_html_body: Do not decode the text/html body
            checksum_attachments: Compute SHA-256 digests of attachments

        Returns:
            ParsedEmail

        Raises:
            EmailParseError: If the message cannot be parsed

        Notes:
            - Quoted ">From " lines are left as they are
            - Headers are decoded by the email package (policy=default)
        """
        try:
            message = message_from_bytes(strip_envelope(raw), policy=default)

            parsed = ParsedEmail(
                from_=self._header(message, "From"),
                to=self._addresses(message, "To"),
                cc=self._addresses(message, "Cc"),
                bcc=self._addresses(message, "Bcc"),
                subject=self._header(message, "Subject"),
                date=self._date(message),
                message_id=self.get_message_id(message),
                headers=self._headers(message),
            )

            if not skip_text_body:
                parsed.text = self._body(message, "plain")
            if not skip_html_body:
                parsed.html = self._body(message, "html")

            parsed.attachments = list(self._attachments(message, checksum_attachments))
        except EmailParseError:
            raise
        except Exception as e:
            raise EmailParseError(f"Error parsing message: {e}") from e

        return parsed

    def get_message_id(self, message: EmailMessage) -> Optional[str]:
        """
        Extract Message-ID from email message.

        Returns:
            Message-ID with angle brackets, the raw value if malformed, or None if missing
        """
        message_id = message.get("Message-ID")

        if not message_id:
            return None

        try:
            return normalize_message_id(str(message_id))
        except ValueError:
            return str(message_id).strip()

    def _header(self, message: EmailMessage, name: str) -> Optional[str]:
        value = message.get(name)
        return str(value) if value is not None else None

    def _addresses(self, message: EmailMessage, name: str) -> Optional[list[str]]:
        values = message.get_all(name)
        if not values:
            return None

        result = []
        for value in values:
            addresses = getattr(value, "addresses", None)
            if addresses:
                result.extend(str(address) for address in addresses)
            else:
                result.append(str(value))
        return result

    def _date(self, message: EmailMessage):
        value = message.get("Date")
        if not value:
            return None
        try:
            return parsedate_to_datetime(str(value))
        except (TypeError, ValueError):
            return None

    def _headers(self, message: EmailMessage) -> dict[str, list[str]]:
        headers: dict[str, list[str]] = {}
        for name, value in message.items():
            headers.setdefault(name.lower(), []).append(str(value))
        return headers

    def _body(self, message: EmailMessage, subtype: str) -> Optional[str]:
        part = message.get_body(preferencelist=(subtype,))
        if part is None:
            return None
        return part.get_content()

    def _attachments(self, message: EmailMessage, checksum: bool):
        for part in message.walk():
            if part.is_multipart():
                continue

            disposition = part.get_content_disposition()
            filename = part.get_filename()
            if disposition != "attachment" and not filename:
                continue

            content = part.get_payload(decode=True) or b""
            cid = part.get("Content-ID")

            yield EmailAttachment(
                filename=filename,
                content_type=part.get_content_type(),
                content=content,
                size=len(content),
                checksum=hashlib.sha256(content).hexdigest() if checksum else None,
                cid=str(cid).strip().strip("<>") if cid else None,
                content_disposition=disposition,
            )
