"""Random access to the messages of an mbox file."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from mboxindex.config.settings import ScannerConfig
from mboxindex.models.mbox_message import MboxMessage
from mboxindex.models.mbox_state import MboxState
from mboxindex.models.parsed_email import EmailAttachment, ParsedEmail
from mboxindex.services.email_parser.message_parser import MessageParser
from mboxindex.services.extraction.attachment_extractor import (
    AttachmentExtractor,
    ExtractionResult,
)
from mboxindex.services.indexing.index_builder import build_index
from mboxindex.services.indexing.index_validator import IndexValidator
from mboxindex.services.scanner.base import FormatValidationError
from mboxindex.services.scanner.boundary_scanner import BoundaryScanner, iter_file_chunks
from mboxindex.storage.audit_log import AuditLog
from mboxindex.storage.database import IndexAnomalyRepository, MessageIndexRepository
from .base import InvalidIndexError, MboxNotReadyError, MessageNotFoundError
from .range_reader import ByteRangeReader

logger = logging.getLogger(__name__)


class Mbox:
    """
    Index of an mbox file with message retrieval, deletion and compaction.

    The file is scanned once to find message boundaries; messages are then
    read on demand by byte range, so the file is never loaded whole.
    Deletions only mark entries until write() produces a compacted copy.

    Usage:
        with Mbox.open("inbox.mbox") as mbox:
            print(mbox.count())
            raw = mbox.get(0)
            mbox.delete(1)
            mbox.write("inbox.compacted.mbox")
    """

    def __init__(
        self,
        path: Union[str, Path],
        config: Optional[ScannerConfig] = None,
        saved_index: Optional[list[dict]] = None,
        strict: Optional[bool] = None,
        buffer_size: Optional[int] = None,
        encoding: Optional[str] = None,
        audit_log: Optional[AuditLog] = None,
        index_repo: Optional[MessageIndexRepository] = None,
        anomaly_repo: Optional[IndexAnomalyRepository] = None,
    ):
        """
        Create an unopened mailbox; call load() or use Mbox.open().

        Args:
            path: Path to the mbox file
            config: Scanner settings (explicit keyword arguments take precedence)
            saved_index: Entries from a previous export_index(); skips the scan
            strict: Reject files that do not start with "From "
            buffer_size: Chunk size for scanning and copying
            encoding: Default encoding for get()
            audit_log: Optional audit log for index and write events
            index_repo: Optional cache of scanned indexes
            anomaly_repo: Optional store for rejected files and saved indexes
        """
        config = config or ScannerConfig()

        self.path = Path(path)
        self.strict = config.strict if strict is None else strict
        self.buffer_size = buffer_size or config.buffer_size
        self.encoding = encoding or config.encoding
        self.audit_log = audit_log
        self.index_repo = index_repo
        self.anomaly_repo = anomaly_repo

        self._saved_index = saved_index
        self._messages: list[MboxMessage] = []
        self._original: list[MboxMessage] = []
        self._state = MboxState.INIT
        self._parser = MessageParser()
        self._validator = IndexValidator(anomaly_repo)

    @classmethod
    def open(cls, path: Union[str, Path], **kwargs) -> "Mbox":
        """Create a mailbox and load its index."""
        mbox = cls(path, **kwargs)
        mbox.load()
        return mbox

    @property
    def state(self) -> MboxState:
        return self._state

    def load(self) -> None:
        """
        Build the message index.

        Raises:
            FileNotFoundError: If the mbox file doesn't exist
            FormatValidationError: Strict mode and the file doesn't start with "From "
            InvalidIndexError: If saved_index doesn't fit the file
        """
        if self._state == MboxState.READY:
            return

        self._state = MboxState.INDEXING
        try:
            file_check = self._validator.validate_mbox_file(self.path)
            if not file_check.is_valid:
                self._record_anomaly(file_check.anomaly_type, file_check.error_details)
                raise FileNotFoundError(file_check.error_details)

            if self._saved_index is not None:
                messages = self._restore(self._saved_index)
                source = "saved_index"
            else:
                messages = (
                    self.index_repo.load(self.path, strict=self.strict) if self.index_repo else None
                )
                source = "cache"
                if messages is None:
                    messages = self._scan()
                    source = "scan"
                    if self.index_repo:
                        stat = self.path.stat()
                        self.index_repo.save(
                            self.path, messages, stat.st_size, stat.st_mtime, strict=self.strict
                        )
        except Exception:
            self._state = MboxState.ERROR
            raise

        self._messages = messages
        self._original = [MboxMessage(**m.to_dict()) for m in messages]
        self._state = MboxState.READY

        logger.info("Indexed %d messages in %s (%s)", len(messages), self.path, source)
        if self.audit_log:
            self.audit_log.log_index_built(self.path, len(messages), source)

    def close(self) -> None:
        """Drop the index; further operations raise MboxNotReadyError."""
        self._messages = []
        self._original = []
        self._state = MboxState.INIT

    def __enter__(self) -> "Mbox":
        self.load()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def count(self) -> int:
        """Number of messages not marked deleted."""
        self._ensure_ready()
        return sum(1 for m in self._messages if not m.deleted)

    def total_count(self) -> int:
        """Number of messages including deleted ones."""
        self._ensure_ready()
        return len(self._messages)

    def get_bytes(self, index: int) -> bytes:
        """Raw bytes of a message, envelope line included."""
        with self.open_message(index) as reader:
            return reader.read()

    def get(self, index: int, encoding: Optional[str] = None) -> str:
        """
        Message content decoded as text.

        Args:
            index: Message index
            encoding: Overrides the mailbox default encoding

        Raises:
            MboxNotReadyError: If the mailbox is not loaded
            MessageNotFoundError: If index is out of range or deleted
        """
        return self.get_bytes(index).decode(encoding or self.encoding, errors="replace")

    def open_message(self, index: int) -> ByteRangeReader:
        """Readable binary stream over one message's bytes."""
        message = self._live_message(index)
        return ByteRangeReader(self.path, message.offset, message.size)

    def delete(self, index: int) -> None:
        """
        Mark a message deleted. The file is unchanged until write().

        Raises:
            MessageNotFoundError: If index is out of range or already deleted
        """
        self._live_message(index).mark_deleted()

    def reset(self) -> None:
        """Undo all deletions since the index was built."""
        self._ensure_ready()
        self._messages = [MboxMessage(**m.to_dict()) for m in self._original]

    def write(self, destination: Union[str, Path]) -> int:
        """
        Write all non-deleted messages to destination.

        Args:
            destination: Output path; may be the mailbox's own path

        Returns:
            Number of messages written
        """
        self._ensure_ready()
        destination = Path(destination)
        kept = [m for m in self._messages if not m.deleted]

        fd, temp_name = tempfile.mkstemp(dir=destination.parent, prefix=".mbox-")
        try:
            with os.fdopen(fd, "wb") as out:
                for message in kept:
                    with ByteRangeReader(self.path, message.offset, message.size) as reader:
                        shutil.copyfileobj(reader, out, self.buffer_size)
            os.replace(temp_name, destination)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

        removed = len(self._messages) - len(kept)
        logger.info("Wrote %d messages to %s (%d removed)", len(kept), destination, removed)
        if self.audit_log:
            self.audit_log.log_write(self.path, destination, len(kept), removed)

        if destination.resolve() == self.path.resolve():
            # The old offsets no longer describe the file
            self._saved_index = None
            self._state = MboxState.INIT
            if self.index_repo:
                self.index_repo.delete(self.path)
            self.load()

        return len(kept)

    def export_index(self) -> list[dict]:
        """Index entries as plain dicts, suitable for JSON and saved_index."""
        self._ensure_ready()
        return [m.to_dict() for m in self._messages]

    def get_parsed(
        self,
        index: int,
        skip_text_body: bool = False,
        skip_html_body: bool = False,
        checksum_attachments: bool = False,
    ) -> ParsedEmail:
        """Retrieve and parse a message."""
        return self._parser.parse(
            self.get_bytes(index),
            skip_text_body=skip_text_body,
            skip_html_body=skip_html_body,
            checksum_attachments=checksum_attachments,
        )

    def get_parsed_batch(self, indices: list[int], **options) -> list[ParsedEmail]:
        return [self.get_parsed(index, **options) for index in indices]

    def iterate_parsed(self, **options) -> Iterator[tuple[int, ParsedEmail]]:
        """Yield (index, ParsedEmail) for each non-deleted message."""
        self._ensure_ready()
        for message in list(self._messages):
            if not message.deleted:
                yield message.index, self.get_parsed(message.index, **options)

    def extract_attachments(
        self,
        output_dir: Union[str, Path],
        deduplicate: bool = False,
        sanitize_filenames: bool = True,
        on_conflict: str = "rename",
        message_indices: Optional[list[int]] = None,
        attachment_filter: Optional[Callable[[EmailAttachment, int], bool]] = None,
    ) -> ExtractionResult:
        """
        Write the attachments of the selected messages to output_dir.

        Args:
            output_dir: Destination directory
            deduplicate: Write identical attachments once
            sanitize_filenames: Replace unsafe filename characters
            on_conflict: 'skip', 'overwrite' or 'rename'
            message_indices: Messages to read (default: all non-deleted)
            attachment_filter: Called with (attachment, message index)

        Returns:
            ExtractionResult
        """
        self._ensure_ready()
        if message_indices is None:
            message_indices = [m.index for m in self._messages if not m.deleted]

        attachments: list[EmailAttachment] = []
        for index in message_indices:
            email = self.get_parsed(
                index,
                skip_text_body=True,
                skip_html_body=True,
                checksum_attachments=deduplicate,
            )
            for attachment in email.attachments:
                if attachment_filter is None or attachment_filter(attachment, index):
                    attachments.append(attachment)

        result = AttachmentExtractor().extract(
            attachments,
            Path(output_dir),
            deduplicate=deduplicate,
            sanitize_filenames=sanitize_filenames,
            on_conflict=on_conflict,
        )

        if self.audit_log:
            self.audit_log.log_event(
                "attachments_extracted",
                self.path,
                {"output_dir": str(output_dir), "extracted": result.extracted},
            )
        return result

    def _scan(self) -> list[MboxMessage]:
        scanner = BoundaryScanner(strict=self.strict)
        try:
            with open(self.path, "rb") as f:
                return build_index(iter_file_chunks(f, self.buffer_size), scanner=scanner)
        except FormatValidationError as e:
            self._record_anomaly("format_validation_failure", str(e))
            raise

    def _restore(self, entries: list[dict]) -> list[MboxMessage]:
        result = self._validator.validate_saved_index(entries, self.path.stat().st_size)
        if not result.is_valid:
            logger.warning("Rejected saved index for %s: %s", self.path, result.error_details)
            self._record_anomaly(result.anomaly_type, result.error_details, result.message_index)
            raise InvalidIndexError(result.anomaly_type, result.error_details)

        return [MboxMessage.from_dict(entry) for entry in entries]

    def _record_anomaly(
        self, anomaly_type: str, error_details: str, message_index: Optional[int] = None
    ) -> None:
        if self.audit_log:
            self.audit_log.log_validation_failure(self.path, anomaly_type, error_details)
        self._validator.create_anomaly_record(
            anomaly_type, self.path, message_index, error_details
        )

    def _ensure_ready(self) -> None:
        if self._state != MboxState.READY:
            raise MboxNotReadyError(self._state)

    def _live_message(self, index: int) -> MboxMessage:
        self._ensure_ready()
        if index < 0 or index >= len(self._messages):
            raise MessageNotFoundError(index, "out-of-bounds")

        message = self._messages[index]
        if message.deleted:
            raise MessageNotFoundError(index, "deleted")
        return message
