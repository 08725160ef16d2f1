"""Writing message attachments to disk."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from mboxindex.models.parsed_email import EmailAttachment
from mboxindex.services.scanner.base import MboxError
from mboxindex.utils.path_utils import extension_for_content_type, sanitize_filename, unique_path

logger = logging.getLogger(__name__)

CONFLICT_POLICIES = ("skip", "overwrite", "rename")


class ExtractionError(MboxError):
    """Raised when an attachment cannot be given a destination path."""

    pass


@dataclass
class ExtractionResult:
    """Counters and written paths of one extraction run."""

    total_attachments: int = 0
    extracted: int = 0
    skipped: int = 0
    deduplicated: int = 0
    files: list[Path] = field(default_factory=list)


class AttachmentExtractor:
    """
    Writes attachments into a directory.

    Deduplication compares SHA-256 checksums, so attachments must be parsed
    with checksums enabled for it to take effect. Seen checksums persist
    across calls until reset().
    """

    def __init__(self):
        self._seen_checksums: set[str] = set()

    def extract(
        self,
        attachments: Iterable[EmailAttachment],
        output_dir: Path,
        deduplicate: bool = False,
        sanitize_filenames: bool = True,
        on_conflict: str = "rename",
        attachment_filter: Optional[Callable[[EmailAttachment], bool]] = None,
    ) -> ExtractionResult:
        """
        Write attachments to output_dir.

        Args:
            attachments: Attachments to write
            output_dir: Destination directory (created if missing)
            deduplicate: Skip attachments whose checksum was already written
            sanitize_filenames: Replace unsafe filename characters
            on_conflict: 'skip', 'overwrite' or 'rename' when the file exists
            attachment_filter: Only write attachments for which this returns True

        Returns:
            ExtractionResult
        """
        if on_conflict not in CONFLICT_POLICIES:
            raise ValueError(f"Invalid conflict policy: {on_conflict}")

        output_dir.mkdir(parents=True, exist_ok=True)
        result = ExtractionResult()

        for attachment in attachments:
            result.total_attachments += 1

            if attachment_filter is not None and not attachment_filter(attachment):
                result.skipped += 1
                continue

            if deduplicate and attachment.checksum:
                if attachment.checksum in self._seen_checksums:
                    result.deduplicated += 1
                    continue
                self._seen_checksums.add(attachment.checksum)

            filename = attachment.filename or self._infer_filename(attachment)
            if sanitize_filenames:
                filename = sanitize_filename(filename)

            path = self._resolve_path(output_dir, filename, on_conflict)
            if path is None:
                result.skipped += 1
                continue

            path.write_bytes(attachment.content)
            result.files.append(path)
            result.extracted += 1

        logger.debug(
            "Extracted %d of %d attachments into %s",
            result.extracted,
            result.total_attachments,
            output_dir,
        )
        return result

    def reset(self) -> None:
        """Forget checksums seen so far."""
        self._seen_checksums.clear()

    def _infer_filename(self, attachment: EmailAttachment) -> str:
        return f"attachment{extension_for_content_type(attachment.content_type)}"

    def _resolve_path(self, output_dir: Path, filename: str, on_conflict: str) -> Optional[Path]:
        path = output_dir / filename
        if not path.exists() or on_conflict == "overwrite":
            return path
        if on_conflict == "skip":
            return None

        try:
            return unique_path(output_dir, filename)
        except FileExistsError as e:
            raise ExtractionError(str(e)) from e
