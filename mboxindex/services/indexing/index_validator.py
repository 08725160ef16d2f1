"""Validation of mbox files and saved message indexes."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional
from uuid import uuid4

from mboxindex.models.index_anomaly import AnomalyType, IndexAnomaly
from mboxindex.models.mbox_message import MboxMessage
from mboxindex.storage.database import IndexAnomalyRepository

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of index validation."""

    is_valid: bool
    anomaly_type: Optional[str]  # 'range_out_of_bounds', 'offset_out_of_order', etc.
    error_details: Optional[str]
    can_recover: bool  # True if a rescan of the file fixes it
    message_index: Optional[int] = None


class IndexValidator:
    """
    Checks that a saved index still describes an mbox file.

    A saved index is trusted only when its entries are numbered in order,
    their offsets strictly increase, and every byte range fits inside the
    file. Failed checks can be recorded as IndexAnomaly rows.
    """

    def __init__(self, anomaly_repo: Optional[IndexAnomalyRepository] = None):
        """
        Initialize validator.

        Args:
            anomaly_repo: Optional repository for anomaly records
        """
        self.anomaly_repo = anomaly_repo

    def validate_saved_index(self, entries: list[dict], file_size: int) -> ValidationResult:
        """
        Validate saved index entries against the current file size.

        Args:
            entries: Entries as produced by export_index()
            file_size: Size of the mbox file in bytes

        Returns:
            ValidationResult for the first problem found, or a valid result

        Notes:
            - Gaps between ranges are allowed (leading junk, deleted-then-written files)
            - Overlapping ranges are not
        """
        previous: Optional[MboxMessage] = None

        for position, entry in enumerate(entries):
            try:
                message = MboxMessage.from_dict(entry)
            except (KeyError, TypeError, ValueError) as e:
                return self._failure(
                    "malformed_entry", f"Entry {position} is malformed: {e}", position
                )

            if message.index != position:
                return self._failure(
                    "non_contiguous_index",
                    f"Entry {position} has index {message.index}",
                    position,
                )

            if previous is not None and (
                message.offset <= previous.offset or message.offset < previous.end
            ):
                return self._failure(
                    "offset_out_of_order",
                    f"Entry {position} at offset {message.offset} overlaps entry {previous.index}",
                    position,
                )

            if message.end > file_size:
                return self._failure(
                    "range_out_of_bounds",
                    f"Entry {position} ends at {message.end}, file has {file_size} bytes",
                    position,
                )

            previous = message

        return ValidationResult(
            is_valid=True,
            anomaly_type=None,
            error_details=None,
            can_recover=True,
        )

    def validate_mbox_file(self, file_path: Path) -> ValidationResult:
        """
        Validate that an mbox file exists and is readable.

        Args:
            file_path: Path to mbox file

        Returns:
            ValidationResult with validation status
        """
        if not file_path.exists():
            return ValidationResult(
                is_valid=False,
                anomaly_type="file_not_found",
                error_details=f"Mbox file not found: {file_path}",
                can_recover=False,
            )

        if not file_path.is_file():
            return ValidationResult(
                is_valid=False,
                anomaly_type="file_not_found",
                error_details=f"Path is not a file: {file_path}",
                can_recover=False,
            )

        try:
            with open(file_path, "rb") as f:
                f.read(1)
        except OSError as e:
            return ValidationResult(
                is_valid=False,
                anomaly_type="file_not_found",
                error_details=f"Error reading file: {e}",
                can_recover=False,
            )

        return ValidationResult(
            is_valid=True,
            anomaly_type=None,
            error_details=None,
            can_recover=True,
        )

    def create_anomaly_record(
        self,
        anomaly_type: str,
        mbox_path: Path,
        message_index: Optional[int],
        error_details: str,
    ) -> str:
        """
        Create an IndexAnomaly record in the database.

        Args:
            anomaly_type: Type of anomaly (range_out_of_bounds, etc.)
            mbox_path: Path to mbox file
            message_index: Offending entry (if any)
            error_details: Human-readable error description

        Returns:
            anomaly_id: UUID of created anomaly record
        """
        anomaly_id = str(uuid4())

        if self.anomaly_repo:
            anomaly = IndexAnomaly(
                anomaly_id=anomaly_id,
                anomaly_type=self._map_anomaly_type(anomaly_type),
                mbox_path=mbox_path,
                message_index=message_index,
                error_details=error_details,
                timestamp=datetime.now(),
                resolved=False,
            )
            self.anomaly_repo.save(anomaly)

        return anomaly_id

    def get_anomalies_summary(self, mbox_path: Optional[Path] = None) -> dict:
        """
        Summarize recorded anomalies.

        Args:
            mbox_path: Restrict to one mbox file; all unresolved otherwise

        Returns:
            Dictionary with keys total_anomalies, by_type, unresolved
        """
        summary = {
            "total_anomalies": 0,
            "by_type": {},
            "unresolved": 0,
        }

        if not self.anomaly_repo:
            return summary

        if mbox_path:
            anomalies = list(self.anomaly_repo.find_by_mbox_path(mbox_path))
        else:
            anomalies = list(self.anomaly_repo.find_unresolved())

        summary["total_anomalies"] = len(anomalies)
        summary["unresolved"] = sum(1 for a in anomalies if not a.resolved)

        for anomaly in anomalies:
            key = anomaly.anomaly_type.value
            summary["by_type"][key] = summary["by_type"].get(key, 0) + 1

        return summary

    def _failure(self, anomaly_type: str, details: str, message_index: int) -> ValidationResult:
        logger.debug("Saved index rejected: %s", details)
        return ValidationResult(
            is_valid=False,
            anomaly_type=anomaly_type,
            error_details=details,
            can_recover=True,
            message_index=message_index,
        )

    def _map_anomaly_type(self, anomaly_type_str: str) -> AnomalyType:
        """Map string anomaly type to enum."""
        try:
            return AnomalyType(anomaly_type_str)
        except ValueError:
            return AnomalyType.MALFORMED_ENTRY
