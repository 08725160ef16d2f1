"""Index anomaly data model."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class AnomalyType(Enum):
    """Type of index anomaly."""

    FILE_NOT_FOUND = "file_not_found"
    NON_CONTIGUOUS_INDEX = "non_contiguous_index"
    OFFSET_OUT_OF_ORDER = "offset_out_of_order"
    RANGE_OUT_OF_BOUNDS = "range_out_of_bounds"
    MALFORMED_ENTRY = "malformed_entry"
    FORMAT_VALIDATION_FAILURE = "format_validation_failure"


@dataclass
class IndexAnomaly:
    """
    Records a problem found while building or restoring a mailbox index.

    Attributes:
        anomaly_id: Unique anomaly identifier
        anomaly_type: Kind of problem
        mbox_path: Path to the mbox file
        message_index: Offending index entry (if any)
        error_details: Human-readable error description
        timestamp: When anomaly was detected
        resolved: Whether anomaly was resolved
    """

    anomaly_id: str
    anomaly_type: AnomalyType
    mbox_path: Path
    message_index: Optional[int]
    error_details: str
    timestamp: datetime
    resolved: bool = False

    def __post_init__(self):
        """Validate fields after initialization."""
        if self.anomaly_type == AnomalyType.FILE_NOT_FOUND:
            # Whole-file anomalies have no entry
            self.message_index = None
