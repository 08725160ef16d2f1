"""Data models for mailbox indexing"""

from .index_anomaly import AnomalyType, IndexAnomaly
from .mbox_message import MboxMessage
from .mbox_state import MboxState
from .parsed_email import EmailAttachment, ParsedEmail

__all__ = [
    "MboxMessage",
    "MboxState",
    "IndexAnomaly",
    "AnomalyType",
    "ParsedEmail",
    "EmailAttachment",
]
