"""Data persistence layer"""

from .audit_log import AuditLog
from .database import DatabaseConnection, IndexAnomalyRepository, MessageIndexRepository

__all__ = [
    "DatabaseConnection",
    "MessageIndexRepository",
    "IndexAnomalyRepository",
    "AuditLog",
]
