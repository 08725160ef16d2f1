"""Business logic services"""

from .email_parser import EmailParseError, MessageParser
from .extraction import AttachmentExtractor, ExtractionResult
from .indexing import IndexBuilder, IndexValidator, ValidationResult, build_index
from .mailbox import Mbox
from .scanner import BoundaryScanner, scan_chunks

__all__ = [
    "BoundaryScanner",
    "scan_chunks",
    "IndexBuilder",
    "build_index",
    "IndexValidator",
    "ValidationResult",
    "Mbox",
    "MessageParser",
    "EmailParseError",
    "AttachmentExtractor",
    "ExtractionResult",
]
