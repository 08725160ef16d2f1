"""Message-boundary scanning for mbox streams."""

from .base import FormatValidationError, MboxError, UsageError
from .boundary_scanner import (
    DEFAULT_CHUNK_SIZE,
    DELIMITER,
    DELIMITER_START,
    BoundaryScanner,
    iter_file_chunks,
    scan_chunks,
)

__all__ = [
    "BoundaryScanner",
    "scan_chunks",
    "iter_file_chunks",
    "DELIMITER",
    "DELIMITER_START",
    "DEFAULT_CHUNK_SIZE",
    "MboxError",
    "FormatValidationError",
    "UsageError",
]
