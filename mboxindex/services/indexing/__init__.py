"""Message index construction and validation."""

from .index_builder import IndexBuilder, build_index
from .index_validator import IndexValidator, ValidationResult

__all__ = ["IndexBuilder", "build_index", "IndexValidator", "ValidationResult"]
