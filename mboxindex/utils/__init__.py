"""Utility functions"""

from .path_utils import (
    extension_for_content_type,
    normalize_message_id,
    sanitize_filename,
    unique_path,
)

__all__ = [
    "normalize_message_id",
    "sanitize_filename",
    "extension_for_content_type",
    "unique_path",
]
