"""Attachment extraction."""

from .attachment_extractor import AttachmentExtractor, ExtractionError, ExtractionResult

__all__ = ["AttachmentExtractor", "ExtractionError", "ExtractionResult"]
