"""Configuration models for mailbox indexing."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ScannerConfig(BaseModel):
    """Settings for boundary scanning and message retrieval."""

    strict: bool = False
    buffer_size: int = 65536
    encoding: str = "utf-8"

    @field_validator("buffer_size")
    def validate_buffer_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("buffer_size must be positive")
        return v

    @field_validator("encoding")
    def validate_encoding(cls, v: str) -> str:
        import codecs

        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown encoding: {v}")
        return v


class ExtractionConfig(BaseModel):
    """Defaults for attachment extraction."""

    deduplicate: bool = False
    sanitize_filenames: bool = True
    on_conflict: Literal["skip", "overwrite", "rename"] = "rename"


class StorageConfig(BaseModel):
    """Storage configuration."""

    database_path: str = "~/.mboxindex/index.db"
    audit_log_path: str = "~/.mboxindex/logs/audit.log"

    def get_database_path(self) -> Path:
        """Get expanded database path."""
        return Path(self.database_path).expanduser()

    def get_audit_log_path(self) -> Path:
        """Get expanded audit log path."""
        return Path(self.audit_log_path).expanduser()


class AppConfig(BaseModel):
    """Main application configuration."""

    schema_version: str = "1.0"
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @field_validator("schema_version")
    def validate_schema_version(cls, v: str) -> str:
        if not v:
            raise ValueError("schema_version is required")
        return v
