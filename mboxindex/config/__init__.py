"""Configuration management"""

from .config_loader import ConfigError, ConfigLoader
from .settings import AppConfig, ExtractionConfig, ScannerConfig, StorageConfig

__all__ = [
    "ConfigLoader",
    "ConfigError",
    "AppConfig",
    "ScannerConfig",
    "ExtractionConfig",
    "StorageConfig",
]
