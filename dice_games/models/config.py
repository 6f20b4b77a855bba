"""Configuration data models."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """Application configuration settings."""
    content_directory: Path
    store_path: Path
    log_level: str
    locale: str = "ja"  # Language for user-facing storage messages
    storage_quota_bytes: int = 5 * 1024 * 1024
