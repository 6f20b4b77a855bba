"""Configuration service for managing application settings."""

import json
from pathlib import Path

import structlog

from ..models import AppConfig
from .content import DEFAULT_CONTENT_DIRECTORY
from .errors import MESSAGES, ConfigurationError

log = structlog.stdlib.get_logger()

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


class ConfigurationService:
    """Service for managing application configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path = config_path or Path.home() / ".config" / "dice-games" / "config.json"
        log.info("Configuration service initialized", config_path=str(self.config_path))

    def load_config(self) -> AppConfig:
        """Load configuration from file or return default configuration."""
        if not self.config_path.exists():
            log.info("Configuration file not found, using defaults")
            return self._get_default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data: dict[str, str | int | None] = json.load(f)

            config = self._dict_to_config(data)
            validation_result = self.validate_config(config)

            if not validation_result.is_valid:
                log.warning("Invalid configuration loaded, using defaults", errors=validation_result.errors)
                return self._get_default_config()

            log.info("Configuration loaded successfully")
            return config

        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("Failed to load configuration, using defaults", error=str(e))
            return self._get_default_config()

    def save_config(self, config: AppConfig) -> None:
        """Save configuration to file."""
        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            raise ConfigurationError(
                f"Invalid configuration: {', '.join(validation_result.errors)}",
                current_value=", ".join(validation_result.errors),
            )

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            data = self._config_to_dict(config)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            log.info("Configuration saved successfully")

        except OSError as e:
            log.error("Failed to save configuration", error=str(e))
            raise

    def validate_config(self, config: AppConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        if not isinstance(config.content_directory, Path):
            errors.append("content_directory must be a Path object")

        if not isinstance(config.store_path, Path):
            errors.append("store_path must be a Path object")
        elif not config.store_path.is_absolute():
            errors.append("store_path must be an absolute path")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")

        if config.locale not in MESSAGES:
            errors.append(f"locale must be one of: {', '.join(MESSAGES)}")

        if (
            isinstance(config.storage_quota_bytes, bool)
            or not isinstance(config.storage_quota_bytes, int)
            or config.storage_quota_bytes < 1
        ):
            errors.append("storage_quota_bytes must be a positive integer")

        return ValidationResult(len(errors) == 0, errors)

    def _get_default_config(self) -> AppConfig:
        """Get default configuration."""
        return AppConfig(
            content_directory=DEFAULT_CONTENT_DIRECTORY,
            store_path=Path.home() / ".local" / "share" / "dice-games" / "records.json",
            log_level="INFO",
            locale="ja",
            storage_quota_bytes=5 * 1024 * 1024,
        )

    def _config_to_dict(self, config: AppConfig) -> dict[str, str | int]:
        """Convert AppConfig to dictionary for JSON serialization."""
        return {
            "content_directory": str(config.content_directory),
            "store_path": str(config.store_path),
            "log_level": config.log_level,
            "locale": config.locale,
            "storage_quota_bytes": config.storage_quota_bytes,
        }

    def _dict_to_config(self, data: dict[str, str | int | None]) -> AppConfig:
        """Convert dictionary to AppConfig, filling missing optional values."""
        defaults = self._get_default_config()

        content_raw = data.get("content_directory")
        quota_raw = data.get("storage_quota_bytes", defaults.storage_quota_bytes)

        return AppConfig(
            content_directory=Path(str(content_raw)) if content_raw else defaults.content_directory,
            store_path=Path(str(data["store_path"])),
            log_level=str(data["log_level"]) if isinstance(data["log_level"], str) else "INFO",
            locale=str(data.get("locale", defaults.locale)),
            storage_quota_bytes=int(quota_raw) if isinstance(quota_raw, int) else defaults.storage_quota_bytes,
        )
