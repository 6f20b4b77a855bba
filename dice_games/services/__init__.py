"""Service layer for game content, dice and record persistence."""

from .config import ConfigurationService, ValidationResult
from .content import ContentService, validate_metadata
from .dice import (
    calculate_zorome_probability,
    format_probability,
    format_probability_as_fraction,
    is_zorome,
    roll_dice,
    roll_multiple_dice,
)
from .errors import (
    AppError,
    ConfigurationError,
    ContentValidationError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    QuotaExceededError,
    StorageWriteError,
    StoreCorruptedError,
    UserFriendlyError,
    ValidationError,
    get_error_service,
    handle_error,
)
from .kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from .record_store import KeyValueRecordStore, RecordStore

__all__ = [
    "AppError",
    "ConfigurationError",
    "ConfigurationService",
    "ContentService",
    "ContentValidationError",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueRecordStore",
    "KeyValueStore",
    "QuotaExceededError",
    "RecordStore",
    "StorageWriteError",
    "StoreCorruptedError",
    "UserFriendlyError",
    "ValidationError",
    "ValidationResult",
    "calculate_zorome_probability",
    "format_probability",
    "format_probability_as_fraction",
    "get_error_service",
    "handle_error",
    "is_zorome",
    "roll_dice",
    "roll_multiple_dice",
    "validate_metadata",
]
