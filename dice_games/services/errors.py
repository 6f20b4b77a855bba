"""Error handling module for the Dice Games application.

This module provides:
- Custom exception classes for storage, validation and configuration errors
- Localized user-facing messages for storage failures
- A centralized error handling service that logs technical details
"""

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

log = structlog.stdlib.get_logger()

DEFAULT_LOCALE = "ja"

# User-facing message catalog, keyed by locale then message id
MESSAGES: dict[str, dict[str, str]] = {
    "ja": {
        "save_failed": "記録の保存に失敗しました",
        "clear_failed": "記録の削除に失敗しました",
        "storage_full": "ストレージの容量が不足しています",
        "check_storage": "ストレージの設定と空き容量を確認してください",
        "clear_old_records": "不要な記録を削除してください",
        "retry_later": "しばらくしてから再度お試しください",
        "storage_unavailable": "ストレージにアクセスできませんでした",
    },
    "en": {
        "save_failed": "Failed to save the record",
        "clear_failed": "Failed to delete the records",
        "storage_full": "The storage quota has been exceeded",
        "check_storage": "Check the storage location and free space",
        "clear_old_records": "Delete records you no longer need",
        "retry_later": "Try again in a few moments",
        "storage_unavailable": "The storage could not be accessed",
    },
}


def localized_message(message_id: str, locale: str = DEFAULT_LOCALE) -> str:
    """Look up a user-facing message, falling back to the default locale."""
    catalog = MESSAGES.get(locale, MESSAGES[DEFAULT_LOCALE])
    return catalog.get(message_id, MESSAGES[DEFAULT_LOCALE][message_id])


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""
    STORAGE = "storage"
    VALIDATION = "validation"
    CONTENT = "content"
    CONFIGURATION = "configuration"
    UNEXPECTED = "unexpected"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ErrorContext:
    """Context information for an error."""
    operation: str
    component: str
    details: dict[str, Any]


@dataclass(frozen=True)
class UserFriendlyError:
    """User-friendly error representation with suggested actions."""
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    suggested_actions: list[str]
    technical_details: str | None = None
    recoverable: bool = True


class AppError(Exception):
    """Base exception class for application errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNEXPECTED,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        suggested_actions: list[str] | None = None,
        technical_details: str | None = None,
        recoverable: bool = True,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.suggested_actions = suggested_actions or []
        self.technical_details = technical_details
        self.recoverable = recoverable
        self.context = context

    def to_user_friendly(self) -> UserFriendlyError:
        """Convert to user-friendly error representation."""
        return UserFriendlyError(
            message=self.message,
            category=self.category,
            severity=self.severity,
            suggested_actions=self.suggested_actions,
            technical_details=self.technical_details,
            recoverable=self.recoverable,
        )


class QuotaExceededError(OSError):
    """Raised by a key-value store when a write would exceed its quota."""

    def __init__(self, required_bytes: int, quota_bytes: int) -> None:
        super().__init__(f"Storage quota exceeded: {required_bytes} > {quota_bytes} bytes")
        self.required_bytes = required_bytes
        self.quota_bytes = quota_bytes


class StoreCorruptedError(OSError):
    """Raised when a write would have to rewrite a store file it cannot parse."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Store file {path} is unreadable: {reason}")
        self.path = path
        self.reason = reason


class StorageWriteError(AppError):
    """Exception for a rejected write or delete on the record store."""

    _MESSAGE_IDS = {
        "save": "save_failed",
        "clear": "clear_failed",
    }

    def __init__(
        self,
        operation: str,
        game_slug: str | None = None,
        original_error: Exception | None = None,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        message = localized_message(self._MESSAGE_IDS.get(operation, "save_failed"), locale)

        if isinstance(original_error, QuotaExceededError):
            suggested_actions = [
                localized_message("storage_full", locale),
                localized_message("clear_old_records", locale),
            ]
        else:
            suggested_actions = [
                localized_message("check_storage", locale),
                localized_message("retry_later", locale),
            ]

        technical_details = f"Operation: {operation}"
        if game_slug:
            technical_details += f"\nGame: {game_slug}"
        if original_error:
            technical_details += f"\nError: {type(original_error).__name__}: {str(original_error)}"

        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.ERROR,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.operation = operation
        self.game_slug = game_slug
        self.original_error = original_error
        self.locale = locale


class ValidationError(AppError):
    """Exception for validation-related errors."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        constraints: list[str] | None = None,
    ) -> None:
        suggested_actions = ["Review the input requirements"]
        if constraints:
            suggested_actions.extend([f"Ensure: {c}" for c in constraints])

        technical_details = None
        if field:
            technical_details = f"Field: {field}"
        if value is not None:
            value_str = str(value)[:100]  # Truncate long values
            technical_details = (technical_details or "") + f"\nValue: {value_str}"

        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.WARNING,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.field = field
        self.value = value
        self.constraints = constraints or []


class ContentValidationError(ValidationError):
    """A game content document failed schema validation.

    Aborts the whole catalog load; it is never recovered per document.
    """

    def __init__(self, source: str, errors: list[str]) -> None:
        fields = sorted({e.split(":", 1)[0] for e in errors})
        super().__init__(
            message=f"Invalid game content in {source}: {'; '.join(errors)}",
            field=", ".join(fields) if fields else None,
            constraints=errors,
        )
        self.category = ErrorCategory.CONTENT
        self.severity = ErrorSeverity.CRITICAL
        self.recoverable = False
        self.technical_details = f"Document: {source}\n" + "\n".join(errors)
        self.source = source
        self.errors = errors


class ConfigurationError(AppError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        current_value: Any = None,
        expected: str | None = None,
    ) -> None:
        suggested_actions = [
            "Check the configuration settings",
            "Reset to default values if needed",
        ]
        if expected:
            suggested_actions.append(f"Expected: {expected}")

        technical_details = None
        if setting:
            technical_details = f"Setting: {setting}"
        if current_value is not None:
            technical_details = (technical_details or "") + f"\nCurrent: {current_value}"

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.ERROR,
            suggested_actions=suggested_actions,
            technical_details=technical_details,
            recoverable=True,
        )
        self.setting = setting
        self.current_value = current_value
        self.expected = expected


# Operations whose OSErrors are record writes, mapped to StorageWriteError operations
_RECORD_OPERATIONS = {
    "save": "save",
    "save_record": "save",
    "clear": "clear",
    "clear_records": "clear",
}


class ErrorHandlingService:
    """Centralized error handling service.

    This service provides:
    - Error classification and user-friendly message generation
    - Error logging with technical details
    - A bounded history of recent errors
    """

    def __init__(self, max_history_size: int = 100) -> None:
        self._error_history: list[tuple[float, AppError]] = []
        self._max_history_size = max_history_size
        log.info("Error handling service initialized")

    def handle_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None = None,
    ) -> UserFriendlyError:
        """Handle an error and return a user-friendly representation.

        Args:
            error: The exception that occurred
            operation: The operation being performed
            component: The component where the error occurred
            context: Additional context information

        Returns:
            User-friendly error representation
        """
        app_error = self._convert_to_app_error(error, operation, component, context)

        self._log_error(app_error, operation, component, context)

        self._error_history.append((time.time(), app_error))
        if len(self._error_history) > self._max_history_size:
            self._error_history.pop(0)

        return app_error.to_user_friendly()

    def _convert_to_app_error(
        self,
        error: Exception,
        operation: str,
        component: str,
        context: dict[str, Any] | None,
    ) -> AppError:
        """Convert a standard exception to an AppError."""
        if isinstance(error, AppError):
            return error

        # Storage errors
        if isinstance(error, OSError):
            locale = context.get("locale", DEFAULT_LOCALE) if context else DEFAULT_LOCALE
            record_operation = _RECORD_OPERATIONS.get(operation)
            if record_operation:
                return StorageWriteError(
                    operation=record_operation,
                    game_slug=context.get("game_slug") if context else None,
                    original_error=error,
                    locale=locale,
                )
            return AppError(
                message=localized_message("storage_unavailable", locale),
                category=ErrorCategory.STORAGE,
                severity=ErrorSeverity.ERROR,
                suggested_actions=[
                    localized_message("check_storage", locale),
                    localized_message("retry_later", locale),
                ],
                technical_details=f"Operation: {operation}\nError: {type(error).__name__}: {str(error)}",
                recoverable=True,
                context=ErrorContext(operation=operation, component=component, details=context or {}),
            )

        # JSON errors (a ValueError subclass, so checked first)
        if isinstance(error, json.JSONDecodeError):
            return ValidationError(
                message="Invalid JSON format. The data could not be parsed.",
                field="json_content",
            )

        # Validation errors
        if isinstance(error, ValueError):
            return ValidationError(
                message=str(error),
                field=context.get("field") if context else None,
                value=context.get("value") if context else None,
            )
        if isinstance(error, TypeError):
            return ValidationError(
                message=f"Invalid data type: {str(error)}",
                field=context.get("field") if context else None,
            )

        return AppError(
            message="An unexpected error occurred. Please try again.",
            category=ErrorCategory.UNEXPECTED,
            severity=ErrorSeverity.ERROR,
            technical_details=f"{type(error).__name__}: {str(error)}",
            recoverable=True,
            context=ErrorContext(
                operation=operation,
                component=component,
                details=context or {},
            ),
        )

    def _log_error(
        self,
        error: AppError,
        operation: str,
        component: str,
        context: dict[str, Any] | None,
    ) -> None:
        """Log error with full technical details."""
        log_method = log.warning if error.severity == ErrorSeverity.WARNING else log.error

        log_method(
            "Error occurred",
            error_message=error.message,
            category=error.category.value,
            severity=error.severity.value,
            operation=operation,
            component=component,
            technical_details=error.technical_details,
            recoverable=error.recoverable,
            context=context,
        )

    def get_recent_errors(self, count: int = 10) -> list[AppError]:
        """Get recent errors from history, oldest first."""
        recent = self._error_history[-count:] if self._error_history else []
        return [error for _, error in recent]

    def get_error_count_by_category(self) -> dict[ErrorCategory, int]:
        counts: dict[ErrorCategory, int] = {}
        for _, error in self._error_history:
            counts[error.category] = counts.get(error.category, 0) + 1
        return counts

    def create_user_message(
        self,
        error: UserFriendlyError,
        include_suggestions: bool = True,
    ) -> str:
        """Create a formatted user message from an error.

        Args:
            error: The user-friendly error
            include_suggestions: Whether to include suggested actions

        Returns:
            Formatted message string
        """
        parts = [error.message]

        if include_suggestions and error.suggested_actions:
            parts.append("")
            for action in error.suggested_actions[:3]:  # Limit to 3 suggestions
                parts.append(f"  • {action}")

        return "\n".join(parts)


# Global error handling service instance
_error_service: ErrorHandlingService | None = None


def get_error_service() -> ErrorHandlingService:
    """Get the global error handling service instance."""
    global _error_service
    if _error_service is None:
        _error_service = ErrorHandlingService()
    return _error_service


def handle_error(
    error: Exception,
    operation: str,
    component: str,
    context: dict[str, Any] | None = None,
) -> UserFriendlyError:
    """Convenience function to handle errors using the global service."""
    return get_error_service().handle_error(error, operation, component, context)
