"""
Infrastructure exceptions for the clicker engine.

Purpose
-------
Define the structured exception hierarchy for infrastructure-level concerns:
configuration errors and save-slot backend failures (file system, Redis,
database). Game-rule violations live in `clicker.modules.shared.exceptions`.

Design Notes
------------
- All infrastructure exceptions inherit from `ClickerInfrastructureException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning (e.g., empty battery)
    INFO = "info"  # Normal operation (e.g., insufficient funds)
    WARNING = "warning"  # Concerning but handled (e.g., fallback catalog)
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # System-level failures requiring immediate action


class ClickerInfrastructureException(Exception):
    """
    Base exception for all infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class ConfigurationError(ClickerInfrastructureException):
    """
    Raised when a configuration key is invalid or missing.

    Args:
        config_key: The configuration key that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "message": message},
            error_code="CONFIG_ERROR",
        )


class SaveSlotError(ClickerInfrastructureException):
    """
    Raised when a save-slot backend fails to read, write or clear.

    Many backend failures are transient (a Redis timeout, a locked SQLite
    file), so the error is retryable by default.

    Args:
        backend: Name of the backend (``file``, ``redis``, ``database``)
        operation: The slot operation that failed
        slot: Slot name
        original_error: The underlying exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    def __init__(
        self,
        backend: str,
        operation: str,
        slot: str,
        original_error: Exception,
    ) -> None:
        self.backend = backend
        self.operation = operation
        self.slot = slot
        self.original_error = original_error
        super().__init__(
            f"Save slot {backend} error during {operation} of '{slot}': {original_error}",
            details={
                "backend": backend,
                "operation": operation,
                "slot": slot,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="SAVE_SLOT_ERROR",
        )
