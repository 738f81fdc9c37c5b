"""
Domain exceptions for the clicker engine.

Purpose
-------
Define the structured, domain-specific exception hierarchy for game logic.
Services raise these for rule violations; the session engine translates the
player-facing ones into `ActionResult` outcomes so no error ever ends a
session.

Taxonomy
--------
- `InsufficientFundsError`: purchase attempted without enough currency.
- `UnknownBadgeError`: badge id not present in the catalog.
- `BatteryEmptyError`: click attempted with an empty battery.
- `CatalogUnavailableError`: catalog fetch failed; recovered by fallback.
- `CorruptSaveError`: persisted blob unusable; recovered by defaults.

Design Notes
------------
- All domain exceptions inherit from `ClickerDomainException` and share the
  `ErrorSeverity` scale with infrastructure errors.
- Helper functions (`is_transient_error`, `get_error_severity`, `should_alert`)
  understand both hierarchies.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from clicker.core.exceptions import ClickerInfrastructureException, ErrorSeverity


class ClickerDomainException(Exception):
    """
    Base exception for all domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise ClickerDomainException("Upgrade failed", {"track": "click"})
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
        self.details: Dict[str, Any] = dict(details or {})
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
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
            f"severity={self.severity.value!r}"
            ")"
        )


class InsufficientFundsError(ClickerDomainException):
    """
    Raised when a purchase costs more currency than the player holds.

    Expected during normal play; rejected locally with no state change.

    Args:
        required: Amount required for the purchase
        current: Currency the player currently has
        item: What was being bought (``upgrade:click``, ``badge:rare_1``)
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, required: int, current: int, item: Optional[str] = None) -> None:
        self.required = required
        self.current = current
        self.item = item
        target = f" for {item}" if item else ""
        super().__init__(
            f"Insufficient currency{target}: need {required:,}, have {current:,}",
            details={
                "item": item,
                "required": required,
                "current": current,
                "deficit": required - current,
            },
            error_code="INSUFFICIENT_FUNDS",
        )


class UnknownBadgeError(ClickerDomainException):
    """Raised when a badge id is not present in the loaded catalog."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, badge_id: str) -> None:
        self.badge_id = badge_id
        super().__init__(
            f"Badge not found: {badge_id}",
            details={"badge_id": badge_id},
            error_code="UNKNOWN_BADGE",
        )


class BatteryEmptyError(ClickerDomainException):
    """
    Raised when the primary action is attempted with no battery left.

    Callers are expected to check `can_click` first; the action is refused
    rather than silently ignored.
    """

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(
            "Battery is empty",
            details={"current": 0, "capacity": capacity},
            error_code="BATTERY_EMPTY",
        )


class CatalogUnavailableError(ClickerDomainException):
    """
    Raised when the badge catalog cannot be fetched or parsed.

    Args:
        source: Description of the catalog source (URL or path)
        reason: Why the catalog is unusable
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(
            f"Badge catalog unavailable from {source}: {reason}",
            details={"source": source, "reason": reason},
            error_code="CATALOG_UNAVAILABLE",
        )


class CorruptSaveError(ClickerDomainException):
    """Raised when a persisted blob cannot be decoded into a valid state."""

    DEFAULT_SEVERITY = ErrorSeverity.WARNING

    def __init__(self, reason: str, field: Optional[str] = None) -> None:
        self.reason = reason
        self.field = field
        super().__init__(
            f"Corrupt save data: {reason}",
            details={"reason": reason, "field": field},
            error_code="CORRUPT_SAVE",
        )


# Utility functions for exception handling patterns

_STRUCTURED = (ClickerDomainException, ClickerInfrastructureException)


def is_transient_error(exc: Exception) -> bool:
    """True if the error is retryable."""
    if isinstance(exc, _STRUCTURED):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    if isinstance(exc, _STRUCTURED):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """True if severity is ERROR or CRITICAL."""
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
