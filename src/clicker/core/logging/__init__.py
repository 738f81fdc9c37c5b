"""Structured logging."""

from clicker.core.logging.logger import (
    LogContext,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LogContext",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
