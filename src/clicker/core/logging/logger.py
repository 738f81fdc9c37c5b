"""
Logging for the clicker.

Purpose
-------
One root configuration for the whole process: records go through a bounded
queue to a console handler and a daily JSON file, so handlers never block
the event loop. Every record is stamped with the current game context
(session, action, correlation id) taken from a ContextVar.

Usage
-----
>>> setup_logging()
>>> logger = get_logger(__name__)
>>> async with LogContext(session_id=session.session_id, action="click"):
...     logger.info("Click applied", extra={"income": 3})

Notes
-----
- Importing this module configures nothing; `setup_logging()` is called by
  the entrypoint only, so tests keep pytest's own capture handlers.
- The context keys (session_id, action, correlation_id, component,
  operation) are owned by `ContextFilter`; pass other fields via ``extra``.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from typing import Any, Dict, List, Optional

from clicker.core.config.config import Config, Environment

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(session_id)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%H:%M:%S"
LOG_FILE_NAME = "clicker.json.log"
QUEUE_SIZE = 10_000
QUIET_LOGGERS = ("discord", "asyncio", "aiohttp", "aiosqlite", "sqlalchemy.engine")

CONTEXT_KEYS = ("session_id", "action", "correlation_id", "component", "operation")

_context: ContextVar[Dict[str, Any]] = ContextVar("clicker_log_context", default={})
_listener: Optional[QueueListener] = None


# ============================================================================
# Record enrichment and formatting
# ============================================================================


class ContextFilter(logging.Filter):
    """Copy the active `LogContext` onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _context.get()
        for key in CONTEXT_KEYS:
            setattr(record, key, context.get(key, "-"))
        if record.component == "-":
            record.component = record.name.rsplit(".", 2)[-2] if "." in record.name else record.name
        return True


class ColoredFormatter(logging.Formatter):
    COLORS = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[94m",
        logging.WARNING: "\033[93m",
        logging.ERROR: "\033[91m",
        logging.CRITICAL: "\033[1;91m",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        text = super().format(record)
        color = self.COLORS.get(record.levelno)
        return f"{color}{text}\033[0m" if color else text


class JSONFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields land under "extra"."""

    _RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": f"{record.module}:{record.lineno}",
        }
        payload.update(
            {key: getattr(record, key) for key in CONTEXT_KEYS if getattr(record, key, "-") != "-"}
        )
        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._RESERVED and key not in CONTEXT_KEYS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class _DroppingQueueHandler(QueueHandler):
    """Drop records instead of blocking when the queue is full."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            sys.stderr.write(f"log queue full, dropped: {record.getMessage()}\n")


# ============================================================================
# Setup / shutdown
# ============================================================================


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    use_json = Config.LOG_JSON
    if use_json is None:
        use_json = Config.ENVIRONMENT is Environment.PRODUCTION

    if use_json:
        handler.setFormatter(JSONFormatter())
    elif Config.LOG_COLORS and sys.stdout.isatty():
        handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT))
    return handler


def _file_handler(level: int) -> logging.Handler:
    Config.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        Config.LOGS_DIR / LOG_FILE_NAME,
        when="midnight",
        backupCount=1,
        encoding="utf-8",
        utc=True,
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(file_output: bool = True) -> None:
    """Install the queue-backed root configuration. Idempotent."""
    global _listener
    if _listener is not None:
        return

    level = logging.getLevelName(Config.LOG_LEVEL)
    handlers: List[logging.Handler] = [_console_handler(level)]
    if file_output:
        handlers.append(_file_handler(level))

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(QUEUE_SIZE)
    _listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
    _listener.start()

    queue_handler = _DroppingQueueHandler(log_queue)
    # Enrich on the producing task, where the ContextVar is set.
    queue_handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(queue_handler)
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    get_logger(__name__).info(
        "Logging initialized",
        extra={"level": Config.LOG_LEVEL, "logs_dir": str(Config.LOGS_DIR) if file_output else None},
    )


def shutdown_logging() -> None:
    """Flush the queue and detach every root handler."""
    global _listener
    if _listener is None:
        return
    _listener.stop()
    _listener = None

    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Scope log enrichment to a block; works with ``with`` and ``async with``.

    Nested contexts inherit the enclosing fields and correlation id.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        action: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        parent = _context.get()
        self.context: Dict[str, Any] = dict(parent)
        self.context["correlation_id"] = (
            correlation_id or parent.get("correlation_id") or uuid.uuid4().hex[:8]
        )
        given = {"session_id": session_id, "action": action, "component": component, "operation": operation}
        self.context.update({key: value for key, value in given.items() if value is not None})
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> LogContext:
        self._token = _context.set(self.context)
        return self

    def __exit__(self, *exc: object) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *exc: object) -> None:
        self.__exit__(*exc)
