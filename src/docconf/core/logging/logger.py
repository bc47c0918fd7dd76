"""
docconf logging subsystem.

Purpose
-------
Structured, non-blocking logging shared by every docconf module:

- JSON lines in production, colored text on a development terminal.
- Records carry the identity of the lookup they were emitted for
  (`wiki_id`, `user`, `correlation_id`, `component`, `operation`), taken from
  a ContextVar that `LogContext` and the execution context bind.
- A bounded queue sits between loggers and handlers; a full queue drops the
  record and counts it instead of blocking a configuration lookup.

Usage
-----
>>> from docconf.core.logging import get_logger, LogContext
>>> logger = get_logger(__name__)
>>> with LogContext(wiki_id="xwiki", operation="lookup"):
...     logger.info("Property resolved", extra={"key": "color"})

Dependencies
------------
- docconf.core.config.config.Config
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Dict, Optional

from docconf.core.config.config import Config

CONTEXT_FIELDS = ("wiki_id", "user", "correlation_id", "component", "operation")

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_QUEUE_MAX_SIZE = 10_000

_log_context: ContextVar[Dict[str, Any]] = ContextVar("docconf_log_context", default={})


@dataclass(slots=True)
class _LoggingState:
    log_queue: Optional["queue.Queue[logging.LogRecord]"] = None
    listener: Optional[QueueListener] = None
    handler: Optional[QueueHandler] = None
    enqueued: int = 0
    dropped: int = 0

    @property
    def initialized(self) -> bool:
        return self.handler is not None


@dataclass(frozen=True, slots=True)
class LoggingHealth:
    initialized: bool
    queue_size: int
    queue_max_size: int
    records_enqueued: int
    records_dropped: int


_state = _LoggingState()


def _level() -> int:
    return getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)


def _json_output() -> bool:
    return Config.is_production() if Config.LOG_JSON is None else Config.LOG_JSON


# ============================================================================
# Filters & formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Stamp the bound log context onto each record ("N/A" when unbound)."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _log_context.get()
        for name in CONTEXT_FIELDS:
            setattr(record, name, context.get(name) or "N/A")
        if record.component == "N/A":
            # "docconf.sources.document" -> "docconf"
            record.component = record.name.partition(".")[0]
        return True


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS: Dict[int, str] = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[94m",
        logging.WARNING: "\033[93m",
        logging.ERROR: "\033[91m",
        logging.CRITICAL: "\033[91m\033[1m",
    }

    def formatMessage(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().formatMessage(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        return f"{color}{line}\033[0m" if color else line


class JSONFormatter(logging.Formatter):
    """One JSON object per record; unknown attributes land under "extra"."""

    _RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        payload.update(
            (name, getattr(record, name))
            for name in CONTEXT_FIELDS
            if getattr(record, name, "N/A") not in (None, "N/A")
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in self._RESERVED and key not in CONTEXT_FIELDS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra
        return json.dumps(payload, ensure_ascii=False, default=str)


class _DroppingQueueHandler(QueueHandler):
    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _state.dropped += 1
            return
        _state.enqueued += 1


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if _json_output():
        handler.setFormatter(JSONFormatter())
    elif Config.LOG_COLORS and sys.stdout.isatty():
        handler.setFormatter(ColoredFormatter(_CONSOLE_FORMAT, _DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, _DATE_FORMAT))
    return handler


# ============================================================================
# Setup / teardown
# ============================================================================


def setup_logging() -> None:
    """Route the root logger through the queue. Calling it twice is a no-op."""
    if _state.initialized:
        return

    level = _level()
    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(_QUEUE_MAX_SIZE)
    listener = QueueListener(log_queue, _console_handler(), respect_handler_level=True)
    listener.start()

    handler = _DroppingQueueHandler(log_queue)
    handler.setLevel(level)
    handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)
    for noisy in ("asyncio", "redis"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _state.log_queue, _state.listener, _state.handler = log_queue, listener, handler
    _state.enqueued = _state.dropped = 0

    logging.getLogger(__name__).debug(
        "Logging initialized",
        extra={
            "environment": Config.ENVIRONMENT,
            "log_level": logging.getLevelName(level),
            "json": _json_output(),
        },
    )


def shutdown_logging() -> None:
    """Flush queued records and detach the queue handler."""
    if not _state.initialized:
        return

    logging.getLogger().removeHandler(_state.handler)
    listener, _state.listener = _state.listener, None
    if listener is not None:
        listener.stop()
        for handler in listener.handlers:
            handler.close()
    _state.handler = None
    _state.log_queue = None


def get_logging_health() -> LoggingHealth:
    log_queue = _state.log_queue
    return LoggingHealth(
        initialized=_state.initialized,
        queue_size=log_queue.qsize() if log_queue is not None else 0,
        queue_max_size=log_queue.maxsize if log_queue is not None else 0,
        records_enqueued=_state.enqueued,
        records_dropped=_state.dropped,
    )


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind log context fields for the duration of a block (sync or async).

    Nested contexts inherit the outer fields and its correlation id; a new
    correlation id is generated only at the outermost level.

    Example
    -------
    >>> async with LogContext(wiki_id="xwiki", user="xwiki:XWiki.Admin"):
    ...     await handle_request()
    """

    def __init__(
        self,
        wiki_id: Optional[str] = None,
        user: Optional[str] = None,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        named = {
            "wiki_id": wiki_id,
            "user": user,
            "component": component,
            "operation": operation,
            "correlation_id": correlation_id,
        }
        self.context: Dict[str, Any] = {
            **_log_context.get(),
            **extra,
            **{key: value for key, value in named.items() if value is not None},
        }
        self.context.setdefault("correlation_id", uuid.uuid4().hex[:8])
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        token, self._token = self._token, None
        if token is not None:
            _log_context.reset(token)

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def set_log_context(**fields: Any) -> None:
    """Merge fields into the current log context (None values are ignored)."""
    _log_context.set(
        {**_log_context.get(), **{key: value for key, value in fields.items() if value is not None}}
    )


def get_log_context() -> Dict[str, Any]:
    return dict(_log_context.get())


def clear_log_context() -> None:
    _log_context.set({})


setup_logging()
