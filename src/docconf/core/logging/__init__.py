"""
docconf logging infrastructure.

- JSON / colored console logging behind a non-blocking queue
- ContextVar-based log context (`LogContext`)
- Setup and teardown helpers for the global logging system
"""

from docconf.core.logging.logger import (
    LogContext,
    clear_log_context,
    get_log_context,
    get_logger,
    get_logging_health,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "get_logging_health",
    "LogContext",
    "set_log_context",
    "get_log_context",
    "clear_log_context",
]
