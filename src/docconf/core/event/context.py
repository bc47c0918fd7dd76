"""
Event log context helpers.

Adds the event name and payload keys (never values) to the current log
context during dispatch. Best-effort: a failure here must not break event
delivery.
"""

from __future__ import annotations

from typing import Any

from docconf.core.logging.logger import get_logger, set_log_context

logger = get_logger(__name__)


def apply_event_log_context(event_name: str, payload: dict[str, Any]) -> None:
    try:
        set_log_context(event_name=event_name, event_keys=list(payload.keys()))
    except Exception as exc:
        logger.debug(
            "Failed to apply event log context",
            extra={
                "event_name": event_name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
