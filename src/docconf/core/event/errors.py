"""
Event bus errors and listener error handling.

Exception Hierarchy
-------------------
EventBusError (base)
└── DuplicateListenerError (identifier already has a live subscription)

`handle_listener_error` is the single place listener failures are logged
and counted; it never raises, so one failing listener cannot block the
others.
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

from docconf.core.event.metrics import EventMetricsRecorder
from docconf.core.event.types import EventListener


class EventBusError(Exception):
    """Base exception for event bus errors."""


class DuplicateListenerError(EventBusError):
    """
    Raised by `EventBus.listen` when the identifier is already registered.

    Attributes
    ----------
    identifier:
        The identifier that is already in use.
    """

    def __init__(self, identifier: str) -> None:
        super().__init__(f"A listener with identifier '{identifier}' is already registered")
        self.identifier = identifier


def handle_listener_error(
    *,
    logger: Logger,
    event_name: str,
    listener: EventListener,
    exc: BaseException,
    metrics: Optional[EventMetricsRecorder],
) -> None:
    """
    Log a listener failure with full context and record it in metrics.

    Example
    -------
    >>> try:
    ...     await listener.callback(payload)
    ... except Exception as exc:
    ...     handle_listener_error(
    ...         logger=logger, event_name="record.updated",
    ...         listener=listener, exc=exc, metrics=recorder,
    ...     )
    """
    if metrics is not None:
        metrics.record_error(event_name)

    logger.error(
        "EventBus listener error",
        extra={
            "event_name": event_name,
            "listener_id": listener.identifier,
            "priority": listener.priority.name,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=exc,
    )


__all__ = [
    "EventBusError",
    "DuplicateListenerError",
    "handle_listener_error",
]
