"""
Event system for docconf.

Provides the tiered async EventBus and a process-wide default instance,
`event_bus`, used by document stores and configuration sources that are not
given an explicit bus.
"""

from .bus import EventBus
from .context import apply_event_log_context
from .errors import DuplicateListenerError, EventBusError
from .subscription import Subscription
from .types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

event_bus = EventBus()

__all__ = [
    "event_bus",
    "EventBus",
    "EventBusError",
    "DuplicateListenerError",
    "Subscription",
    "EventPayload",
    "ListenerPriority",
    "EventListener",
    "CallbackType",
    "apply_event_log_context",
]
