"""
Core event types for the docconf EventBus.

Purpose
-------
Type definitions shared by the event system: payloads, listener priorities,
callback types and the immutable listener record.

Priority Levels
---------------
- CRITICAL (0): sequential, awaited, timeout-protected.
- HIGH (10): sequential, awaited, timeout-protected. Cache invalidation
  listeners run here so a publisher knows caches are clean once `publish`
  returns.
- NORMAL (50): concurrent (gather), awaited.
- LOW (100): fire-and-forget.

Payload Filtering
-----------------
A listener may carry a `reference_pattern`. Events whose payload has a
string `reference` entry are delivered only when the pattern matches it;
events without a `reference` (e.g. `wiki.deleted`) are always delivered.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Pattern, Union

EventPayload = dict[str, Any]


class ListenerPriority(Enum):
    """Numeric values determine execution order (lower = earlier)."""

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100


CallbackType = Union[
    Callable[[EventPayload], Any],
    Callable[[EventPayload], Awaitable[Any]],
]


@dataclass(slots=True, frozen=True)
class EventListener:
    """
    A registered event listener.

    Attributes
    ----------
    callback:
        Async or sync callable invoked with the event payload.
    priority:
        Determines execution order and concurrency tier.
    identifier:
        Unique identifier for deduplication and unsubscription.
    once:
        If True, the listener is removed before its first execution.
    reference_pattern:
        Optional regex filtering events by their payload `reference`.
    """

    callback: CallbackType
    priority: ListenerPriority
    identifier: str
    once: bool = False
    reference_pattern: Optional[Pattern[str]] = None

    def accepts(self, payload: EventPayload) -> bool:
        """
        Whether this listener wants an event with `payload`.

        Example
        -------
        >>> listener.accepts({"reference": "xwiki:Main.Config^Main.ConfigClass[0]"})
        True
        """
        if self.reference_pattern is None:
            return True
        reference = payload.get("reference")
        if not isinstance(reference, str):
            return True
        return self.reference_pattern.match(reference) is not None

    @classmethod
    def from_callback(
        cls,
        event_name: str,
        callback: CallbackType,
        priority: ListenerPriority,
        identifier: Optional[str],
        once: bool,
        reference_pattern: Optional[Pattern[str]] = None,
    ) -> EventListener:
        """Create a listener, deriving an identifier from the callback if needed."""
        if identifier is None:
            module = getattr(callback, "__module__", "unknown")
            qualname = getattr(
                callback, "__qualname__", getattr(callback, "__name__", "callback")
            )
            identifier = f"{module}.{qualname}@{event_name}"

        return cls(
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
            reference_pattern=reference_pattern,
        )
