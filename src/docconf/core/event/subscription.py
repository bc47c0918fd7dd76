"""
Subscription handles returned by `EventBus.listen`.

A subscription groups the registrations of one listener identifier across
several event names. Closing it removes all of them; closing twice is a
no-op.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Pattern

if TYPE_CHECKING:
    from docconf.core.event.bus import EventBus


class Subscription:
    """
    Live registration of a listener on an EventBus.

    Example
    -------
    >>> with bus.listen("configuration.document.wiki", ["wiki.deleted"], on_event):
    ...     await bus.publish("wiki.deleted", {"wiki": "sub"})
    """

    def __init__(
        self,
        bus: "EventBus",
        identifier: str,
        event_names: tuple[str, ...],
        reference_pattern: Optional[Pattern[str]] = None,
    ) -> None:
        self._bus = bus
        self.identifier = identifier
        self.event_names = event_names
        self.reference_pattern = reference_pattern
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for event_name in self.event_names:
            self._bus.unsubscribe(event_name, self.identifier)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "active" if self.active else "closed"
        return f"Subscription({self.identifier!r}, events={list(self.event_names)}, {state})"
