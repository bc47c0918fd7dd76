"""
ListenerRegistry: storage and lookup for EventBus listeners.

Purpose
-------
Stores listeners under exact event names and wildcard patterns and returns,
for a published event, every listener that should receive it.

Design Decisions
----------------
- **Synchronous**: all mutations happen on the bus's event loop, so
  dictionary updates are atomic between awaits.
- **Deterministic ordering**: listeners sorted by (priority, identifier).
- **Filter before pruning**: a `once` listener is only consumed by an event
  its reference filter accepts.
"""

from __future__ import annotations

from typing import Optional

from docconf.core.event.router import EventRouter
from docconf.core.event.types import EventListener, EventPayload


def _sort_key(listener: EventListener) -> tuple[int, str]:
    return (listener.priority.value, listener.identifier)


class ListenerRegistry:
    """
    Registry for event listeners (exact and wildcard).

    Examples
    --------
    >>> registry = ListenerRegistry()
    >>> registry.add_listener("record.updated", listener, allow_duplicates=False)
    True
    >>> len(registry.extract_listeners_for_event("record.updated", payload))
    1
    """

    def __init__(self, router: Optional[EventRouter] = None) -> None:
        self._router = router or EventRouter()
        self._listeners: dict[str, list[EventListener]] = {}
        self._wildcard_listeners: list[tuple[str, EventListener]] = []

    # ------------------------------------------------------------------ #
    # Modification
    # ------------------------------------------------------------------ #

    def add_listener(
        self,
        event_name: str,
        listener: EventListener,
        *,
        allow_duplicates: bool,
    ) -> bool:
        """
        Register a listener; returns False when prevented as a duplicate of
        the same (event_name, identifier).
        """
        if self._router.is_wildcard(event_name):
            if not allow_duplicates and any(
                pattern == event_name and lst.identifier == listener.identifier
                for pattern, lst in self._wildcard_listeners
            ):
                return False
            self._wildcard_listeners.append((event_name, listener))
            self._wildcard_listeners.sort(key=lambda pl: _sort_key(pl[1]))
            return True

        listeners = self._listeners.setdefault(event_name, [])
        if not allow_duplicates and any(
            lst.identifier == listener.identifier for lst in listeners
        ):
            return False

        listeners.append(listener)
        listeners.sort(key=_sort_key)
        return True

    def remove_listener(self, event_name: str, identifier: str) -> bool:
        """Remove a listener; returns True if one was removed."""
        removed = False

        if event_name in self._listeners:
            before = len(self._listeners[event_name])
            kept = [lst for lst in self._listeners[event_name] if lst.identifier != identifier]
            removed = len(kept) < before
            if kept:
                self._listeners[event_name] = kept
            else:
                del self._listeners[event_name]

        before_wc = len(self._wildcard_listeners)
        self._wildcard_listeners = [
            (pattern, lst)
            for pattern, lst in self._wildcard_listeners
            if not (pattern == event_name and lst.identifier == identifier)
        ]
        return removed or len(self._wildcard_listeners) < before_wc

    def clear_all(self) -> int:
        """Remove all listeners and return the previous total count."""
        total = self.get_total_listener_count()
        self._listeners.clear()
        self._wildcard_listeners.clear()
        return total

    # ------------------------------------------------------------------ #
    # Lookup & once-removal
    # ------------------------------------------------------------------ #

    def extract_listeners_for_event(
        self, event_name: str, payload: EventPayload
    ) -> list[EventListener]:
        """
        Collect the listeners accepting this event and prune the `once`
        listeners among them, in one step.
        """
        result: list[EventListener] = []

        exact = self._listeners.get(event_name, [])
        kept_exact: list[EventListener] = []
        for listener in exact:
            if listener.accepts(payload):
                result.append(listener)
                if listener.once:
                    continue
            kept_exact.append(listener)

        if kept_exact:
            self._listeners[event_name] = kept_exact
        elif event_name in self._listeners:
            del self._listeners[event_name]

        kept_wildcards: list[tuple[str, EventListener]] = []
        for pattern, listener in self._wildcard_listeners:
            if self._router.matches(event_name, pattern) and listener.accepts(payload):
                result.append(listener)
                if listener.once:
                    continue
            kept_wildcards.append((pattern, listener))
        self._wildcard_listeners = kept_wildcards

        result.sort(key=_sort_key)
        return result

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def has_identifier(self, identifier: str) -> bool:
        """Whether any event or pattern has a listener with this identifier."""
        if any(
            lst.identifier == identifier
            for listeners in self._listeners.values()
            for lst in listeners
        ):
            return True
        return any(lst.identifier == identifier for _, lst in self._wildcard_listeners)

    def get_listener_count_for_event(self, event_name: str) -> int:
        count = len(self._listeners.get(event_name, []))
        count += sum(
            1
            for pattern, _ in self._wildcard_listeners
            if self._router.matches(event_name, pattern)
        )
        return count

    def get_total_listener_count(self) -> int:
        total = sum(len(listeners) for listeners in self._listeners.values())
        return total + len(self._wildcard_listeners)

    def get_all_event_keys(self) -> list[str]:
        keys: list[str] = list(self._listeners.keys())
        keys.extend(pattern for pattern, _ in self._wildcard_listeners)
        return sorted(set(keys))
