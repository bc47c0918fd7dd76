"""
Delivery counters for the docconf EventBus.

Every publish is counted together with the number of listeners it reached
after reference filtering. A record change that reaches no listener means
no cache was interested in it; a steady stream of those usually points at
a source subscribed with the wrong record class.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EventMetrics:
    """Immutable view of the bus counters, keyed by event name."""

    events_published: dict[str, int] = field(default_factory=dict)
    deliveries: dict[str, int] = field(default_factory=dict)
    unrouted: dict[str, int] = field(default_factory=dict)
    listener_errors: dict[str, int] = field(default_factory=dict)
    total_listeners: int = 0

    def fan_out(self, event_name: str) -> float:
        """Average listeners reached per publish of `event_name`."""
        published = self.events_published.get(event_name, 0)
        if not published:
            return 0.0
        return self.deliveries.get(event_name, 0) / published

    def get_summary(self) -> dict[str, Any]:
        published = sum(self.events_published.values())
        delivered = sum(self.deliveries.values())
        failed = sum(self.listener_errors.values())

        return {
            "total_events_published": published,
            "events_by_type": dict(self.events_published),
            "total_deliveries": delivered,
            "unrouted_events": sum(self.unrouted.values()),
            "total_errors": failed,
            "errors_by_event": dict(self.listener_errors),
            "total_listeners": self.total_listeners,
            # failures are counted per delivery, not per publish
            "error_rate": round(failed / max(1, delivered) * 100.0, 2),
        }


class EventMetricsRecorder:
    """Counters mutated from the bus's event loop only."""

    def __init__(self) -> None:
        self._published: Counter[str] = Counter()
        self._delivered: Counter[str] = Counter()
        self._unrouted: Counter[str] = Counter()
        self._errors: Counter[str] = Counter()
        self._listeners = 0

    def record_publish(self, event_name: str, delivered_to: int = 0) -> None:
        self._published[event_name] += 1
        if delivered_to:
            self._delivered[event_name] += delivered_to
        else:
            self._unrouted[event_name] += 1

    def record_error(self, event_name: str) -> None:
        self._errors[event_name] += 1

    @property
    def total_listeners(self) -> int:
        return self._listeners

    def adjust_listener_count(self, delta: int) -> None:
        self._listeners = max(0, self._listeners + delta)

    def reset_listener_count(self) -> None:
        self._listeners = 0

    def snapshot(self) -> EventMetrics:
        return EventMetrics(
            events_published=dict(self._published),
            deliveries=dict(self._delivered),
            unrouted=dict(self._unrouted),
            listener_errors=dict(self._errors),
            total_listeners=self._listeners,
        )
