"""
docconf EventBus: async pub/sub with tiered concurrency.

Purpose
-------
Delivers document change events (`record.added`, `record.updated`,
`record.deleted`, `wiki.deleted`) from document stores to the caches of
configuration sources.

Responsibilities
----------------
- Register/unregister listeners with priorities and optional reference filters
- Hand out `Subscription` handles for identifier-scoped listeners
- Publish events to all matching listeners (exact + wildcard)
- Execute listeners per tier (see `docconf.core.event.scheduler`)
- Error isolation and metrics

Design Decisions
----------------
- **Instance-based**: several buses may coexist (tests create their own)
- **Config-driven timeouts**: CRITICAL/HIGH listener timeout comes from
  `Config.LISTENER_TIMEOUT_SECONDS` unless overridden
- **One live subscription per identifier**: `listen` refuses an identifier
  that is already registered

Thread Safety
-------------
Designed for single-threaded asyncio usage. `subscribe`/`unsubscribe` are
plain dictionary updates and may be called before the loop starts.
"""

from __future__ import annotations

import inspect
from typing import Any, Iterable, Optional, Pattern

from docconf.core.config.config import Config
from docconf.core.event.context import apply_event_log_context
from docconf.core.event.errors import DuplicateListenerError
from docconf.core.event.metrics import EventMetrics, EventMetricsRecorder
from docconf.core.event.registry import ListenerRegistry
from docconf.core.event.router import EventRouter
from docconf.core.event.scheduler import EventScheduler
from docconf.core.event.subscription import Subscription
from docconf.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from docconf.core.logging.logger import get_logger

logger = get_logger(__name__)


class EventBus:
    """
    Tiered async EventBus.

    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("record.updated", on_update, priority=ListenerPriority.HIGH)
    >>> await bus.publish("record.updated", {"reference": "xwiki:Main.A^Main.B[0]"})
    """

    def __init__(
        self,
        registry: Optional[ListenerRegistry] = None,
        router: Optional[EventRouter] = None,
        scheduler: Optional[EventScheduler] = None,
        metrics: Optional[EventMetricsRecorder] = None,
        *,
        enable_metrics: bool = True,
        critical_timeout_seconds: Optional[float] = None,
        high_timeout_seconds: Optional[float] = None,
    ) -> None:
        self._router = router or EventRouter()
        self._registry = registry or ListenerRegistry(self._router)
        self._scheduler = scheduler or EventScheduler()
        self._metrics = metrics or EventMetricsRecorder()
        self._metrics_enabled = enable_metrics

        self._critical_timeout = self._load_timeout(critical_timeout_seconds)
        self._high_timeout = self._load_timeout(high_timeout_seconds)

        logger.debug(
            "EventBus initialized",
            extra={
                "metrics_enabled": self._metrics_enabled,
                "critical_timeout_seconds": self._critical_timeout,
                "high_timeout_seconds": self._high_timeout,
            },
        )

    @staticmethod
    def _load_timeout(override: Optional[float]) -> float:
        if override is not None:
            return float(override)
        return float(Config.LISTENER_TIMEOUT_SECONDS)

    @staticmethod
    def _validate_callback_signature(callback: CallbackType) -> None:
        """Reject callbacks that cannot take exactly one payload argument."""
        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            return

        params = list(sig.parameters.values())
        if len(params) != 1:
            callback_name = getattr(callback, "__qualname__", None) or getattr(
                callback, "__name__", repr(callback)
            )
            raise ValueError(
                f"Event listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} parameters for '{callback_name}'"
            )

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
        allow_duplicates: bool = False,
        reference_pattern: Optional[Pattern[str]] = None,
    ) -> str:
        """
        Subscribe a callback to an event name or wildcard pattern.

        Returns the listener identifier (auto-generated when omitted).
        """
        self._validate_callback_signature(callback)

        listener = EventListener.from_callback(
            event_name=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
            reference_pattern=reference_pattern,
        )

        added = self._registry.add_listener(
            event_name=event_name,
            listener=listener,
            allow_duplicates=allow_duplicates,
        )

        if added:
            if self._metrics_enabled:
                self._metrics.adjust_listener_count(1)
            logger.debug(
                "EventBus: subscribed listener",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "once": listener.once,
                },
            )
        else:
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )

        return listener.identifier

    def listen(
        self,
        identifier: str,
        event_names: Iterable[str],
        callback: CallbackType,
        *,
        reference_pattern: Optional[Pattern[str]] = None,
        priority: ListenerPriority = ListenerPriority.HIGH,
    ) -> Subscription:
        """
        Register one listener identity for several events.

        Raises
        ------
        DuplicateListenerError
            If `identifier` already has a live registration.
        ValueError
            If no event names are given or the callback signature is invalid.

        Example
        -------
        >>> subscription = bus.listen(
        ...     "configuration.document.wiki",
        ...     ["record.added", "record.updated", "record.deleted", "wiki.deleted"],
        ...     on_change,
        ...     reference_pattern=class_object_pattern(class_ref),
        ... )
        >>> subscription.close()
        """
        names = tuple(dict.fromkeys(event_names))
        if not names:
            raise ValueError("listen() requires at least one event name")
        if self._registry.has_identifier(identifier):
            raise DuplicateListenerError(identifier)

        for event_name in names:
            self.subscribe(
                event_name,
                callback,
                priority=priority,
                identifier=identifier,
                reference_pattern=reference_pattern,
            )

        return Subscription(self, identifier, names, reference_pattern)

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        removed = self._registry.remove_listener(event_name=event_name, identifier=identifier)

        if removed:
            if self._metrics_enabled:
                self._metrics.adjust_listener_count(-1)
            logger.debug(
                "EventBus: unsubscribed listener",
                extra={"event_name": event_name, "listener_id": identifier},
            )

        return removed

    def is_listening(self, identifier: str) -> bool:
        return self._registry.has_identifier(identifier)

    def clear(self) -> None:
        """Remove every listener. Intended for tests and full re-initialization."""
        total = self._registry.clear_all()
        if self._metrics_enabled:
            self._metrics.reset_listener_count()
        logger.info(
            "EventBus: cleared all listeners",
            extra={"previous_listener_count": total},
        )

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Publish an event and wait for the awaited tiers to finish.

        Returns the results of CRITICAL/HIGH/NORMAL listeners.
        """
        apply_event_log_context(event_name, data)

        listeners = self._registry.extract_listeners_for_event(event_name, data)
        if self._metrics_enabled:
            self._metrics.record_publish(event_name, len(listeners))

        if not listeners:
            logger.debug("EventBus: no listeners for event", extra={"event_name": event_name})
            return []

        logger.debug(
            "EventBus: executing listeners",
            extra={"event_name": event_name, "listener_count": len(listeners)},
        )

        return await self._scheduler.execute(
            event_name=event_name,
            payload=data,
            listeners=listeners,
            metrics=self._metrics if self._metrics_enabled else None,
            logger=logger,
            critical_timeout=self._critical_timeout,
            high_timeout=self._high_timeout,
        )

    async def drain(self) -> None:
        """Wait for fire-and-forget listeners still running."""
        await self._scheduler.drain()

    # ------------------------------------------------------------------ #
    # Metrics & introspection
    # ------------------------------------------------------------------ #

    def get_metrics(self) -> Optional[EventMetrics]:
        if not self._metrics_enabled:
            return None
        return self._metrics.snapshot()

    def get_metrics_summary(self) -> dict[str, Any]:
        metrics = self.get_metrics()
        if metrics is None:
            return {}
        return metrics.get_summary()

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name:
            return self._registry.get_listener_count_for_event(event_name)
        return self._registry.get_total_listener_count()

    def get_all_events(self) -> list[str]:
        return self._registry.get_all_event_keys()
