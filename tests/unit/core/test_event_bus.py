"""
Unit Tests for EventBus
=======================

Purpose
-------
Test the tiered async EventBus that carries document change events to
configuration caches.

Test Coverage
-------------
- subscribe / unsubscribe / once / wildcard routing
- listen(): one identifier across several events, duplicates rejected
- Subscription handles (close, context manager)
- Reference-pattern payload filtering
- Error isolation, timeouts and sync callbacks in the executor
- Metrics

Testing Strategy
----------------
- Fresh bus per test (`bus` fixture)
- Real callbacks; the bus validates their signatures
- AAA pattern (Arrange, Act, Assert)
"""

import asyncio
import re
import threading

import pytest

from docconf.core.event import DuplicateListenerError, EventBus, ListenerPriority
from docconf.core.event.router import EventRouter

RECORD_REFERENCE = "xwiki:Main.Config^Main.ConfigClass[0]"
OTHER_REFERENCE = "xwiki:Main.Config^Main.OtherClass[0]"


@pytest.mark.unit
@pytest.mark.event
class TestSubscribe:
    """Test plain subscriptions."""

    async def test_publish_reaches_subscriber(self, bus):
        """Test that an exact subscription receives the payload."""
        # Arrange
        received = []

        async def on_event(payload):
            received.append(payload)

        bus.subscribe("record.updated", on_event)

        # Act
        await bus.publish("record.updated", {"reference": RECORD_REFERENCE})

        # Assert
        assert received == [{"reference": RECORD_REFERENCE}]

    def test_callback_signature_is_validated(self, bus):
        """Test that callbacks must take exactly one argument."""

        # Arrange
        def two_args(payload, extra):
            pass

        # Act & Assert
        with pytest.raises(ValueError, match="exactly 1 parameter"):
            bus.subscribe("record.updated", two_args)

    async def test_once_listener_runs_once(self, bus):
        """Test that a once listener is removed after its first event."""
        # Arrange
        calls = []

        async def on_event(payload):
            calls.append(payload)

        bus.subscribe("record.added", on_event, once=True)

        # Act
        await bus.publish("record.added", {})
        await bus.publish("record.added", {})

        # Assert
        assert len(calls) == 1
        assert bus.get_listener_count("record.added") == 0

    async def test_wildcard_subscription(self, bus):
        """Test prefix wildcard routing."""
        # Arrange
        names = []

        async def on_event(payload):
            names.append(payload["name"])

        bus.subscribe("record.*", on_event)

        # Act
        await bus.publish("record.added", {"name": "added"})
        await bus.publish("wiki.deleted", {"name": "wiki"})
        await bus.publish("record.deleted", {"name": "deleted"})

        # Assert
        assert names == ["added", "deleted"]

    async def test_unsubscribe(self, bus):
        """Test that unsubscribed listeners receive nothing."""
        # Arrange
        calls = []

        async def on_event(payload):
            calls.append(payload)

        identifier = bus.subscribe("record.added", on_event)

        # Act
        removed = bus.unsubscribe("record.added", identifier)
        await bus.publish("record.added", {})

        # Assert
        assert removed is True
        assert calls == []
        assert bus.unsubscribe("record.added", identifier) is False

    async def test_priority_order(self, bus):
        """Test that awaited tiers run in priority order."""
        # Arrange
        order = []

        async def normal(payload):
            order.append("normal")

        async def critical(payload):
            order.append("critical")

        async def high(payload):
            order.append("high")

        bus.subscribe("record.updated", normal, priority=ListenerPriority.NORMAL)
        bus.subscribe("record.updated", high, priority=ListenerPriority.HIGH)
        bus.subscribe("record.updated", critical, priority=ListenerPriority.CRITICAL)

        # Act
        await bus.publish("record.updated", {})

        # Assert
        assert order == ["critical", "high", "normal"]

    async def test_low_priority_is_fire_and_forget(self, bus):
        """Test that LOW listeners complete after drain()."""
        # Arrange
        calls = []

        async def background(payload):
            await asyncio.sleep(0)
            calls.append(payload)

        bus.subscribe("record.updated", background, priority=ListenerPriority.LOW)

        # Act
        results = await bus.publish("record.updated", {"n": 1})
        await bus.drain()

        # Assert
        assert results == []
        assert calls == [{"n": 1}]


@pytest.mark.unit
@pytest.mark.event
class TestListen:
    """Test identifier-scoped subscriptions."""

    async def test_listen_registers_every_event(self, bus):
        """Test that one identifier covers several events."""
        # Arrange
        received = []

        def on_change(payload):
            received.append(payload["n"])

        # Act
        subscription = bus.listen("cache.one", ["record.added", "wiki.deleted"], on_change)
        await bus.publish("record.added", {"n": 1})
        await bus.publish("wiki.deleted", {"n": 2})

        # Assert
        assert received == [1, 2]
        assert subscription.active is True
        assert subscription.event_names == ("record.added", "wiki.deleted")
        assert bus.is_listening("cache.one") is True

    def test_duplicate_identifier_rejected(self, bus):
        """Test that an identifier can only be listened once."""

        # Arrange
        def on_change(payload):
            pass

        bus.listen("cache.one", ["record.added"], on_change)

        # Act & Assert
        with pytest.raises(DuplicateListenerError) as exc_info:
            bus.listen("cache.one", ["record.updated"], on_change)
        assert exc_info.value.identifier == "cache.one"

    def test_listen_requires_events(self, bus):
        """Test that an empty event list is rejected."""

        # Arrange
        def on_change(payload):
            pass

        # Act & Assert
        with pytest.raises(ValueError):
            bus.listen("cache.one", [], on_change)

    async def test_close_removes_all_registrations(self, bus):
        """Test that closing frees the identifier for reuse."""

        # Arrange
        def on_change(payload):
            pass

        subscription = bus.listen("cache.one", ["record.added", "record.deleted"], on_change)

        # Act
        subscription.close()
        subscription.close()

        # Assert
        assert subscription.active is False
        assert bus.is_listening("cache.one") is False
        assert bus.get_listener_count() == 0
        assert bus.listen("cache.one", ["record.added"], on_change).active is True

    def test_subscription_context_manager(self, bus):
        """Test `with bus.listen(...)` closes on exit."""

        # Arrange
        def on_change(payload):
            pass

        # Act
        with bus.listen("cache.one", ["record.added"], on_change):
            inside = bus.is_listening("cache.one")

        # Assert
        assert inside is True
        assert bus.is_listening("cache.one") is False

    async def test_reference_pattern_filters_payloads(self, bus):
        """Test payload filtering by serialized reference."""
        # Arrange
        references = []

        def on_change(payload):
            references.append(payload.get("reference"))

        bus.listen(
            "cache.one",
            ["record.updated", "wiki.deleted"],
            on_change,
            reference_pattern=re.compile(r"^.*\^Main\.ConfigClass\[\d*\]$"),
        )

        # Act
        await bus.publish("record.updated", {"reference": RECORD_REFERENCE})
        await bus.publish("record.updated", {"reference": OTHER_REFERENCE})
        await bus.publish("wiki.deleted", {"wiki": "sub"})

        # Assert
        assert references == [RECORD_REFERENCE, None]

    async def test_sync_callback_runs_in_executor(self, bus):
        """Test that sync listeners run off the event loop thread."""
        # Arrange
        threads = []

        def on_change(payload):
            threads.append(threading.get_ident())

        bus.listen("cache.one", ["record.updated"], on_change)

        # Act
        await bus.publish("record.updated", {})

        # Assert
        assert threads and threads[0] != threading.get_ident()


@pytest.mark.unit
@pytest.mark.event
class TestIsolation:
    """Test error isolation, timeouts and metrics."""

    async def test_failing_listener_does_not_block_others(self, bus):
        """Test that one raising listener is logged and skipped."""
        # Arrange
        calls = []

        async def broken(payload):
            raise RuntimeError("boom")

        async def healthy(payload):
            calls.append(payload)

        bus.subscribe("record.updated", broken, priority=ListenerPriority.HIGH)
        bus.subscribe("record.updated", healthy, priority=ListenerPriority.HIGH)

        # Act
        await bus.publish("record.updated", {"n": 1})

        # Assert
        assert calls == [{"n": 1}]
        assert bus.get_metrics().listener_errors == {"record.updated": 1}

    async def test_slow_listener_times_out(self):
        """Test that HIGH listeners are bounded by the timeout."""
        # Arrange
        bus = EventBus(critical_timeout_seconds=0.05, high_timeout_seconds=0.05)
        calls = []

        async def slow(payload):
            await asyncio.sleep(1)

        async def after(payload):
            calls.append(payload)

        bus.subscribe("record.updated", slow, priority=ListenerPriority.HIGH, identifier="a")
        bus.subscribe("record.updated", after, priority=ListenerPriority.HIGH, identifier="b")

        # Act
        results = await bus.publish("record.updated", {})

        # Assert
        assert results == [None, None]
        assert calls == [{}]
        assert bus.get_metrics_summary()["total_errors"] == 1

    async def test_metrics_summary(self, bus):
        """Test publish counts and listener totals."""

        # Arrange
        def on_change(payload):
            pass

        bus.listen("cache.one", ["record.added", "record.updated"], on_change)

        # Act
        await bus.publish("record.added", {})
        await bus.publish("record.added", {})
        await bus.publish("record.deleted", {})
        summary = bus.get_metrics_summary()

        # Assert
        assert summary["total_events_published"] == 3
        assert summary["events_by_type"]["record.added"] == 2
        assert summary["total_listeners"] == 2
        assert summary["total_deliveries"] == 2
        assert summary["unrouted_events"] == 1
        assert bus.get_metrics().fan_out("record.added") == 1.0
        assert bus.get_metrics().fan_out("record.updated") == 0.0
        assert bus.get_all_events() == ["record.added", "record.updated"]

    async def test_clear_removes_everything(self, bus):
        """Test clear() resets listeners."""

        # Arrange
        def on_change(payload):
            pass

        bus.listen("cache.one", ["record.added"], on_change)
        bus.subscribe("*", on_change)

        # Act
        bus.clear()

        # Assert
        assert bus.get_listener_count() == 0
        assert bus.get_metrics().total_listeners == 0


@pytest.mark.unit
@pytest.mark.event
class TestRouter:
    """Test wildcard matching."""

    @pytest.mark.parametrize("event_name,pattern,expected", [
        ("record.updated", "record.updated", True),
        ("record.updated", "*", True),
        ("record.updated", "record.*", True),
        ("wiki.deleted", "*.deleted", True),
        ("wiki.deleted", "record.*", False),
        ("record.updated", "Record.*", False),
    ])
    def test_matches(self, event_name, pattern, expected):
        """Test exact, global, prefix and suffix patterns."""
        # Act & Assert
        assert EventRouter().matches(event_name, pattern) is expected
