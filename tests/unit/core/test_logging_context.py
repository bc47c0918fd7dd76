"""
Unit Tests for Logging and Execution Context
============================================

Purpose
-------
Test structured log formatting, log context propagation and the execution
context that wiki-backed sources resolve their documents from.

Test Coverage
-------------
- JSONFormatter output (context fields, extras, exceptions)
- Logging setup and shutdown
- ContextFilter enrichment
- LogContext nesting and correlation ids
- ExecutionContext binding (sync, async, per task)

Testing Strategy
----------------
- Log records built directly with `logging.LogRecord`
- AAA pattern (Arrange, Act, Assert)
"""

import asyncio
import json
import logging

import pytest

from docconf.core.config.errors import ConfigurationUnavailableError
from docconf.core.context import (
    ExecutionContext,
    execution_context,
    get_execution_context,
    require_execution_context,
)
from docconf.core.logging import (
    LogContext,
    clear_log_context,
    get_log_context,
    get_logging_health,
    set_log_context,
    setup_logging,
    shutdown_logging,
)
from docconf.core.logging.logger import ContextFilter, JSONFormatter


def make_record(message="Property resolved", **extra):
    record = logging.LogRecord(
        name="docconf.sources.document",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def clean_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.mark.unit
class TestStructuredLogging:
    """Test formatter and filter."""

    def test_json_formatter_includes_context_and_extras(self):
        """Test that context fields and extras are serialized."""
        # Arrange
        record = make_record(key="color", wiki_id="xwiki", user="N/A")

        # Act
        data = json.loads(JSONFormatter().format(record))

        # Assert
        assert data["message"] == "Property resolved"
        assert data["level"] == "INFO"
        assert data["wiki_id"] == "xwiki"
        assert "user" not in data
        assert data["extra"] == {"key": "color"}

    def test_json_formatter_includes_exception(self):
        """Test exception rendering."""
        # Arrange
        try:
            raise RuntimeError("store down")
        except RuntimeError:
            import sys

            record = make_record()
            record.exc_info = sys.exc_info()

        # Act
        data = json.loads(JSONFormatter().format(record))

        # Assert
        assert "RuntimeError: store down" in data["exception"]

    def test_context_filter_enriches_records(self):
        """Test that the filter copies the bound log context."""
        # Arrange
        record = make_record()

        # Act
        with LogContext(wiki_id="xwiki", operation="lookup"):
            ContextFilter().filter(record)

        # Assert
        assert record.wiki_id == "xwiki"
        assert record.operation == "lookup"
        assert record.user == "N/A"
        assert record.component == "docconf"

    def test_logging_is_initialized(self):
        """Test that importing docconf installs the queue handler."""
        # Act
        health = get_logging_health()

        # Assert
        assert health.initialized is True
        assert health.records_dropped == 0

    def test_shutdown_and_setup_again(self):
        """Test that shutdown detaches the queue handler and setup restores it."""
        # Arrange
        root = logging.getLogger()
        handlers_before = len(root.handlers)

        # Act
        shutdown_logging()
        stopped = get_logging_health()
        handlers_stopped = len(root.handlers)
        setup_logging()
        setup_logging()
        restarted = get_logging_health()

        # Assert
        assert stopped.initialized is False
        assert stopped.queue_max_size == 0
        assert handlers_stopped == handlers_before - 1
        assert restarted.initialized is True
        assert restarted.queue_max_size == 10_000
        assert len(root.handlers) == handlers_before


@pytest.mark.unit
class TestLogContext:
    """Test log context binding."""

    def test_nested_contexts_restore(self):
        """Test that nested contexts inherit and restore fields."""
        # Act
        with LogContext(wiki_id="xwiki") as outer:
            with LogContext(operation="lookup"):
                inner_fields = get_log_context()
            outer_fields = get_log_context()
        after = get_log_context()

        # Assert
        assert inner_fields["wiki_id"] == "xwiki"
        assert inner_fields["operation"] == "lookup"
        assert inner_fields["correlation_id"] == outer.context["correlation_id"]
        assert "operation" not in outer_fields
        assert after == {}

    def test_set_log_context_ignores_none(self):
        """Test merging fields into the current context."""
        # Act
        set_log_context(event_name="record.updated", wiki_id=None)

        # Assert
        assert get_log_context() == {"event_name": "record.updated"}


@pytest.mark.unit
class TestExecutionContext:
    """Test execution context binding."""

    def test_unbound_context(self):
        """Test that lookups outside a request see no context."""
        # Act & Assert
        assert get_execution_context() is None
        with pytest.raises(ConfigurationUnavailableError):
            require_execution_context()

    def test_sync_binding(self):
        """Test binding and restoring with a with-block."""
        # Arrange
        context = ExecutionContext("xwiki", space="Main", user="xwiki:XWiki.Admin")

        # Act
        with execution_context(context) as bound:
            inside = require_execution_context()
            log_fields = get_log_context()
        outside = get_execution_context()

        # Assert
        assert bound is context
        assert inside is context
        assert log_fields["wiki_id"] == "xwiki"
        assert log_fields["user"] == "xwiki:XWiki.Admin"
        assert outside is None

    def test_guest_and_wiki_switch(self):
        """Test derived properties."""
        # Arrange
        context = ExecutionContext("xwiki", space="Main")

        # Act
        switched = context.with_wiki("subwiki")

        # Assert
        assert context.is_guest is True
        assert switched.wiki_id == "subwiki"
        assert switched.space == "Main"

    async def test_tasks_see_their_own_context(self):
        """Test per-task isolation."""

        # Arrange
        async def read_in(wiki):
            async with execution_context(ExecutionContext(wiki)):
                await asyncio.sleep(0)
                return require_execution_context().wiki_id

        # Act
        results = await asyncio.gather(read_in("a"), read_in("b"))

        # Assert
        assert results == ["a", "b"]
        assert get_execution_context() is None
