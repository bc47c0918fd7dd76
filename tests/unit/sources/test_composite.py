"""
Unit Tests for CompositeConfigurationSource
===========================================

Purpose
-------
Test priority-ordered chaining of configuration sources.

Test Coverage
-------------
- First source containing a key wins
- Blank values fall through to later sources
- Key union ordering
- Failing members are skipped
- Chaining document sources with defaults, including typed accessors

Testing Strategy
----------------
- Memory sources for most cases, a document source for the realistic chain
- AAA pattern (Arrange, Act, Assert)
"""

import logging

import pytest

from docconf.core.context import ExecutionContext, execution_context
from docconf.sources import (
    CompositeConfigurationSource,
    MemoryConfigurationSource,
    WikiPreferencesConfigurationSource,
)
from docconf.sources.base import ConfigurationSource
from docconf.sources.domains import PREFERENCES_CLASS
from docconf.domain.models.references import DocumentReference


class ExplodingSource(ConfigurationSource):
    def _get_value(self, key, value_type):
        raise RuntimeError("backend offline")

    def get_keys(self):
        raise RuntimeError("backend offline")


@pytest.mark.unit
@pytest.mark.sources
class TestCompositeLookup:
    """Test value resolution across members."""

    def test_first_source_wins(self):
        """Test that earlier members shadow later ones."""
        # Arrange
        composite = CompositeConfigurationSource([
            MemoryConfigurationSource({"color": "blue"}),
            MemoryConfigurationSource({"color": "red", "size": "10"}),
        ])

        # Act & Assert
        assert composite.get_property("color") == "blue"
        assert composite.get_int("size") == 10
        assert composite.get_property("width", 3) == 3

    def test_blank_value_falls_through(self):
        """Test that a blank field does not shadow a later value."""
        # Arrange
        composite = CompositeConfigurationSource([
            MemoryConfigurationSource({"color": ""}),
            MemoryConfigurationSource({"color": "red"}),
        ])

        # Act & Assert
        assert composite.get_property("color") == "red"
        assert composite.contains_key("color") is True

    def test_get_keys_is_ordered_union(self):
        """Test key enumeration without duplicates."""
        # Arrange
        composite = CompositeConfigurationSource([
            MemoryConfigurationSource({"b": "1", "a": "2"}),
            MemoryConfigurationSource({"a": "3", "c": "4"}),
        ])

        # Act
        keys = composite.get_keys()

        # Assert
        assert keys == ["b", "a", "c"]

    def test_empty_composite(self):
        """Test a composite without members."""
        # Arrange
        composite = CompositeConfigurationSource()

        # Act & Assert
        assert composite.is_empty() is True
        assert composite.get_list("tags") == []
        assert composite.contains_key("tags") is False

    def test_add_source_appends_lowest_priority(self):
        """Test that added members come last."""
        # Arrange
        first = MemoryConfigurationSource({"color": "blue"})
        composite = CompositeConfigurationSource([first])
        fallback = MemoryConfigurationSource({"color": "red", "size": "1"})

        # Act
        composite.add_source(fallback)

        # Assert
        assert list(composite) == [first, fallback]
        assert composite.get_property("color") == "blue"
        assert composite.get_property("size") == "1"


@pytest.mark.unit
@pytest.mark.sources
class TestCompositeFailures:
    """Test isolation of failing members."""

    def test_failing_member_is_skipped(self, caplog):
        """Test that a raising member is logged and skipped."""
        # Arrange
        composite = CompositeConfigurationSource([
            ExplodingSource(),
            MemoryConfigurationSource({"color": "red"}),
        ])

        # Act
        with caplog.at_level(logging.ERROR):
            value = composite.get_property("color")
            keys = composite.get_keys()

        # Assert
        assert value == "red"
        assert keys == ["color"]
        assert "Configuration source failed, skipping it" in caplog.text


@pytest.mark.unit
@pytest.mark.sources
class TestCompositeWithDocuments:
    """Test a realistic chain: wiki preferences over defaults."""

    async def test_wiki_preferences_override_defaults(self, store, make_source):
        """Test that stored preferences win and defaults fill the gaps."""
        # Arrange
        await store.save_record(
            DocumentReference("xwiki", "XWiki", "XWikiPreferences"),
            PREFERENCES_CLASS,
            {"skin": "colibri", "language": ""},
        )
        wiki = make_source(WikiPreferencesConfigurationSource)
        defaults = MemoryConfigurationSource({"skin": "flamingo", "language": "en"})
        composite = CompositeConfigurationSource([wiki, defaults])

        # Act
        with execution_context(ExecutionContext("xwiki")):
            skin = composite.get_str("skin")
            language = composite.get_str("language")
        outside = composite.get_str("skin")

        # Assert
        assert skin == "colibri"
        assert language == "en"
        assert outside == "flamingo"

    async def test_typed_accessors_convert_document_values(self, store, make_source):
        """Test typed accessors through a chain whose first member is a document."""
        # Arrange
        await store.save_record(
            DocumentReference("xwiki", "XWiki", "XWikiPreferences"),
            PREFERENCES_CLASS,
            {"retries": "3", "debug": "no", "skins": "colibri|flamingo"},
        )
        wiki = make_source(WikiPreferencesConfigurationSource)
        defaults = MemoryConfigurationSource({"retries": 1, "debug": True, "timeout": "2.5"})
        composite = CompositeConfigurationSource([wiki, defaults])

        # Act
        with execution_context(ExecutionContext("xwiki")):
            retries = composite.get_int("retries")
            debug = composite.get_bool("debug")
            skins = composite.get_list("skins")
            timeout = composite.get_float("timeout")
            again = composite.get_int("retries")

        # Assert
        assert retries == 3
        assert debug is False
        assert skins == ["colibri", "flamingo"]
        assert timeout == 2.5
        assert again == 3
