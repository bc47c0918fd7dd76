"""
docconf: typed, cached configuration read from wiki documents.

Quick start
-----------
>>> from docconf import (
...     EventBus, ExecutionContext, InMemoryDocumentStore,
...     WikiPreferencesConfigurationSource, execution_context,
... )
>>> bus = EventBus()
>>> store = InMemoryDocumentStore(bus)
>>> with WikiPreferencesConfigurationSource(store, bus=bus) as prefs:
...     with execution_context(ExecutionContext("xwiki")):
...         prefs.get_str("skin", "flamingo")
'flamingo'
"""

from docconf.core.config import (
    CacheInitializationError,
    Config,
    ConfigError,
    ConfigInitializationError,
    ConfigurationUnavailableError,
    ConversionError,
    ReferenceResolutionError,
)
from docconf.core.context import ExecutionContext, execution_context, get_execution_context
from docconf.core.event import EventBus, Subscription, event_bus
from docconf.domain.document import InMemoryDocumentStore, StructuredRecord
from docconf.domain.models.references import (
    DocumentReference,
    LocalDocumentReference,
    ObjectReference,
    WikiReference,
)
from docconf.sources import (
    CompositeConfigurationSource,
    ConfigurationSource,
    DocumentConfigurationSource,
    MemoryConfigurationSource,
    SpacePreferencesConfigurationSource,
    StaticDomainConfigurationSource,
    TypeConverter,
    UserPreferencesConfigurationSource,
    WikiPreferencesConfigurationSource,
    YamlConfigurationSource,
)

__version__ = "1.0.0"

__all__ = [
    "Config",
    "ConfigError",
    "ConfigurationUnavailableError",
    "ReferenceResolutionError",
    "ConversionError",
    "ConfigInitializationError",
    "CacheInitializationError",
    "ExecutionContext",
    "execution_context",
    "get_execution_context",
    "EventBus",
    "Subscription",
    "event_bus",
    "InMemoryDocumentStore",
    "StructuredRecord",
    "WikiReference",
    "DocumentReference",
    "LocalDocumentReference",
    "ObjectReference",
    "ConfigurationSource",
    "MemoryConfigurationSource",
    "CompositeConfigurationSource",
    "DocumentConfigurationSource",
    "WikiPreferencesConfigurationSource",
    "SpacePreferencesConfigurationSource",
    "UserPreferencesConfigurationSource",
    "StaticDomainConfigurationSource",
    "YamlConfigurationSource",
    "TypeConverter",
]
