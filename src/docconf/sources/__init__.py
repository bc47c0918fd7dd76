"""
Configuration sources.

- **base.py**: `ConfigurationSource` API and `MemoryConfigurationSource`
- **converter.py**: `TypeConverter` and zero values for absent properties
- **document.py**: `DocumentConfigurationSource`, cached and event-invalidated
- **domains.py**: wiki, space, user and static document domains
- **composite.py**: ordered chain of sources
- **yaml_source.py**: YAML file defaults
"""

from docconf.sources.base import ConfigurationSource, MemoryConfigurationSource
from docconf.sources.composite import CompositeConfigurationSource
from docconf.sources.converter import TypeConverter, zero_value_for
from docconf.sources.document import DocumentConfigurationSource, Resolution
from docconf.sources.domains import (
    PREFERENCES_CLASS,
    USERS_CLASS,
    SpacePreferencesConfigurationSource,
    StaticDomainConfigurationSource,
    UserPreferencesConfigurationSource,
    WikiPreferencesConfigurationSource,
)
from docconf.sources.yaml_source import YamlConfigurationSource, flatten_mapping

__all__ = [
    "ConfigurationSource",
    "MemoryConfigurationSource",
    "CompositeConfigurationSource",
    "TypeConverter",
    "zero_value_for",
    "DocumentConfigurationSource",
    "Resolution",
    "PREFERENCES_CLASS",
    "USERS_CLASS",
    "WikiPreferencesConfigurationSource",
    "SpacePreferencesConfigurationSource",
    "UserPreferencesConfigurationSource",
    "StaticDomainConfigurationSource",
    "YamlConfigurationSource",
    "flatten_mapping",
]
