"""
Configuration error hierarchy for docconf.

Purpose
-------
Provides the exceptions raised (or raised and contained) by configuration
sources, with one class per failure scenario.

Exception Hierarchy
-------------------
ConfigError (base)
├── ConfigurationUnavailableError (no execution context; transient)
├── ReferenceResolutionError (a domain's reference hook failed)
├── ConversionError (stored value incompatible with the requested type)
└── ConfigInitializationError (startup failure; fatal)
    └── CacheInitializationError (cache could not be created)

Only `ConfigInitializationError` ever reaches callers. The others are
raised inside a source and turned into `None`, a default or an empty value
at the lookup boundary.
"""

from typing import Any, Optional


class ConfigError(Exception):
    """
    Base exception for all configuration-related errors.

    Example
    -------
    >>> try:
    ...     source.initialize()
    ... except ConfigError as e:
    ...     logger.error(f"Configuration failed: {e}")
    """


class ConfigurationUnavailableError(ConfigError):
    """
    Raised when no execution context is bound to the current task or thread.

    Transient: the context is expected to appear later in the process
    lifetime, so lookups that hit this are never cached.
    """


class ReferenceResolutionError(ConfigError):
    """
    Raised when a configuration domain cannot produce one of its references.

    Attributes
    ----------
    hook:
        Name of the reference hook that failed (e.g. "get_document_reference").
    """

    def __init__(self, message: str, hook: str) -> None:
        super().__init__(message)
        self.hook = hook


class ConversionError(ConfigError):
    """
    Raised when a stored value cannot be converted to the requested type.

    Attributes
    ----------
    value_type:
        The requested target type.
    value:
        The raw value that failed to convert.
    """

    def __init__(
        self,
        message: str,
        value_type: Optional[type] = None,
        value: Any = None,
    ) -> None:
        super().__init__(message)
        self.value_type = value_type
        self.value = value


class ConfigInitializationError(ConfigError):
    """
    Raised when a configuration source cannot initialize.

    This is the only fatal configuration error: a source that failed to
    initialize must not be used.

    Example
    -------
    >>> try:
    ...     source.initialize()
    ... except ConfigInitializationError as e:
    ...     logger.critical(f"Cannot start - configuration init failed: {e}")
    ...     sys.exit(1)
    """


class CacheInitializationError(ConfigInitializationError):
    """Raised when the cache backing a configuration source cannot be created."""


__all__ = [
    "ConfigError",
    "ConfigurationUnavailableError",
    "ReferenceResolutionError",
    "ConversionError",
    "ConfigInitializationError",
    "CacheInitializationError",
]
