"""
Configuration source base classes.

Purpose
-------
Every configuration source answers the same questions (`contains_key`,
`get_keys`, `get_property` and its typed accessors). This module holds that
shared surface, layered on a single primitive each source implements:
`_get_value(key, value_type)`.

`get_property` overloads
------------------------
- ``get_property(key)``: the value as stored, or None
- ``get_property(key, value_type=T)``: converted value, or the zero value of
  ``T`` (``[]``, ``{}``, ``()``...) when absent
- ``get_property(key, default)``: target type is ``type(default)``; the
  default is returned exactly when the resolved value is None

Lookups never raise: conversion problems degrade to None.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from docconf.core.config.errors import ConversionError
from docconf.core.logging.logger import get_logger
from docconf.sources.converter import TypeConverter, zero_value_for

logger = get_logger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


class ConfigurationSource(ABC):
    """Key/typed-value configuration interface."""

    def __init__(self, converter: Optional[TypeConverter] = None) -> None:
        self._converter = converter or TypeConverter()

    @property
    def converter(self) -> TypeConverter:
        return self._converter

    # ------------------------------------------------------------------ #
    # Primitives
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _get_value(self, key: str, value_type: Optional[Any]) -> Any:
        """Value of `key` converted to `value_type` (if given), or None."""

    @abstractmethod
    def get_keys(self) -> List[str]: ...

    # ------------------------------------------------------------------ #
    # Shared API
    # ------------------------------------------------------------------ #

    def contains_key(self, key: str) -> bool:
        """
        True when the key resolves to a value that is not None and, for
        strings, not empty. A blank field counts as "not set".
        """
        value = self._get_value(key, None)
        return value is not None and value != ""

    def is_empty(self) -> bool:
        return not self.get_keys()

    def get_property(
        self,
        key: str,
        default: Any = _UNSET,
        *,
        value_type: Optional[Any] = None,
    ) -> Any:
        if default is _UNSET:
            if value_type is None:
                return self._get_value(key, None)
            return self.get_typed(key, value_type)

        if value_type is None and default is not None:
            value_type = type(default)
        value = self._get_value(key, value_type)
        return default if value is None else value

    def get_typed(self, key: str, value_type: Type[T]) -> T:
        value = self._get_value(key, value_type)
        if value is None:
            return zero_value_for(value_type)
        return value

    def get_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._get_value(key, str)
        return default if value is None else value

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        value = self._get_value(key, int)
        return default if value is None else value

    def get_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        value = self._get_value(key, float)
        return default if value is None else value

    def get_bool(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        value = self._get_value(key, bool)
        return default if value is None else value

    def get_list(self, key: str, default: Optional[List[Any]] = None) -> List[Any]:
        value = self._get_value(key, list)
        if value is None:
            return [] if default is None else default
        return value

    def get_dict(self, key: str, default: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        value = self._get_value(key, dict)
        if value is None:
            return {} if default is None else default
        return value

    # ------------------------------------------------------------------ #
    # Helpers for subclasses
    # ------------------------------------------------------------------ #

    def _convert(self, value_type: Optional[Any], raw: Any) -> Any:
        """Convert `raw` when a target type is given; raises `ConversionError`."""
        if value_type is None:
            return raw
        return self._converter.convert(value_type, raw)


class MemoryConfigurationSource(ConfigurationSource):
    """
    Dict-backed source for defaults and tests.

    Example
    -------
    >>> source = MemoryConfigurationSource({"retries": "3"})
    >>> source.get_int("retries")
    3
    """

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        converter: Optional[TypeConverter] = None,
    ) -> None:
        super().__init__(converter)
        self._values: Dict[str, Any] = dict(values or {})

    def set_property(self, key: str, value: Any) -> None:
        self._values[key] = value

    def remove_property(self, key: str) -> None:
        self._values.pop(key, None)

    def get_keys(self) -> List[str]:
        return list(self._values.keys())

    def _get_value(self, key: str, value_type: Optional[Any]) -> Any:
        raw = self._values.get(key)
        try:
            return self._convert(value_type, raw)
        except ConversionError as exc:
            logger.warning(
                "Configuration value conversion failed",
                extra={
                    "source": type(self).__name__,
                    "key": key,
                    "value_type": getattr(value_type, "__name__", str(value_type)),
                    "error": str(exc),
                },
            )
            return None
