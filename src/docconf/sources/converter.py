"""
Type conversion for configuration values.

Purpose
-------
Turns raw stored values (usually strings typed into a wiki form) into the
type a caller asks for.

Rules
-----
- ``None`` converts to ``None``; a value already of the target type is
  returned as is (``bool`` is never accepted as ``int``)
- blank strings convert to ``None`` for every target except ``str``
- ``bool`` accepts true/yes/on/1 and false/no/off/0, case-insensitive
- ``int`` rejects fractional numbers
- sequences split strings on ``,`` or ``|``; ``dict`` parses ``key=value``
  lines and skips ``#`` comments
- ``Enum`` subclasses convert by member name, then by value
- parameterized generics (``list[int]``, ``dict[str, bool]``) convert their
  items too

Anything else raises `ConversionError`. Custom targets are added with
`TypeConverter.register`.
"""

from __future__ import annotations

import collections.abc as cabc
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Optional, get_args, get_origin

from docconf.core.config.errors import ConversionError

Converter = Callable[[Any], Any]

_TRUE = frozenset({"true", "yes", "on", "1"})
_FALSE = frozenset({"false", "no", "off", "0"})
_ITEM_SEPARATOR = re.compile(r"[,|]")

_SEQUENCE_TARGETS = (list, tuple, set, frozenset)


def _to_str(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)


def _to_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError("booleans are not integers")
    if isinstance(raw, (float, Decimal)):
        if raw != int(raw):
            raise ValueError(f"{raw!r} is not a whole number")
        return int(raw)
    return int(str(raw).strip())


def _to_float(raw: Any) -> float:
    if isinstance(raw, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(raw, str):
        return float(raw.strip())
    return float(raw)


def _to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise ValueError("booleans are not numbers")
    try:
        return Decimal(str(raw).strip())
    except InvalidOperation as exc:
        raise ValueError(f"{raw!r} is not a decimal") from exc


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    normalized = str(raw).strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    raise ValueError(f"{raw!r} is not a boolean")


def _split(raw: Any) -> list:
    if isinstance(raw, str):
        return [item.strip() for item in _ITEM_SEPARATOR.split(raw) if item.strip()]
    if isinstance(raw, (bytes, cabc.Mapping)) or not isinstance(raw, cabc.Iterable):
        raise ValueError(f"cannot build a sequence from {type(raw).__name__}")
    return list(raw)


def _to_dict(raw: Any) -> dict:
    if isinstance(raw, cabc.Mapping):
        return dict(raw)
    if not isinstance(raw, str):
        raise ValueError(f"cannot build a mapping from {type(raw).__name__}")

    result: Dict[str, str] = {}
    for line in raw.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise ValueError(f"expected 'key=value', got {line!r}")
        result[key.strip()] = value.strip()
    return result


def _to_enum(enum_type: type[Enum], raw: Any) -> Enum:
    if isinstance(raw, str):
        name = raw.strip()
        if name in enum_type.__members__:
            return enum_type[name]
        upper = name.upper()
        if upper in enum_type.__members__:
            return enum_type[upper]
    return enum_type(raw)


def zero_value_for(value_type: Any) -> Any:
    """
    Type-appropriate empty value for an absent property.

    Example
    -------
    >>> zero_value_for(list), zero_value_for(dict[str, int]), zero_value_for(int)
    ([], {}, None)
    """
    origin = get_origin(value_type) or value_type
    if not isinstance(origin, type):
        return None
    if issubclass(origin, (str, bytes)):
        return None
    if issubclass(origin, tuple):
        return ()
    if issubclass(origin, frozenset):
        return frozenset()
    if issubclass(origin, cabc.Mapping):
        return {}
    if issubclass(origin, cabc.Set):
        return set()
    if issubclass(origin, cabc.Sequence):
        return []
    return None


class TypeConverter:
    """
    Registry of target-type converters.

    Example
    -------
    >>> converter = TypeConverter()
    >>> converter.convert(int, "42")
    42
    >>> converter.convert(list, "a, b|c")
    ['a', 'b', 'c']
    >>> converter.register(Path, Path)
    """

    def __init__(self) -> None:
        self._converters: Dict[type, Converter] = {
            str: _to_str,
            int: _to_int,
            float: _to_float,
            bool: _to_bool,
            Decimal: _to_decimal,
            list: lambda raw: list(_split(raw)),
            tuple: lambda raw: tuple(_split(raw)),
            set: lambda raw: set(_split(raw)),
            frozenset: lambda raw: frozenset(_split(raw)),
            dict: _to_dict,
        }

    def register(self, value_type: type, converter: Converter) -> None:
        """Add or replace the converter for `value_type`."""
        self._converters[value_type] = converter

    def convert(self, value_type: Any, raw: Any) -> Any:
        """
        Raises
        ------
        ConversionError
            If `raw` cannot be represented as `value_type`.
        """
        if raw is None:
            return None

        origin = get_origin(value_type)
        if origin is not None:
            return self._convert_generic(value_type, origin, raw)

        if not isinstance(value_type, type):
            raise ConversionError(
                f"Unsupported target type {value_type!r}", value_type=None, value=raw
            )

        if value_type is not str and isinstance(raw, str) and not raw.strip():
            return None

        if isinstance(raw, value_type) and not (isinstance(raw, bool) and value_type is int):
            return raw

        converter = self._find_converter(value_type)
        if converter is None:
            raise ConversionError(
                f"No converter registered for {value_type.__name__}",
                value_type=value_type,
                value=raw,
            )

        try:
            return converter(raw)
        except ConversionError:
            raise
        except (ValueError, TypeError, KeyError, ArithmeticError) as exc:
            raise ConversionError(
                f"Cannot convert {raw!r} to {value_type.__name__}: {exc}",
                value_type=value_type,
                value=raw,
            ) from exc

    def _find_converter(self, value_type: type) -> Optional[Converter]:
        converter = self._converters.get(value_type)
        if converter is not None:
            return converter
        if issubclass(value_type, Enum):
            return lambda raw: _to_enum(value_type, raw)
        for base in value_type.__mro__[1:]:
            if base in self._converters and base is not object:
                base_converter = self._converters[base]
                return lambda raw: value_type(base_converter(raw))
        return None

    def _convert_generic(self, value_type: Any, origin: type, raw: Any) -> Any:
        container = self.convert(origin, raw)
        if container is None:
            return None

        args = get_args(value_type)
        if not args:
            return container

        if isinstance(container, dict):
            key_type, item_type = args if len(args) == 2 else (Any, args[0])
            return {
                self._convert_item(key_type, key): self._convert_item(item_type, item)
                for key, item in container.items()
            }

        if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
            if len(args) != len(container):
                raise ConversionError(
                    f"Expected {len(args)} items, got {len(container)}",
                    value_type=origin,
                    value=raw,
                )
            return tuple(self._convert_item(t, item) for t, item in zip(args, container))

        item_type = args[0]
        return origin(self._convert_item(item_type, item) for item in container)

    def _convert_item(self, item_type: Any, item: Any) -> Any:
        if item_type is Any:
            return item
        return self.convert(item_type, item)


__all__ = ["TypeConverter", "Converter", "zero_value_for"]
