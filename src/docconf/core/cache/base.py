"""
Cache contracts for configuration sources.

Purpose
-------
Defines the tagged lookup result and the abstract cache every backend
implements.

Architecture Notes
------------------
- A lookup is HIT (with a value), MISS, or KNOWN_ABSENT. "Known absent" is
  a tag, never a value, so `None`, `""` and `[]` are all storable.
- Caches are owned by exactly one configuration source and must be safe to
  call from any thread.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class CacheError(Exception):
    """Raised when a cache backend fails or is used after release."""


class LookupState(Enum):
    HIT = "hit"
    MISS = "miss"
    KNOWN_ABSENT = "known_absent"


@dataclass(frozen=True, slots=True)
class CacheLookup:
    """
    Result of `Cache.get`.

    Example
    -------
    >>> lookup = cache.get("xwiki:XWiki.XWikiPreferences:color")
    >>> if lookup.is_hit:
    ...     return lookup.value
    """

    state: LookupState
    value: Any = None

    @classmethod
    def hit(cls, value: Any) -> "CacheLookup":
        return cls(LookupState.HIT, value)

    @property
    def is_hit(self) -> bool:
        return self.state is LookupState.HIT

    @property
    def is_miss(self) -> bool:
        return self.state is LookupState.MISS

    @property
    def is_known_absent(self) -> bool:
        return self.state is LookupState.KNOWN_ABSENT

    @property
    def is_cached(self) -> bool:
        """True for HIT and KNOWN_ABSENT."""
        return self.state is not LookupState.MISS


MISS = CacheLookup(LookupState.MISS)
KNOWN_ABSENT = CacheLookup(LookupState.KNOWN_ABSENT)


class Cache(ABC):
    """
    Key/value cache with bulk clear.

    Subclasses implement storage; `cache_id` names the cache for logs and
    backend key prefixes.
    """

    def __init__(self, cache_id: str) -> None:
        self._cache_id = cache_id

    @property
    def cache_id(self) -> str:
        return self._cache_id

    @abstractmethod
    def get(self, key: str) -> CacheLookup: ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def set_absent(self, key: str) -> None:
        """Record that `key` resolved to no value."""

    @abstractmethod
    def remove(self, key: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def release(self) -> None:
        """Free backend resources. The cache must not be used afterwards."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._cache_id!r})"
