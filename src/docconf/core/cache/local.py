"""
Process-local cache backend.

A dict of tagged entries guarded by a `threading.Lock`. Default backend for
configuration sources.
"""

from __future__ import annotations

import threading
from typing import Any, Dict

from docconf.core.cache.base import KNOWN_ABSENT, MISS, Cache, CacheError, CacheLookup


class LocalCache(Cache):
    def __init__(self, cache_id: str) -> None:
        super().__init__(cache_id)
        self._entries: Dict[str, CacheLookup] = {}
        self._lock = threading.Lock()
        self._released = False

    def _check_open(self) -> None:
        if self._released:
            raise CacheError(f"Cache '{self.cache_id}' has been released")

    def get(self, key: str) -> CacheLookup:
        with self._lock:
            self._check_open()
            return self._entries.get(key, MISS)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._check_open()
            self._entries[key] = CacheLookup.hit(value)

    def set_absent(self, key: str) -> None:
        with self._lock:
            self._check_open()
            self._entries[key] = KNOWN_ABSENT

    def remove(self, key: str) -> None:
        with self._lock:
            self._check_open()
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def release(self) -> None:
        with self._lock:
            self._entries.clear()
            self._released = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
