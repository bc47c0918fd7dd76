"""
Redis cache backend.

Purpose
-------
Shares configuration lookups between processes through Redis. Entries are
JSON documents stored under ``<namespace>:<cache id>:<key>``:

- ``{"v": <value>}`` for a cached value
- ``{"absent": true}`` for a known-absent key

Architecture Notes
------------------
- Uses the synchronous redis-py client because configuration lookups are
  synchronous calls
- Reads and writes degrade gracefully: a Redis failure on `get` is a MISS,
  a failure on `set` is logged and skipped
- `clear` must not silently fail (a stale entry would outlive its
  invalidation), so it raises `CacheError`
- Only values that come back from JSON with the same types are cached.
  Tuples, sets, Decimals, enums and dicts with non-string keys stay a MISS,
  so a hit never hands back a different type than the lookup that filled it
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from redis import Redis
from redis.exceptions import RedisError

from docconf.core.cache.base import KNOWN_ABSENT, MISS, Cache, CacheError, CacheLookup
from docconf.core.logging.logger import get_logger

logger = get_logger(__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")
_SCAN_BATCH = 500


def _same_after_decode(original: Any, decoded: Any) -> bool:
    if type(original) is not type(decoded):
        return False
    if isinstance(original, dict):
        return original.keys() == decoded.keys() and all(
            _same_after_decode(item, decoded[key]) for key, item in original.items()
        )
    if isinstance(original, list):
        return len(original) == len(decoded) and all(
            _same_after_decode(a, b) for a, b in zip(original, decoded)
        )
    return original == decoded


class RedisCache(Cache):
    """
    Example
    -------
    >>> client = Redis.from_url("redis://localhost:6379/0", decode_responses=True)
    >>> cache = RedisCache("configuration.document.wiki", client, namespace="docconf")
    >>> cache.set("xwiki:XWiki.XWikiPreferences:color", "blue")
    """

    def __init__(
        self,
        cache_id: str,
        client: Redis,
        *,
        namespace: str = "docconf",
        owns_client: bool = False,
    ) -> None:
        super().__init__(cache_id)
        self._client: Optional[Redis] = client
        self._owns_client = owns_client
        self._prefix = f"{namespace}:{cache_id}:"

    @property
    def prefix(self) -> str:
        return self._prefix

    def _redis(self) -> Redis:
        if self._client is None:
            raise CacheError(f"Cache '{self.cache_id}' has been released")
        return self._client

    def _key(self, key: str) -> str:
        return self._prefix + key

    def get(self, key: str) -> CacheLookup:
        client = self._redis()
        try:
            raw = client.get(self._key(key))
        except RedisError as exc:
            logger.warning(
                "Redis cache read failed, treating as miss",
                extra={"cache_id": self.cache_id, "key": key, "error": str(exc)},
            )
            return MISS

        if raw is None:
            return MISS

        try:
            entry = json.loads(raw)
            if not isinstance(entry, dict):
                raise ValueError(f"expected an object, got {type(entry).__name__}")
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Corrupt Redis cache entry ignored",
                extra={"cache_id": self.cache_id, "key": key, "error": str(exc)},
            )
            return MISS

        if entry.get("absent"):
            return KNOWN_ABSENT
        return CacheLookup.hit(entry.get("v"))

    def _write(self, key: str, entry: dict) -> None:
        client = self._redis()
        try:
            encoded = json.dumps(entry)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Value is not JSON serializable, not caching",
                extra={"cache_id": self.cache_id, "key": key, "error": str(exc)},
            )
            return

        if "v" in entry and not _same_after_decode(entry["v"], json.loads(encoded)["v"]):
            logger.debug(
                "Value does not survive JSON encoding, not caching",
                extra={
                    "cache_id": self.cache_id,
                    "key": key,
                    "value_type": type(entry["v"]).__name__,
                },
            )
            return

        try:
            client.set(self._key(key), encoded)
        except RedisError as exc:
            logger.warning(
                "Redis cache write failed",
                extra={"cache_id": self.cache_id, "key": key, "error": str(exc)},
            )

    def set(self, key: str, value: Any) -> None:
        self._write(key, {"v": value})

    def set_absent(self, key: str) -> None:
        self._write(key, {"absent": True})

    def remove(self, key: str) -> None:
        try:
            self._redis().delete(self._key(key))
        except RedisError as exc:
            raise CacheError(f"Failed to remove '{key}' from '{self.cache_id}'") from exc

    def clear(self) -> None:
        client = self._redis()
        pattern = _GLOB_SPECIAL.sub(r"\\\1", self._prefix) + "*"
        removed = 0
        try:
            batch: list[str] = []
            for redis_key in client.scan_iter(match=pattern, count=_SCAN_BATCH):
                batch.append(redis_key)
                if len(batch) >= _SCAN_BATCH:
                    removed += client.delete(*batch)
                    batch.clear()
            if batch:
                removed += client.delete(*batch)
        except RedisError as exc:
            raise CacheError(f"Failed to clear cache '{self.cache_id}'") from exc

        logger.debug(
            "Redis cache cleared",
            extra={"cache_id": self.cache_id, "keys_removed": removed},
        )

    def release(self) -> None:
        client, self._client = self._client, None
        if client is not None and self._owns_client:
            client.close()
