"""
Cache factory for configuration sources.

Purpose
-------
Creates the cache a configuration source owns, choosing the backend from
`Config.CACHE_BACKEND` ("memory" or "redis").

Responsibilities
----------------
- Build `LocalCache` or `RedisCache` instances keyed by cache id
- Verify Redis connectivity before handing out a Redis-backed cache
- Report every failure as `CacheInitializationError`

Non-Responsibilities
--------------------
- Invalidation (handled by the owning configuration source)
"""

from __future__ import annotations

import time
from typing import Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError

from docconf.core.cache.base import Cache
from docconf.core.cache.local import LocalCache
from docconf.core.cache.redis_cache import RedisCache
from docconf.core.config.config import Config
from docconf.core.config.errors import CacheInitializationError
from docconf.core.logging.logger import get_logger

logger = get_logger(__name__)


class CacheFactory(Protocol):
    def create_cache(self, cache_id: str) -> Cache: ...


class CacheService:
    """
    Default `CacheFactory`.

    Parameters default to the static settings, so `CacheService()` honours
    the environment. A pre-built Redis client may be injected (tests use the
    testcontainers client); injected clients are not closed on release.

    Example
    -------
    >>> cache = CacheService().create_cache("configuration.document.wiki")
    """

    def __init__(
        self,
        backend: Optional[str] = None,
        *,
        redis_url: Optional[str] = None,
        namespace: Optional[str] = None,
        redis_client: Optional[Redis] = None,
    ) -> None:
        self.backend = (backend or Config.CACHE_BACKEND).lower()
        self.redis_url = redis_url or Config.REDIS_URL
        self.namespace = namespace or Config.CACHE_NAMESPACE
        self._redis_client = redis_client

    def create_cache(self, cache_id: str) -> Cache:
        """
        Raises
        ------
        CacheInitializationError
            Unknown backend or Redis unreachable.
        """
        if not cache_id:
            raise CacheInitializationError("Cache id must not be empty")

        if self.backend == "memory":
            cache: Cache = LocalCache(cache_id)
        elif self.backend == "redis":
            cache = self._create_redis_cache(cache_id)
        else:
            raise CacheInitializationError(
                f"Unknown cache backend '{self.backend}' "
                f"(expected one of {list(Config.VALID_CACHE_BACKENDS)})"
            )

        logger.info(
            "Configuration cache created",
            extra={"cache_id": cache_id, "backend": self.backend},
        )
        return cache

    def _create_redis_cache(self, cache_id: str) -> RedisCache:
        start_time = time.monotonic()
        owns_client = self._redis_client is None
        try:
            client = self._redis_client or Redis.from_url(
                self.redis_url,
                socket_timeout=Config.REDIS_SOCKET_TIMEOUT,
                decode_responses=True,
            )
            client.ping()
        except (RedisError, ValueError) as exc:
            logger.error(
                "Redis cache initialization failed",
                extra={
                    "cache_id": cache_id,
                    "url_scheme": self.redis_url.split("://", 1)[0],
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise CacheInitializationError(
                f"Cannot create Redis cache '{cache_id}': {exc}"
            ) from exc

        logger.debug(
            "Redis connection verified",
            extra={
                "cache_id": cache_id,
                "ping_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
        )
        return RedisCache(
            cache_id,
            client,
            namespace=self.namespace,
            owns_client=owns_client,
        )
