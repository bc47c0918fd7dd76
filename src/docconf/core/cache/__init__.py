"""
Cache layer for configuration sources.

- **base.py**: `Cache` contract and the tagged `CacheLookup` result
- **local.py**: in-process backend (default)
- **redis_cache.py**: shared Redis backend
- **service.py**: `CacheService` factory selecting the backend from settings
"""

from docconf.core.cache.base import (
    KNOWN_ABSENT,
    MISS,
    Cache,
    CacheError,
    CacheLookup,
    LookupState,
)
from docconf.core.cache.local import LocalCache
from docconf.core.cache.redis_cache import RedisCache
from docconf.core.cache.service import CacheFactory, CacheService

__all__ = [
    "Cache",
    "CacheError",
    "CacheLookup",
    "LookupState",
    "MISS",
    "KNOWN_ABSENT",
    "LocalCache",
    "RedisCache",
    "CacheFactory",
    "CacheService",
]
