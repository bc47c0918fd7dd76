"""
Wiki-document backed configuration source.

Purpose
-------
Reads configuration properties from one structured record of one wiki
document, memoizes every lookup in a cache it owns, and clears that cache
whenever the record (or its wiki) changes.

Responsibilities
----------------
- Typed property access (`get_property` overloads and typed accessors)
- Cache keyed by ``<serialized document reference>:<property>``, with
  known-absent entries so a missing key costs one store round-trip per
  invalidation
- One invalidation subscription per source, identified by the cache id
- Failsafe reference resolution: a broken domain is skipped, never fatal

Non-Responsibilities
--------------------
- Storage of documents (see `docconf.domain.document`)
- Finer-grained invalidation: any matching event clears the whole cache

Lifecycle
---------
>>> source = WikiPreferencesConfigurationSource(store, bus=bus)
>>> source.initialize()              # cache + subscription, or ConfigInitializationError
>>> with execution_context(ExecutionContext("xwiki")):
...     source.get_str("color", "red")
>>> source.dispose()                  # subscription closed, cache cleared and released

Concurrency
-----------
Lookups run on any thread or task without locking. The cache is thread-safe.
A lookup racing an invalidation may leave one stale entry behind; the next
matching event clears it.
"""

from __future__ import annotations

import time
from abc import abstractmethod
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Pattern, Sequence, TypeVar

from docconf.core.cache.base import MISS, Cache, CacheError, CacheLookup
from docconf.core.cache.service import CacheFactory, CacheService
from docconf.core.config.errors import (
    CacheInitializationError,
    ConfigError,
    ConfigInitializationError,
    ConfigurationUnavailableError,
    ConversionError,
    ReferenceResolutionError,
)
from docconf.core.config.metrics import ConfigMetrics, get_health_snapshot, get_metrics_snapshot
from docconf.core.context import get_execution_context
from docconf.core.event import EventBus, Subscription, event_bus
from docconf.core.event.types import EventPayload
from docconf.core.logging.logger import get_logger
from docconf.domain.document.events import INVALIDATION_EVENTS
from docconf.domain.document.store import DocumentStore, StructuredRecord
from docconf.domain.models.references import (
    DocumentReference,
    LocalDocumentReference,
    class_object_pattern,
)
from docconf.sources.base import ConfigurationSource
from docconf.sources.converter import TypeConverter

logger = get_logger(__name__)

_CONVERSION_FAILED = object()

R = TypeVar("R")


@dataclass(frozen=True, slots=True)
class Resolution(Generic[R]):
    """
    Outcome of calling one reference hook.

    `reference` is None either because the hook failed (`error` is set) or
    because the domain currently has nothing to offer (no document for a
    guest, no execution context...).
    """

    reference: Optional[R] = None
    error: Optional[ReferenceResolutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.reference is not None


class DocumentConfigurationSource(ConfigurationSource):
    """
    Base class for configuration domains stored in wiki documents.

    Subclasses implement three hooks:

    - `get_document_reference()`: document holding the values, or None to
      skip this source
    - `get_class_reference()`: record class holding the properties
    - `get_cache_id()`: cache identifier, also the listener identifier
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        bus: Optional[EventBus] = None,
        cache_factory: Optional[CacheFactory] = None,
        converter: Optional[TypeConverter] = None,
    ) -> None:
        super().__init__(converter)
        self._store = store
        self._bus = bus or event_bus
        self._cache_factory: CacheFactory = cache_factory or CacheService()
        self._cache: Optional[Cache] = None
        self._subscription: Optional[Subscription] = None
        self._metrics = ConfigMetrics()

    # ------------------------------------------------------------------ #
    # Domain hooks
    # ------------------------------------------------------------------ #

    @abstractmethod
    def get_document_reference(self) -> Optional[DocumentReference]: ...

    @abstractmethod
    def get_class_reference(self) -> LocalDocumentReference: ...

    @abstractmethod
    def get_cache_id(self) -> str: ...

    def get_cache_key_prefix(self) -> Optional[str]:
        """Serialized document reference, or None when the domain is unavailable."""
        resolution = self._resolve("get_document_reference", self.get_document_reference)
        return resolution.reference.serialize() if resolution.ok else None

    def get_invalidation_events(self) -> Sequence[str]:
        return INVALIDATION_EVENTS

    def get_invalidation_pattern(self) -> Pattern[str]:
        return class_object_pattern(self.get_class_reference())

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def initialized(self) -> bool:
        return self._cache is not None

    @property
    def subscription(self) -> Optional[Subscription]:
        return self._subscription

    @property
    def metrics(self) -> ConfigMetrics:
        return self._metrics

    def initialize(self) -> None:
        """
        Create the cache and register the invalidation listener.

        Idempotent. On failure everything acquired so far is released.

        Raises
        ------
        CacheInitializationError
            The cache factory could not create the cache.
        ConfigInitializationError
            Any other startup failure (e.g. the listener identifier is
            already registered on the bus).
        """
        if self.initialized:
            return

        with ExitStack() as stack:
            try:
                cache_id = self.get_cache_id()
                cache = self._create_cache(cache_id)
                stack.callback(self._release_cache, cache)

                subscription = self._bus.listen(
                    cache_id,
                    self.get_invalidation_events(),
                    self._on_invalidation_event,
                    reference_pattern=self.get_invalidation_pattern(),
                )
                stack.callback(subscription.close)
            except ConfigInitializationError:
                raise
            except Exception as exc:
                logger.error(
                    "Configuration source initialization failed",
                    extra={
                        "source": type(self).__name__,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                raise ConfigInitializationError(
                    f"Failed to initialize {type(self).__name__}: {exc}"
                ) from exc

            self._cache = cache
            self._subscription = subscription
            stack.pop_all()

        logger.info(
            "Configuration source initialized",
            extra={
                "source": type(self).__name__,
                "cache_id": cache_id,
                "events": list(subscription.event_names),
            },
        )

    def _create_cache(self, cache_id: str) -> Cache:
        try:
            return self._cache_factory.create_cache(cache_id)
        except CacheInitializationError:
            raise
        except Exception as exc:
            raise CacheInitializationError(
                f"Failed to create cache '{cache_id}': {exc}"
            ) from exc

    def dispose(self) -> None:
        """Close the subscription, then clear and release the cache. Idempotent."""
        subscription, self._subscription = self._subscription, None
        cache, self._cache = self._cache, None

        if subscription is not None:
            subscription.close()
        if cache is not None:
            self._release_cache(cache)
            logger.info(
                "Configuration source disposed",
                extra={"source": type(self).__name__, "cache_id": cache.cache_id},
            )

    def _release_cache(self, cache: Cache) -> None:
        try:
            cache.clear()
        except CacheError as exc:
            logger.warning(
                "Failed to clear configuration cache",
                extra={"cache_id": cache.cache_id, "error": str(exc)},
            )
        cache.release()

    def __enter__(self) -> "DocumentConfigurationSource":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    # ------------------------------------------------------------------ #
    # Invalidation
    # ------------------------------------------------------------------ #

    def _on_invalidation_event(self, payload: EventPayload) -> None:
        cache = self._cache
        if cache is None:
            return

        cache.clear()
        self._metrics.record_invalidation()
        logger.debug(
            "Configuration cache invalidated",
            extra={
                "cache_id": cache.cache_id,
                "reference": payload.get("reference"),
                "wiki": payload.get("wiki"),
            },
        )

    # ------------------------------------------------------------------ #
    # Reference resolution
    # ------------------------------------------------------------------ #

    def _resolve(self, hook_name: str, hook: Callable[[], Optional[R]]) -> Resolution[R]:
        try:
            return Resolution(reference=hook())
        except ConfigurationUnavailableError:
            return Resolution()
        except Exception as exc:
            error = ReferenceResolutionError(
                f"{type(self).__name__}.{hook_name} failed: {exc}", hook=hook_name
            )
            error.__cause__ = exc
            self._metrics.record_resolution_error()
            logger.error(
                "Configuration reference resolution failed, skipping source",
                extra={
                    "source": type(self).__name__,
                    "hook": hook_name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=exc,
            )
            return Resolution(error=error)

    def _load_record(self) -> Optional[StructuredRecord]:
        """Fetch the domain record; store errors propagate to the caller."""
        document = self._resolve("get_document_reference", self.get_document_reference)
        class_reference = self._resolve("get_class_reference", self.get_class_reference)
        if not (document.ok and class_reference.ok):
            return None

        self._metrics.record_store_fetch()
        return self._store.get_record(document.reference, class_reference.reference)

    def _log_store_error(self, operation: str, exc: Exception, key: Optional[str] = None) -> None:
        self._metrics.record_store_error()
        logger.error(
            "Failed to access configuration",
            extra={
                "source": type(self).__name__,
                "operation": operation,
                "key": key,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=exc,
        )

    # ------------------------------------------------------------------ #
    # Cache access
    # ------------------------------------------------------------------ #

    def _cache_get(self, cache: Optional[Cache], cache_key: str) -> CacheLookup:
        if cache is None:
            return MISS
        try:
            return cache.get(cache_key)
        except CacheError as exc:
            logger.warning(
                "Configuration cache read failed",
                extra={"cache_key": cache_key, "error": str(exc)},
            )
            return MISS

    def _cache_put(self, cache: Optional[Cache], cache_key: str, value: Any) -> None:
        if cache is None:
            return
        try:
            if value is None:
                cache.set_absent(cache_key)
            else:
                cache.set(cache_key, value)
        except CacheError as exc:
            logger.warning(
                "Configuration cache write failed",
                extra={"cache_key": cache_key, "error": str(exc)},
            )

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def _get_value(self, key: str, value_type: Optional[Any]) -> Any:
        return self.resolve_typed_value(key, value_type)

    def resolve_typed_value(self, key: str, value_type: Optional[Any] = None) -> Any:
        """
        Look up `key`, converting to `value_type` when given.

        Cached hits are passed through the converter again when a type is
        given; values already of that type come back unchanged.
        Unavailable context, store failures and conversion failures return
        None and leave the cache untouched.
        """
        start = time.perf_counter()

        prefix = self.get_cache_key_prefix()
        if prefix is None:
            return None

        cache_key = f"{prefix}:{key}"
        cache = self._cache
        lookup = self._cache_get(cache, cache_key)

        if lookup.is_cached:
            self._metrics.record_lookup((time.perf_counter() - start) * 1000, hit=True)
            if not lookup.is_hit:
                return None
            # a raw lookup may have cached the stored string
            cached = self._convert_logged(key, value_type, lookup.value)
            return None if cached is _CONVERSION_FAILED else cached

        self._metrics.record_lookup((time.perf_counter() - start) * 1000, hit=False)

        if get_execution_context() is None:
            self._metrics.record_unavailable()
            return None

        try:
            record = self._load_record()
        except Exception as exc:
            self._log_store_error("get_property", exc, key)
            return None

        raw = record.get_field(key) if record is not None else None

        result = self._convert_logged(key, value_type, raw)
        if result is _CONVERSION_FAILED:
            return None

        self._cache_put(cache, cache_key, result)
        return result

    def _convert_logged(self, key: str, value_type: Optional[Any], raw: Any) -> Any:
        try:
            return self._convert(value_type, raw)
        except ConversionError as exc:
            self._metrics.record_conversion_error()
            logger.warning(
                "Configuration value conversion failed",
                extra={
                    "source": type(self).__name__,
                    "key": key,
                    "value_type": getattr(value_type, "__name__", str(value_type)),
                    "error": str(exc),
                },
            )
            return _CONVERSION_FAILED

    def get_keys(self) -> List[str]:
        """Field names of the domain record in store order; [] when unavailable."""
        if get_execution_context() is None:
            return []

        try:
            record = self._load_record()
        except Exception as exc:
            self._log_store_error("get_keys", exc)
            return []

        return record.field_names() if record is not None else []

    # ------------------------------------------------------------------ #
    # Observability
    # ------------------------------------------------------------------ #

    def get_metrics(self) -> Dict[str, Any]:
        return get_metrics_snapshot(self._metrics, self._safe_cache_id(), self.initialized)

    def health_snapshot(self) -> Dict[str, Any]:
        return get_health_snapshot(
            cache_id=self._safe_cache_id(),
            initialized=self.initialized,
            subscribed=self._subscription is not None and self._subscription.active,
            errors=self._metrics.errors,
            invalidations=self._metrics.invalidations,
        )

    def _safe_cache_id(self) -> str:
        try:
            return self.get_cache_id()
        except ConfigError:
            return "<unknown>"
