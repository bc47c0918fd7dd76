"""
Composite configuration source.

Chains sources in priority order, e.g. user preferences, then space, then
wiki, then YAML defaults. The first source that contains a key answers for
it. A member that raises is logged and skipped.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Optional

from docconf.core.logging.logger import get_logger
from docconf.sources.base import ConfigurationSource
from docconf.sources.converter import TypeConverter

logger = get_logger(__name__)


class CompositeConfigurationSource(ConfigurationSource):
    """
    Example
    -------
    >>> config = CompositeConfigurationSource([user_prefs, wiki_prefs, defaults])
    >>> config.get_str("skin", "flamingo")
    """

    def __init__(
        self,
        sources: Optional[Iterable[ConfigurationSource]] = None,
        converter: Optional[TypeConverter] = None,
    ) -> None:
        super().__init__(converter)
        self._sources: List[ConfigurationSource] = list(sources or [])

    @property
    def sources(self) -> List[ConfigurationSource]:
        return list(self._sources)

    def add_source(self, source: ConfigurationSource) -> None:
        self._sources.append(source)

    def __iter__(self) -> Iterator[ConfigurationSource]:
        return iter(self._sources)

    def _log_member_failure(self, source: ConfigurationSource, operation: str, exc: Exception) -> None:
        logger.error(
            "Configuration source failed, skipping it",
            extra={
                "source": type(source).__name__,
                "operation": operation,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=exc,
        )

    def _get_value(self, key: str, value_type: Optional[Any]) -> Any:
        for source in self._sources:
            try:
                if source.contains_key(key):
                    return source._get_value(key, value_type)
            except Exception as exc:
                self._log_member_failure(source, "get_property", exc)
        return None

    def contains_key(self, key: str) -> bool:
        for source in self._sources:
            try:
                if source.contains_key(key):
                    return True
            except Exception as exc:
                self._log_member_failure(source, "contains_key", exc)
        return False

    def get_keys(self) -> List[str]:
        keys: dict[str, None] = {}
        for source in self._sources:
            try:
                keys.update(dict.fromkeys(source.get_keys()))
            except Exception as exc:
                self._log_member_failure(source, "get_keys", exc)
        return list(keys)
