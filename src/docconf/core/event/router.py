"""
Wildcard event-name matching for the docconf EventBus.

Supported Patterns
------------------
- Exact:   "record.updated"  matches only "record.updated"
- Global:  "*"               matches any event
- Prefix:  "record.*"        matches "record.added", "record.deleted", ...
- Suffix:  "*.deleted"       matches "record.deleted", "wiki.deleted"

Matching is case-sensitive. A `*` matches any run of characters, dots
included.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Pattern


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Pattern[str]:
    parts = (re.escape(part) for part in pattern.split("*"))
    return re.compile("^" + ".*".join(parts) + "$")


class EventRouter:
    """
    Stateless wildcard matcher.

    Examples
    --------
    >>> router = EventRouter()
    >>> router.matches("record.updated", "record.*")
    True
    >>> router.matches("wiki.deleted", "record.*")
    False
    """

    @staticmethod
    def is_wildcard(pattern: str) -> bool:
        return "*" in pattern

    def matches(self, event_name: str, pattern: str) -> bool:
        if pattern == "*":
            return True
        if not self.is_wildcard(pattern):
            return event_name == pattern
        return _compile(pattern).match(event_name) is not None
