"""
Base domain model classes for docconf.

Purpose
-------
Foundational abstractions for the small document domain that backs the
configuration sources: entities with identity, aggregate roots that collect
domain events, and the validation helpers used by references and records.

Responsibilities
----------------
- Define base Entity class with identity and equality semantics
- Define base AggregateRoot class as the consistency boundary of a document
- Track domain events so stores can publish them on the event bus
- Provide validation helpers for business rules

Non-Responsibilities
--------------------
- Persistence (handled by document stores)
- Event delivery (handled by `docconf.core.event`)

Design Patterns
---------------
- **Entity**: Objects with identity that persist over time
- **Aggregate Root**: Consistency boundary for document mutations
- **Domain Events**: Communicate record changes to configuration caches

Usage Example
-------------
>>> class WikiDocument(AggregateRoot):
...     def put_record(self, class_ref, fields):
...         self._records[class_ref] = dict(fields)
...         self.add_domain_event("record.added", {"reference": "..."})
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Hashable, List, Optional


# ============================================================================
# DOMAIN EVENTS
# ============================================================================


@dataclass
class DomainEvent:
    """
    Represents a domain event that has occurred.

    Attributes
    ----------
    event_name : str
        Event name (e.g., "record.updated")
    payload : Dict[str, Any]
        Event payload with relevant data
    occurred_at : datetime
        When the event occurred (UTC)
    """

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# ENTITY
# ============================================================================


class Entity(ABC):
    """
    Base class for entities with identity.

    Two entities with the same ID are the same entity, even if their
    attributes differ.

    Usage
    -----
    Subclasses should:
    1. Call super().__init__(entity_id) in constructor
    2. Define business methods that modify state
    3. Emit domain events for significant state changes
    """

    def __init__(self, entity_id: Hashable) -> None:
        self._id = entity_id
        self._domain_events: List[DomainEvent] = []

    @property
    def id(self) -> Hashable:
        """Get entity ID (immutable)."""
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        """
        Add a domain event to be published.

        Examples
        --------
        >>> self.add_domain_event("record.deleted", {
        ...     "reference": "xwiki:Main.Config^Main.ConfigClass[0]",
        ... })
        """
        self._domain_events.append(DomainEvent(event_name=event_name, payload=payload))

    def clear_domain_events(self) -> List[DomainEvent]:
        """
        Clear and return all domain events.

        Called by the store after applying a mutation and before publishing
        the events.
        """
        events = self._domain_events.copy()
        self._domain_events.clear()
        return events

    def get_pending_events(self) -> List[DomainEvent]:
        return self._domain_events.copy()


# ============================================================================
# AGGREGATE ROOT
# ============================================================================


class AggregateRoot(Entity):
    """
    Base class for aggregate roots.

    The aggregate root is the entry point for all operations on the
    aggregate. External objects reference aggregates by ID only.
    """

    pass


# ============================================================================
# DOMAIN MODEL VALIDATION
# ============================================================================


class DomainValidationError(Exception):
    """
    Exception raised when domain model validation fails.

    Attributes
    ----------
    field : Optional[str]
        Field name that failed validation (if applicable)
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_not_empty(value: Optional[str], field_name: str) -> None:
    """
    Validate that a string is present and not blank.

    Raises
    ------
    DomainValidationError
        If value is None, empty or whitespace only
    """
    if value is None or not str(value).strip():
        raise DomainValidationError(
            f"{field_name} must not be empty",
            field=field_name,
        )


def validate_non_negative(value: int, field_name: str) -> None:
    """
    Validate that a value is non-negative.

    Raises
    ------
    DomainValidationError
        If value is negative
    """
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )
