"""
Domain models for docconf.

- **base.py**: Entity / AggregateRoot / DomainEvent and validation helpers
- **references.py**: wiki, document and object references
"""

from docconf.domain.models.base import (
    AggregateRoot,
    DomainEvent,
    DomainValidationError,
    Entity,
    validate_non_negative,
    validate_not_empty,
)
from docconf.domain.models.references import (
    DocumentReference,
    LocalDocumentReference,
    ObjectReference,
    WikiReference,
    class_object_pattern,
)

__all__ = [
    "AggregateRoot",
    "DomainEvent",
    "DomainValidationError",
    "Entity",
    "validate_non_negative",
    "validate_not_empty",
    "DocumentReference",
    "LocalDocumentReference",
    "ObjectReference",
    "WikiReference",
    "class_object_pattern",
]
