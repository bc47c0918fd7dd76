"""
Document store contract.

A configuration source only needs to read one structured record (a set of
named fields of one record class) from one document. Stores implement
`DocumentStore.get_record`; everything else about persistence is theirs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from docconf.domain.models.references import (
    DocumentReference,
    LocalDocumentReference,
    ObjectReference,
)


@dataclass(frozen=True)
class StructuredRecord:
    """
    Snapshot of one record: field values in store order.

    Example
    -------
    >>> record.get_field("color")
    'blue'
    >>> record.field_names()
    ['color', 'size']
    """

    document: DocumentReference
    class_reference: LocalDocumentReference
    values: Mapping[str, Any] = field(default_factory=dict)
    number: int = 0

    def get_field(self, name: str) -> Any:
        """Value of `name`, or None when the record has no such field."""
        return self.values.get(name)

    def field_names(self) -> List[str]:
        return list(self.values.keys())

    @property
    def reference(self) -> ObjectReference:
        return ObjectReference(self.document, self.class_reference, self.number)

    @classmethod
    def of(
        cls,
        document: DocumentReference,
        class_reference: LocalDocumentReference,
        values: Mapping[str, Any],
        number: int = 0,
    ) -> "StructuredRecord":
        copied: Dict[str, Any] = dict(values)
        return cls(document, class_reference, copied, number)


@runtime_checkable
class DocumentStore(Protocol):
    def get_record(
        self,
        document: DocumentReference,
        class_reference: LocalDocumentReference,
    ) -> Optional[StructuredRecord]:
        """The record of `class_reference` in `document`, or None."""
        ...
