"""
In-memory document store.

Purpose
-------
A minimal, thread-safe `DocumentStore` for hosts without a real wiki
backend and for tests. Mutations go through the `WikiDocument` aggregate,
which records domain events; the store then publishes them on the event bus
so configuration caches are invalidated.

Responsibilities
----------------
- Keep one record per (document, record class)
- Serve record snapshots to configuration sources from any thread
- Publish `record.added` / `record.updated` / `record.deleted` and
  `wiki.deleted` after each mutation

Non-Responsibilities
--------------------
- Durability, versioning, access rights
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping, Optional

from docconf.core.event import EventBus, event_bus
from docconf.core.logging.logger import get_logger
from docconf.domain.document.events import (
    RECORD_ADDED,
    RECORD_DELETED,
    RECORD_UPDATED,
    WIKI_DELETED,
    record_event_payload,
    wiki_deleted_payload,
)
from docconf.domain.document.store import StructuredRecord
from docconf.domain.models.base import AggregateRoot, DomainEvent, validate_not_empty
from docconf.domain.models.references import (
    DocumentReference,
    LocalDocumentReference,
    ObjectReference,
)

logger = get_logger(__name__)


class WikiDocument(AggregateRoot):
    """
    A document and its records, one per record class.

    Example
    -------
    >>> doc = WikiDocument(DocumentReference("xwiki", "XWiki", "XWikiPreferences"))
    >>> doc.put_record(LocalDocumentReference("XWiki", "XWikiPreferences"), {"color": "blue"})
    >>> [e.event_name for e in doc.clear_domain_events()]
    ['record.added']
    """

    def __init__(self, reference: DocumentReference) -> None:
        super().__init__(reference)
        self._records: Dict[LocalDocumentReference, Dict[str, Any]] = {}

    @property
    def reference(self) -> DocumentReference:
        return self._id  # type: ignore[return-value]

    def has_record(self, class_reference: LocalDocumentReference) -> bool:
        return class_reference in self._records

    def record(self, class_reference: LocalDocumentReference) -> Optional[StructuredRecord]:
        values = self._records.get(class_reference)
        if values is None:
            return None
        return StructuredRecord.of(self.reference, class_reference, values)

    def records(self) -> List[StructuredRecord]:
        return [
            StructuredRecord.of(self.reference, class_ref, values)
            for class_ref, values in self._records.items()
        ]

    def _object_reference(self, class_reference: LocalDocumentReference) -> ObjectReference:
        return ObjectReference(self.reference, class_reference, 0)

    def put_record(
        self, class_reference: LocalDocumentReference, fields: Mapping[str, Any]
    ) -> None:
        """Replace (or create) the record of `class_reference`."""
        event_name = RECORD_UPDATED if self.has_record(class_reference) else RECORD_ADDED
        self._records[class_reference] = dict(fields)
        self.add_domain_event(
            event_name, record_event_payload(self._object_reference(class_reference))
        )

    def set_field(
        self, class_reference: LocalDocumentReference, name: str, value: Any
    ) -> None:
        validate_not_empty(name, "field")
        if self.has_record(class_reference):
            self._records[class_reference][name] = value
            event_name = RECORD_UPDATED
        else:
            self._records[class_reference] = {name: value}
            event_name = RECORD_ADDED
        self.add_domain_event(
            event_name, record_event_payload(self._object_reference(class_reference))
        )

    def remove_record(self, class_reference: LocalDocumentReference) -> bool:
        if self._records.pop(class_reference, None) is None:
            return False
        self.add_domain_event(
            RECORD_DELETED, record_event_payload(self._object_reference(class_reference))
        )
        return True

    @property
    def is_empty(self) -> bool:
        return not self._records


class InMemoryDocumentStore:
    """
    Thread-safe in-memory `DocumentStore` publishing change events.

    Reads are synchronous; mutations are coroutines because they publish on
    the async event bus and return once awaited listeners have run.

    Example
    -------
    >>> store = InMemoryDocumentStore(bus)
    >>> await store.save_record(doc_ref, class_ref, {"color": "blue", "size": "10"})
    >>> store.get_record(doc_ref, class_ref).get_field("color")
    'blue'
    """

    def __init__(self, bus: Optional[EventBus] = None) -> None:
        self._bus = bus or event_bus
        self._documents: Dict[DocumentReference, WikiDocument] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_record(
        self,
        document: DocumentReference,
        class_reference: LocalDocumentReference,
    ) -> Optional[StructuredRecord]:
        with self._lock:
            doc = self._documents.get(document)
            return doc.record(class_reference) if doc is not None else None

    def documents(self, wiki: Optional[str] = None) -> List[DocumentReference]:
        with self._lock:
            return [ref for ref in self._documents if wiki is None or ref.wiki == wiki]

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    async def save_record(
        self,
        document: DocumentReference,
        class_reference: LocalDocumentReference,
        fields: Mapping[str, Any],
    ) -> None:
        with self._lock:
            doc = self._documents.setdefault(document, WikiDocument(document))
            doc.put_record(class_reference, fields)
            events = doc.clear_domain_events()
        await self._publish(events)

    async def set_field(
        self,
        document: DocumentReference,
        class_reference: LocalDocumentReference,
        name: str,
        value: Any,
    ) -> None:
        with self._lock:
            doc = self._documents.setdefault(document, WikiDocument(document))
            doc.set_field(class_reference, name, value)
            events = doc.clear_domain_events()
        await self._publish(events)

    async def delete_record(
        self,
        document: DocumentReference,
        class_reference: LocalDocumentReference,
    ) -> bool:
        with self._lock:
            doc = self._documents.get(document)
            if doc is None or not doc.remove_record(class_reference):
                return False
            events = doc.clear_domain_events()
            if doc.is_empty:
                del self._documents[document]
        await self._publish(events)
        return True

    async def delete_wiki(self, wiki: str) -> int:
        """Drop every document of `wiki`; returns how many were removed."""
        validate_not_empty(wiki, "wiki")
        with self._lock:
            doomed = [ref for ref in self._documents if ref.wiki == wiki]
            for ref in doomed:
                del self._documents[ref]

        logger.info(
            "Wiki deleted from document store",
            extra={"wiki": wiki, "documents_removed": len(doomed)},
        )
        await self._bus.publish(WIKI_DELETED, wiki_deleted_payload(wiki))
        return len(doomed)

    async def _publish(self, events: List[DomainEvent]) -> None:
        for event in events:
            logger.debug(
                "Publishing document event",
                extra={"event_name": event.event_name, "reference": event.payload["reference"]},
            )
            await self._bus.publish(event.event_name, event.payload)
