"""
Document domain: the record store contract, change events and the
in-memory store.
"""

from docconf.domain.document.events import (
    INVALIDATION_EVENTS,
    RECORD_ADDED,
    RECORD_DELETED,
    RECORD_EVENTS,
    RECORD_UPDATED,
    WIKI_DELETED,
    record_event_payload,
    wiki_deleted_payload,
)
from docconf.domain.document.memory import InMemoryDocumentStore, WikiDocument
from docconf.domain.document.store import DocumentStore, StructuredRecord

__all__ = [
    "DocumentStore",
    "StructuredRecord",
    "InMemoryDocumentStore",
    "WikiDocument",
    "RECORD_ADDED",
    "RECORD_UPDATED",
    "RECORD_DELETED",
    "WIKI_DELETED",
    "RECORD_EVENTS",
    "INVALIDATION_EVENTS",
    "record_event_payload",
    "wiki_deleted_payload",
]
