"""
Document change events.

Event names and payload builders shared by document stores (publishers)
and configuration sources (listeners).

Payloads
--------
- record events: ``{"reference": "<object ref>", "document": "<doc ref>",
  "class": "<class ref>", "wiki": "<wiki>"}``
- ``wiki.deleted``: ``{"wiki": "<wiki>"}``
"""

from __future__ import annotations

from typing import Any, Dict

from docconf.domain.models.references import ObjectReference

RECORD_ADDED = "record.added"
RECORD_UPDATED = "record.updated"
RECORD_DELETED = "record.deleted"
WIKI_DELETED = "wiki.deleted"

RECORD_EVENTS = (RECORD_ADDED, RECORD_UPDATED, RECORD_DELETED)
INVALIDATION_EVENTS = RECORD_EVENTS + (WIKI_DELETED,)


def record_event_payload(reference: ObjectReference) -> Dict[str, Any]:
    return {
        "reference": reference.serialize(),
        "document": reference.document.serialize(),
        "class": reference.class_reference.serialize(),
        "wiki": reference.document.wiki,
    }


def wiki_deleted_payload(wiki: str) -> Dict[str, Any]:
    return {"wiki": wiki}


__all__ = [
    "RECORD_ADDED",
    "RECORD_UPDATED",
    "RECORD_DELETED",
    "WIKI_DELETED",
    "RECORD_EVENTS",
    "INVALIDATION_EVENTS",
    "record_event_payload",
    "wiki_deleted_payload",
]
