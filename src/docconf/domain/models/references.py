"""
Entity references for wiki documents and structured records.

Purpose
-------
Immutable value types naming the things a configuration source reads:
a wiki, a document inside a wiki, and a structured record ("object") of a
given class attached to a document.

Serialized forms
----------------
- wiki:            ``xwiki``
- local document:  ``Space.Page`` (space may be dotted: ``A.B.Page``)
- document:        ``xwiki:Space.Page``
- object:          ``xwiki:Space.Page^Space.ClassName[0]``

The serialized document form is what configuration sources use as cache
key prefix, so it must be stable and unique per document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern

from docconf.domain.models.base import (
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
)

WIKI_SEPARATOR = ":"
SPACE_SEPARATOR = "."
OBJECT_SEPARATOR = "^"


@dataclass(frozen=True, slots=True)
class WikiReference:
    name: str

    def __post_init__(self) -> None:
        validate_not_empty(self.name, "wiki")
        if WIKI_SEPARATOR in self.name:
            raise DomainValidationError(
                f"wiki name must not contain '{WIKI_SEPARATOR}': {self.name!r}",
                field="wiki",
            )

    def serialize(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.serialize()


@dataclass(frozen=True, slots=True)
class LocalDocumentReference:
    """A document reference without a wiki, used for record classes."""

    space: str
    name: str

    def __post_init__(self) -> None:
        validate_not_empty(self.space, "space")
        validate_not_empty(self.name, "name")
        if SPACE_SEPARATOR in self.name:
            raise DomainValidationError(
                f"page name must not contain '{SPACE_SEPARATOR}': {self.name!r}",
                field="name",
            )

    def serialize(self) -> str:
        return f"{self.space}{SPACE_SEPARATOR}{self.name}"

    def in_wiki(self, wiki: str) -> "DocumentReference":
        return DocumentReference(wiki=wiki, space=self.space, name=self.name)

    @classmethod
    def parse(cls, value: str) -> "LocalDocumentReference":
        """
        Parse ``Space.Page``. The last dot separates the page name.

        Example
        -------
        >>> LocalDocumentReference.parse("XWiki.XWikiPreferences")
        LocalDocumentReference(space='XWiki', name='XWikiPreferences')
        """
        space, sep, name = value.strip().rpartition(SPACE_SEPARATOR)
        if not sep:
            raise DomainValidationError(
                f"expected 'Space.Page', got {value!r}", field="reference"
            )
        return cls(space=space, name=name)

    def __str__(self) -> str:
        return self.serialize()


@dataclass(frozen=True, slots=True)
class DocumentReference:
    wiki: str
    space: str
    name: str

    def __post_init__(self) -> None:
        WikiReference(self.wiki)
        LocalDocumentReference(self.space, self.name)

    @property
    def wiki_reference(self) -> WikiReference:
        return WikiReference(self.wiki)

    def local(self) -> LocalDocumentReference:
        return LocalDocumentReference(space=self.space, name=self.name)

    def serialize(self) -> str:
        return f"{self.wiki}{WIKI_SEPARATOR}{self.local().serialize()}"

    @classmethod
    def parse(cls, value: str, default_wiki: Optional[str] = None) -> "DocumentReference":
        """
        Parse ``wiki:Space.Page``; the wiki part may be omitted when
        ``default_wiki`` is given.

        Example
        -------
        >>> DocumentReference.parse("xwiki:Main.WebHome").space
        'Main'
        """
        wiki, sep, local = value.strip().partition(WIKI_SEPARATOR)
        if not sep:
            if default_wiki is None:
                raise DomainValidationError(
                    f"expected 'wiki:Space.Page', got {value!r}", field="reference"
                )
            wiki, local = default_wiki, value.strip()
        return LocalDocumentReference.parse(local).in_wiki(wiki)

    def __str__(self) -> str:
        return self.serialize()


@dataclass(frozen=True, slots=True)
class ObjectReference:
    """A structured record of class ``class_reference`` attached to ``document``."""

    document: DocumentReference
    class_reference: LocalDocumentReference
    number: Optional[int] = 0

    def __post_init__(self) -> None:
        if self.number is not None:
            validate_non_negative(self.number, "number")

    def serialize(self) -> str:
        number = "" if self.number is None else str(self.number)
        return (
            f"{self.document.serialize()}{OBJECT_SEPARATOR}"
            f"{self.class_reference.serialize()}[{number}]"
        )

    def __str__(self) -> str:
        return self.serialize()


def class_object_pattern(class_reference: LocalDocumentReference) -> Pattern[str]:
    """
    Regex matching serialized object references of one record class,
    whatever document they belong to.

    Example
    -------
    >>> pattern = class_object_pattern(LocalDocumentReference("XWiki", "XWikiPreferences"))
    >>> bool(pattern.match("xwiki:XWiki.XWikiPreferences^XWiki.XWikiPreferences[0]"))
    True
    """
    return re.compile(
        r"^.*" + re.escape(OBJECT_SEPARATOR) + re.escape(class_reference.serialize()) + r"\[\d*\]$"
    )


__all__ = [
    "WikiReference",
    "LocalDocumentReference",
    "DocumentReference",
    "ObjectReference",
    "class_object_pattern",
]
