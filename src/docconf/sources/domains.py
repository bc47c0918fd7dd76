"""
Concrete wiki configuration domains.

- `WikiPreferencesConfigurationSource`: ``<wiki>:XWiki.XWikiPreferences``
- `SpacePreferencesConfigurationSource`: ``<wiki>:<space>.WebPreferences``
- `UserPreferencesConfigurationSource`: the current user's profile page
- `StaticDomainConfigurationSource`: fixed document/class/cache id

The first three resolve their document from the execution context on every
lookup, so one instance serves every wiki, space and user.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from docconf.core.context import require_execution_context
from docconf.domain.document.store import DocumentStore
from docconf.domain.models.references import DocumentReference, LocalDocumentReference
from docconf.sources.document import DocumentConfigurationSource

PREFERENCES_CLASS = LocalDocumentReference("XWiki", "XWikiPreferences")
USERS_CLASS = LocalDocumentReference("XWiki", "XWikiUsers")


class WikiPreferencesConfigurationSource(DocumentConfigurationSource):
    CACHE_ID = "configuration.document.wiki"
    DOCUMENT = LocalDocumentReference("XWiki", "XWikiPreferences")

    def get_document_reference(self) -> Optional[DocumentReference]:
        return self.DOCUMENT.in_wiki(require_execution_context().wiki_id)

    def get_class_reference(self) -> LocalDocumentReference:
        return PREFERENCES_CLASS

    def get_cache_id(self) -> str:
        return self.CACHE_ID


class SpacePreferencesConfigurationSource(DocumentConfigurationSource):
    """Preferences of the current space; skipped outside of a space."""

    CACHE_ID = "configuration.document.space"
    DOCUMENT_NAME = "WebPreferences"

    def get_document_reference(self) -> Optional[DocumentReference]:
        context = require_execution_context()
        if not context.space:
            return None
        return DocumentReference(context.wiki_id, context.space, self.DOCUMENT_NAME)

    def get_class_reference(self) -> LocalDocumentReference:
        return PREFERENCES_CLASS

    def get_cache_id(self) -> str:
        return self.CACHE_ID


class UserPreferencesConfigurationSource(DocumentConfigurationSource):
    """Properties of the current user's profile; skipped for guests."""

    CACHE_ID = "configuration.document.user"

    def get_document_reference(self) -> Optional[DocumentReference]:
        context = require_execution_context()
        if context.is_guest:
            return None
        return DocumentReference.parse(context.user, default_wiki=context.wiki_id)

    def get_class_reference(self) -> LocalDocumentReference:
        return USERS_CLASS

    def get_cache_id(self) -> str:
        return self.CACHE_ID


class StaticDomainConfigurationSource(DocumentConfigurationSource):
    """
    A domain fixed at construction time.

    Example
    -------
    >>> source = StaticDomainConfigurationSource(
    ...     store,
    ...     document="xwiki:Mail.MailConfig",
    ...     class_reference="Mail.SendMailConfigClass",
    ...     cache_id="configuration.document.mail",
    ... )
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        document: Union[DocumentReference, str],
        class_reference: Union[LocalDocumentReference, str],
        cache_id: str,
        **kwargs: Any,
    ) -> None:
        super().__init__(store, **kwargs)
        self._document = (
            DocumentReference.parse(document) if isinstance(document, str) else document
        )
        self._class_reference = (
            LocalDocumentReference.parse(class_reference)
            if isinstance(class_reference, str)
            else class_reference
        )
        self._cache_id = cache_id

    def get_document_reference(self) -> Optional[DocumentReference]:
        return self._document

    def get_class_reference(self) -> LocalDocumentReference:
        return self._class_reference

    def get_cache_id(self) -> str:
        return self._cache_id


__all__ = [
    "PREFERENCES_CLASS",
    "USERS_CLASS",
    "WikiPreferencesConfigurationSource",
    "SpacePreferencesConfigurationSource",
    "UserPreferencesConfigurationSource",
    "StaticDomainConfigurationSource",
]
