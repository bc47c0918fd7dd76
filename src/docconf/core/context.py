"""
Execution context for configuration lookups.

Purpose
-------
Names the wiki, space and user a request runs on behalf of. Wiki-backed
configuration sources resolve their documents from it; when no context is
bound, configuration is unavailable and lookups degrade to empty answers.

Architecture Notes
------------------
- Stored in a `ContextVar`, so each asyncio task and each thread sees its
  own context
- `execution_context(...)` binds a context and the matching log context for
  the duration of a block (sync or async)
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
from typing import Optional

from docconf.core.config.errors import ConfigurationUnavailableError
from docconf.core.logging.logger import LogContext

_execution_context: ContextVar[Optional["ExecutionContext"]] = ContextVar(
    "docconf_execution_context", default=None
)


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """
    Identity of the current request.

    Attributes
    ----------
    wiki_id:
        Current wiki (e.g. "xwiki").
    space:
        Current space, possibly dotted for nested spaces. None outside of a
        document.
    user:
        Serialized reference of the current user's profile page
        (e.g. "xwiki:XWiki.Admin"). None for guests.
    """

    wiki_id: str
    space: Optional[str] = None
    user: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return not self.user

    def with_wiki(self, wiki_id: str) -> "ExecutionContext":
        return replace(self, wiki_id=wiki_id)


def get_execution_context() -> Optional[ExecutionContext]:
    return _execution_context.get()


def require_execution_context() -> ExecutionContext:
    """
    Return the bound context.

    Raises
    ------
    ConfigurationUnavailableError
        When no context is bound to the current task or thread.
    """
    context = _execution_context.get()
    if context is None:
        raise ConfigurationUnavailableError("No execution context is bound")
    return context


def set_execution_context(context: Optional[ExecutionContext]) -> Token:
    return _execution_context.set(context)


def reset_execution_context(token: Token) -> None:
    _execution_context.reset(token)


class execution_context:
    """
    Bind an execution context (and its log context) for a block.

    Example
    -------
    >>> with execution_context(ExecutionContext("xwiki", space="Main")):
    ...     source.get_property("color")
    """

    def __init__(self, context: ExecutionContext) -> None:
        self.context = context
        self._token: Optional[Token] = None
        self._log_context = LogContext(wiki_id=context.wiki_id, user=context.user)

    def __enter__(self) -> ExecutionContext:
        self._token = _execution_context.set(self.context)
        self._log_context.__enter__()
        return self.context

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._log_context.__exit__(exc_type, exc_val, exc_tb)
        if self._token is not None:
            _execution_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> ExecutionContext:
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


__all__ = [
    "ExecutionContext",
    "execution_context",
    "get_execution_context",
    "require_execution_context",
    "set_execution_context",
    "reset_execution_context",
]
