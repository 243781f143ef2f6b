"""Terminus - base class for indirection backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .primitives.exceptions import TerminusError

if TYPE_CHECKING:
    from .context import IndirectorContext
    from .indirection import Indirection
    from .request import Request
    from .settings import IndirectorSettings


class Terminus:
    """Default behaviour shared by concrete termini.

    An instance is created once per (indirection, terminus name) pair and
    reused for the life of the process, so subclasses must be stateless or
    guard their own state. Operations a backend does not support raise
    :class:`TerminusError`.
    """

    def __init__(self, indirection: Indirection, name: str | None = None) -> None:
        self.indirection = indirection
        self.name = name or type(self).__name__.lower()

    @property
    def indirection_name(self) -> str:
        return self.indirection.name

    @property
    def model(self) -> type[Any]:
        return self.indirection.model

    @property
    def context(self) -> IndirectorContext:
        return self.indirection.context

    @property
    def settings(self) -> IndirectorSettings:
        return self.indirection.context.settings

    async def find(self, request: Request) -> Any | None:
        raise self._unsupported("find")

    async def save(self, request: Request) -> Any:
        raise self._unsupported("save")

    async def search(self, request: Request) -> list[Any]:
        raise self._unsupported("search")

    async def destroy(self, request: Request) -> Any:
        raise self._unsupported("destroy")

    def _unsupported(self, method: str) -> TerminusError:
        return TerminusError(
            f"Terminus {self.name} for {self.indirection_name} does not support {method}"
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.indirection_name}/{self.name}>"
