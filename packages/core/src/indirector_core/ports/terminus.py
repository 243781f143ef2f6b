"""Terminus ports - the backend contract behind every indirection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..request import Request


@runtime_checkable
class ITerminus(Protocol):
    """
    Core CRUD contract for a backend serving one indirection.

    ``find`` returns ``None`` for "not found"; ``search`` must return a list.
    """

    async def find(self, request: Request) -> Any | None: ...

    async def save(self, request: Request) -> Any: ...

    async def search(self, request: Request) -> list[Any]: ...

    async def destroy(self, request: Request) -> Any: ...


@runtime_checkable
class IAuthorizer(Protocol):
    """Optional capability: decide whether a node may make a request."""

    def authorized(self, request: Request) -> bool: ...


@runtime_checkable
class IFilter(Protocol):
    """Optional capability: post-process a found instance before returning it."""

    def filter(self, result: Any) -> Any: ...
