"""MemoryTerminus - dict-backed terminus for caches and tests."""

from __future__ import annotations

import copy
import fnmatch
from typing import TYPE_CHECKING, Any

from ..primitives.exceptions import TerminusError
from ..terminus import Terminus

if TYPE_CHECKING:
    from ..indirection import Indirection
    from ..request import Request


class MemoryTerminus(Terminus):
    """Stores copies of instances in a plain dict keyed by request key.

    ``search`` treats the key as a glob over stored keys (``*`` matches all).
    """

    def __init__(self, indirection: Indirection, name: str | None = None) -> None:
        super().__init__(indirection, name)
        self._store: dict[str, Any] = {}

    async def find(self, request: Request) -> Any | None:
        found = self._store.get(str(request.key))
        return None if found is None else copy.deepcopy(found)

    async def save(self, request: Request) -> Any:
        if request.instance is None:
            raise TerminusError(f"Cannot save {request}: no instance given")
        self._store[str(request.key)] = copy.deepcopy(request.instance)
        return request.instance

    async def search(self, request: Request) -> list[Any]:
        pattern = request.key or "*"
        return [
            copy.deepcopy(instance)
            for key, instance in sorted(self._store.items())
            if fnmatch.fnmatchcase(key, pattern)
        ]

    async def destroy(self, request: Request) -> bool:
        return self._store.pop(str(request.key), None) is not None

    # ── Test helpers ─────────────────────────────────────────────

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
