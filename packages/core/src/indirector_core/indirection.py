"""Indirection - binds a model class to its termini."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from .context import get_context
from .domain.envelope import utcnow
from .primitives.exceptions import DevError, TerminusNotFoundError
from .route import Route

if TYPE_CHECKING:
    from collections.abc import Callable

    from .context import IndirectorContext
    from .request import Request

logger = logging.getLogger("indirector.indirection")


class Indirection:
    """The named binding between a model class and its backends.

    Only one indirection may exist per name in a context; constructing a
    second raises :class:`DuplicateIndirectionError` and leaves the first in
    place. Terminus instances are built lazily, once per terminus name, and
    kept for the life of the indirection.

    Usage::

        catalogs = Indirection(
            Catalog, "catalog", terminus_class="memory", cache_class="file", ttl=60
        )
        await catalogs.save(catalog)
        await catalogs.find("web01")
    """

    route_class: type[Route] = Route

    def __init__(
        self,
        model: type[Any],
        name: str,
        *,
        terminus_class: str | None = None,
        terminus_setting: str | None = None,
        cache_class: str | None = None,
        ttl: int | None = None,
        doc: str | None = None,
        terminus_selector: Callable[[Request], str | None] | None = None,
        context: IndirectorContext | None = None,
    ) -> None:
        self.model = model
        self.name = str(name)
        self.context = context or get_context()
        self.doc_text = doc
        self._ttl: int | None = None
        self._termini: dict[str, Any] = {}
        self._lock = threading.Lock()

        self.context.indirections.register(self)
        try:
            self.default_route = self.route_class(
                self.name,
                terminus_setting=terminus_setting,
                context=self.context,
                terminus_selector=terminus_selector,
            )
            if terminus_class is not None:
                self.default_route.terminus_class = terminus_class
            if cache_class is not None:
                self.default_route.cache_class = cache_class
            if ttl is not None:
                self.ttl = ttl
        except Exception:
            self.context.indirections.unregister(self)
            raise

    # ── Expiration ───────────────────────────────────────────────

    @property
    def ttl(self) -> int:
        """Seconds returned instances stay fresh (defaults to runinterval)."""
        if self._ttl is None:
            return self.context.settings.runinterval
        return self._ttl

    @ttl.setter
    def ttl(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("Indirection TTL must be an integer")
        self._ttl = value

    def expiration(self) -> datetime:
        """Expiration timestamp for an instance returned now."""
        return utcnow() + timedelta(seconds=self.ttl)

    @property
    def doc(self) -> str:
        text = ""
        if self.doc_text:
            text += self.doc_text.strip() + "\n\n"
        setting = self.default_route.terminus_setting
        if setting:
            text += f"* **Terminus Setting**: {setting}"
        return text

    # ── Termini ──────────────────────────────────────────────────

    def terminus(self, terminus_name: str | None) -> Any:
        """Return the shared terminus instance for *terminus_name*."""
        if not terminus_name:
            raise DevError(f"No terminus specified for {self.name}; cannot redirect")
        with self._lock:
            instance = self._termini.get(terminus_name)
            if instance is None:
                instance = self._make_terminus(terminus_name)
                self._termini[terminus_name] = instance
        return instance

    def _make_terminus(self, terminus_name: str) -> Any:
        klass = self.context.termini.resolve(self.name, terminus_name)
        if klass is None:
            raise TerminusNotFoundError(
                f"Could not find terminus {terminus_name} for indirection {self.name}"
            )
        logger.debug("Creating terminus %s for %s", terminus_name, self.name)
        return klass(self, terminus_name)

    def reset_termini(self) -> None:
        """Drop cached terminus instances (testing utility)."""
        with self._lock:
            self._termini.clear()

    def delete(self) -> None:
        """Remove this indirection from its registry (testing utility)."""
        self.context.indirections.unregister(self)

    # ── Call surface ─────────────────────────────────────────────

    async def find(self, key: Any, options: dict[str, Any] | None = None) -> Any | None:
        return await self.default_route.find(key, options)

    async def save(
        self,
        key_or_instance: Any,
        instance: Any = None,
        options: dict[str, Any] | None = None,
    ) -> Any:
        return await self.default_route.save(key_or_instance, instance, options)

    async def search(
        self, key: Any, options: dict[str, Any] | None = None
    ) -> list[Any]:
        return await self.default_route.search(key, options)

    async def destroy(self, key: Any, options: dict[str, Any] | None = None) -> Any:
        return await self.default_route.destroy(key, options)

    async def expire(self, key: Any, options: dict[str, Any] | None = None) -> Any:
        return await self.default_route.expire(key, options)

    def __repr__(self) -> str:
        return f"<Indirection {self.name} for {getattr(self.model, '__name__', self.model)}>"


def indirects(
    name: str, **kwargs: Any
) -> Callable[[type[Any]], type[Any]]:
    """Class decorator creating an indirection for the decorated model.

    The indirection is attached as ``Model.indirection``.
    """

    def decorator(cls: type[Any]) -> type[Any]:
        cls.indirection = Indirection(cls, name, **kwargs)
        return cls

    return decorator


__all__ = ["Indirection", "indirects"]
