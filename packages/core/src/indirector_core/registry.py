"""Process-wide registries for termini and indirections."""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .ports.terminus import IAuthorizer, IFilter
from .primitives.exceptions import (
    DuplicateIndirectionError,
    TerminusRegistrationError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from .indirection import Indirection

logger = logging.getLogger("indirector.registry")


@dataclass(frozen=True)
class TerminusCapabilities:
    """Optional hooks a terminus class implements."""

    authorizer: bool = False
    filter: bool = False

    @classmethod
    def of(cls, terminus_cls: type[Any]) -> TerminusCapabilities:
        return cls(
            authorizer=issubclass(terminus_cls, IAuthorizer),
            filter=issubclass(terminus_cls, IFilter),
        )


def _import_path(path: str) -> type[Any]:
    module_name, _, attr = path.partition(":")
    if not attr:
        module_name, _, attr = path.rpartition(".")
    module = importlib.import_module(module_name)
    return getattr(module, attr)  # type: ignore[no-any-return]


class TerminusRegistry:
    """Maps ``(indirection name, terminus name)`` to terminus classes.

    Implementations may be registered as classes or as lazy import paths
    (``"package.module:Class"``) that are imported on first resolution.
    ``resolve`` never raises for a missing entry; it returns ``None`` and
    leaves the caller to report the configuration error.

    **Conflict detection:** registering a different class for a pair that is
    already bound raises :class:`TerminusRegistrationError`.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], type[Any] | str] = {}
        self._sources: dict[tuple[str, str], type[Any] | str] = {}
        self._capabilities: dict[tuple[str, str], TerminusCapabilities] = {}

    # ── Registration ─────────────────────────────────────────────

    def register(
        self,
        indirection_name: str,
        terminus_name: str,
        implementation: type[Any] | str,
    ) -> None:
        pair = (str(indirection_name), str(terminus_name))
        existing = self._sources.get(pair)
        if existing is not None and existing != implementation:
            msg = (
                f"Duplicate terminus {terminus_name} for indirection "
                f"{indirection_name}: {_describe(existing)} already registered, "
                f"cannot register {_describe(implementation)}"
            )
            raise TerminusRegistrationError(msg)
        self._entries[pair] = implementation
        self._sources[pair] = implementation
        if not isinstance(implementation, str):
            self._capabilities[pair] = TerminusCapabilities.of(implementation)
        logger.debug(
            "Registered terminus %s/%s -> %s",
            indirection_name,
            terminus_name,
            _describe(implementation),
        )

    # ── Lookup ───────────────────────────────────────────────────

    def resolve(self, indirection_name: str, terminus_name: str) -> type[Any] | None:
        pair = (str(indirection_name), str(terminus_name))
        entry = self._entries.get(pair)
        if entry is None or not isinstance(entry, str):
            return entry
        try:
            loaded = _import_path(entry)
        except (ImportError, AttributeError, ValueError) as e:
            logger.warning(
                "Could not load terminus %s for %s from %s: %s",
                terminus_name,
                indirection_name,
                entry,
                e,
            )
            return None
        self._entries[pair] = loaded
        self._capabilities[pair] = TerminusCapabilities.of(loaded)
        return loaded

    def capabilities(
        self, indirection_name: str, terminus_name: str
    ) -> TerminusCapabilities:
        pair = (str(indirection_name), str(terminus_name))
        if pair not in self._capabilities:
            self.resolve(*pair)
        return self._capabilities.get(pair, TerminusCapabilities())

    def terminus_names(self, indirection_name: str) -> list[str]:
        return sorted(t for i, t in self._entries if i == str(indirection_name))

    def __contains__(self, pair: object) -> bool:
        return pair in self._entries

    # ── Cleanup ──────────────────────────────────────────────────

    def clear(self) -> None:
        """Clear all registered termini (testing utility)."""
        self._entries.clear()
        self._sources.clear()
        self._capabilities.clear()


class IndirectionRegistry:
    """Holds the single live indirection for each name."""

    def __init__(self) -> None:
        self._indirections: dict[str, Indirection] = {}

    def register(self, indirection: Indirection) -> None:
        if indirection.name in self._indirections:
            raise DuplicateIndirectionError(indirection.name)
        self._indirections[indirection.name] = indirection
        logger.debug(
            "Registered indirection %s for %s",
            indirection.name,
            getattr(indirection.model, "__name__", indirection.model),
        )

    def unregister(self, indirection: Indirection) -> None:
        if self._indirections.get(indirection.name) is indirection:
            del self._indirections[indirection.name]

    def instance(self, name: str) -> Indirection | None:
        return self._indirections.get(str(name))

    def instances(self) -> list[str]:
        return list(self._indirections)

    def model(self, name: str) -> type[Any] | None:
        match = self.instance(name)
        return None if match is None else match.model

    def clear(self) -> None:
        """Clear all registered indirections (testing utility)."""
        self._indirections.clear()


def register_terminus(
    indirection_name: str,
    terminus_name: str,
    registry: TerminusRegistry | None = None,
) -> Callable[[type[Any]], type[Any]]:
    """Class decorator registering a terminus.

    Without an explicit *registry* the default context's registry is used.
    """

    def decorator(cls: type[Any]) -> type[Any]:
        target = registry
        if target is None:
            from .context import get_context

            target = get_context().termini
        target.register(indirection_name, terminus_name, cls)
        return cls

    return decorator


def _describe(implementation: type[Any] | str) -> str:
    if isinstance(implementation, str):
        return implementation
    return implementation.__name__


__all__ = [
    "IndirectionRegistry",
    "TerminusCapabilities",
    "TerminusRegistry",
    "register_terminus",
]
