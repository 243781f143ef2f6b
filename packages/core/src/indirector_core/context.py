"""IndirectorContext - owner of the process-wide indirector state."""

from __future__ import annotations

from .registry import IndirectionRegistry, TerminusRegistry
from .settings import IndirectorSettings


class IndirectorContext:
    """Bundles settings with the terminus and indirection registries.

    Create one per application (or per test) and pass it to indirections
    explicitly, or rely on the module-level default via :func:`get_context`.
    """

    def __init__(
        self,
        settings: IndirectorSettings | None = None,
        *,
        termini: TerminusRegistry | None = None,
        indirections: IndirectionRegistry | None = None,
    ) -> None:
        self.settings = settings or IndirectorSettings()
        self.termini = termini or TerminusRegistry()
        self.indirections = indirections or IndirectionRegistry()

    def reset(self) -> None:
        """Clear both registries (testing utility)."""
        self.termini.clear()
        self.indirections.clear()


_default_context: IndirectorContext | None = None


def get_context() -> IndirectorContext:
    """Return the default context, creating it on first use."""
    global _default_context
    if _default_context is None:
        _default_context = IndirectorContext()
    return _default_context


def set_context(context: IndirectorContext | None) -> None:
    """Replace the default context (``None`` resets it)."""
    global _default_context
    _default_context = context


__all__ = ["IndirectorContext", "get_context", "set_context"]
