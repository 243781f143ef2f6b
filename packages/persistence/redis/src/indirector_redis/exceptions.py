"""Redis-specific exceptions for indirector-redis."""

from __future__ import annotations

from indirector_core.primitives.exceptions import TerminusError


class RedisTerminusError(TerminusError):
    """Raised when a Redis command issued by a terminus fails."""
