"""Redis terminus for indirector."""

from __future__ import annotations

from .exceptions import RedisTerminusError
from .terminus import DEFAULT_PREFIX, RedisTerminus

__all__ = ["DEFAULT_PREFIX", "RedisTerminus", "RedisTerminusError"]
