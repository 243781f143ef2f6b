"""IndirectorSettings - process-wide configuration for the indirector."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .primitives.exceptions import ConfigurationError


class IndirectorSettings(BaseModel):
    """Immutable settings shared by every indirection in a process.

    ``termini`` maps a setting name (for example ``"catalog_terminus"``) to a
    terminus name; an indirection configured with ``terminus_setting`` looks
    its terminus up here the first time it is needed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    runinterval: int = Field(default=1800, ge=0)
    masterport: int = Field(default=8140, gt=0, lt=65536)
    termini: dict[str, str] = Field(default_factory=dict)

    queue_type: str = "memory"
    queue_source: str | None = None
    queue_namespace: str = "puppet"
    queue_timeout: float = Field(default=20.0, gt=0)
    queued_indirection_timeout: float = Field(default=100.0, gt=0)

    file_directory: str | None = None
    redis_url: str = "redis://localhost:6379/0"
    trace: bool = False

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> IndirectorSettings:
        """Build settings from plain configuration data."""
        try:
            return cls.model_validate(data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid indirector settings: {e}") from e

    def terminus_for(self, setting: str) -> str:
        """Return the terminus name configured under *setting*."""
        try:
            return self.termini[setting]
        except KeyError:
            raise ConfigurationError(
                f"No terminus configured for setting {setting!r}"
            ) from None
