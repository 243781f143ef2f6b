"""Exceptions raised by the indirector core."""

from __future__ import annotations

from typing import Any


class IndirectorError(Exception):
    """Root exception for the entire indirector toolkit."""


class ConfigurationError(IndirectorError):
    """Base class for setup-time errors. These are never retried."""


class DuplicateIndirectionError(ConfigurationError):
    """Raised when a second indirection is registered under a used name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Indirection {name} is already defined")


class TerminusNotFoundError(ConfigurationError, ValueError):
    """Raised when no terminus can be resolved for an indirection."""


class TerminusRegistrationError(ConfigurationError):
    """Raised when a terminus registration conflict is detected."""


class InvalidRequestError(IndirectorError, ValueError):
    """Raised when a request cannot be built from its inputs."""


class QueryEncodingError(InvalidRequestError):
    """Raised when an option value cannot be encoded into a query string."""

    def __init__(self, value: Any) -> None:
        self.value_type = type(value).__name__
        super().__init__(
            f"HTTP REST queries cannot handle values of type '{self.value_type}'"
        )


class AuthorizationError(IndirectorError):
    """Raised when a terminus authorization hook rejects a request."""

    def __init__(
        self, method: str, target: str, options: dict[str, Any] | None = None
    ) -> None:
        self.method = method
        self.target = target
        self.options = dict(options or {})
        msg = f"Not authorized to call {method} on {target}"
        if self.options:
            msg += f" with {self.options!r}"
        super().__init__(msg)


class DevError(IndirectorError):
    """Raised when a collaborator breaks its contract (a programming error)."""


class TerminusError(IndirectorError):
    """Raised by termini when a backend operation fails."""
