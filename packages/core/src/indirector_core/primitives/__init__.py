from .exceptions import (
    AuthorizationError,
    ConfigurationError,
    DevError,
    DuplicateIndirectionError,
    IndirectorError,
    InvalidRequestError,
    QueryEncodingError,
    TerminusError,
    TerminusNotFoundError,
    TerminusRegistrationError,
)

__all__ = [
    "AuthorizationError",
    "ConfigurationError",
    "DevError",
    "DuplicateIndirectionError",
    "IndirectorError",
    "InvalidRequestError",
    "QueryEncodingError",
    "TerminusError",
    "TerminusNotFoundError",
    "TerminusRegistrationError",
]
