"""indirector-core - named models routed to pluggable termini.

Zero infrastructure dependencies beyond pydantic.
"""

from __future__ import annotations

from .context import IndirectorContext, get_context, set_context
from .domain import EnvelopeMixin, Indirected, is_expired, stamp_expiration
from .indirection import Indirection, indirects
from .ports import IAuthorizer, IFilter, IQueueClient, ISubscription, ITerminus
from .primitives import (
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
from .registry import (
    IndirectionRegistry,
    TerminusCapabilities,
    TerminusRegistry,
    register_terminus,
)
from .request import OPTION_ATTRIBUTES, Request
from .route import Route
from .settings import IndirectorSettings
from .terminus import Terminus
from .termini import FileTerminus, MemoryTerminus

__all__ = [
    "OPTION_ATTRIBUTES",
    "AuthorizationError",
    "ConfigurationError",
    "DevError",
    "DuplicateIndirectionError",
    "EnvelopeMixin",
    "FileTerminus",
    "IAuthorizer",
    "IFilter",
    "IQueueClient",
    "ISubscription",
    "ITerminus",
    "Indirected",
    "Indirection",
    "IndirectionRegistry",
    "IndirectorContext",
    "IndirectorError",
    "IndirectorSettings",
    "InvalidRequestError",
    "MemoryTerminus",
    "QueryEncodingError",
    "Request",
    "Route",
    "Terminus",
    "TerminusCapabilities",
    "TerminusError",
    "TerminusNotFoundError",
    "TerminusRegistrationError",
    "TerminusRegistry",
    "get_context",
    "indirects",
    "is_expired",
    "register_terminus",
    "set_context",
    "stamp_expiration",
]
