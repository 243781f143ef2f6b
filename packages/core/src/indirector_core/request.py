"""Request - the value object describing one indirected operation."""

from __future__ import annotations

import json
import re
import time
import uuid
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, quote_plus, unquote, urlsplit

from .primitives.exceptions import InvalidRequestError, QueryEncodingError
from .serialization import instance_from_wire, instance_to_wire

if TYPE_CHECKING:
    from .context import IndirectorContext
    from .indirection import Indirection

# Options promoted to first-class attributes and removed from ``options``.
OPTION_ATTRIBUTES: tuple[str, ...] = (
    "ip",
    "node",
    "authenticated",
    "ignore_terminus",
    "ignore_cache",
    "instance",
    "environment",
    "synchronous",
)

METHODS = frozenset({"find", "save", "search", "destroy", "expire"})

DEFAULT_MASTERPORT = 8140

_URI_PATTERN = re.compile(r"^\w+://")
_DEFAULT_PORTS = {"http": 80, "https": 443}


class Request:
    """Everything a terminus needs to serve one find/save/search/destroy.

    ``key_or_instance`` is either a key string, a URI (whose host, port and
    scheme become ``server``, ``port`` and ``protocol``), or a model instance
    whose ``name`` becomes the key.

    Usage::

        request = Request("catalog", "find", "web01", {"node": "web01"})
        request.node            # "web01"
        request.options         # {}
    """

    def __init__(
        self,
        indirection_name: str,
        method: str,
        key_or_instance: Any = None,
        options: dict[str, Any] | None = None,
        *,
        instance: Any = None,
        masterport: int = DEFAULT_MASTERPORT,
    ) -> None:
        if method not in METHODS:
            raise InvalidRequestError(
                f"Invalid method {method!r} for indirection {indirection_name}"
            )
        self.indirection_name = str(indirection_name)
        self.method = method
        self.request_id = uuid.uuid4().hex

        self.key: str | None = None
        self.instance: Any = instance
        self.ip: str | None = None
        self.node: str | None = None
        self.ignore_cache: bool | None = None
        self.ignore_terminus: bool | None = None
        self.environment: str | None = None
        self.synchronous: bool = True
        self.start: float | None = None

        self.uri: str | None = None
        self.server: str | None = None
        self.port: int | None = None
        self.protocol: str | None = None

        self._authenticated: bool | None = None
        self._use_cache: bool | None = None
        self._masterport = masterport

        remaining = {str(k): v for k, v in (options or {}).items()}
        self._set_attributes(remaining)
        self.options: dict[str, Any] = remaining

        if isinstance(key_or_instance, str):
            if _URI_PATTERN.match(key_or_instance):
                self._set_uri_key(key_or_instance)
            else:
                self.key = key_or_instance
        elif key_or_instance is not None and self.instance is None:
            self.instance = key_or_instance

        if self.key is None and self.instance is not None:
            self.key = getattr(self.instance, "name", None)

    # ── Flags ────────────────────────────────────────────────────

    @property
    def authenticated(self) -> bool:
        return bool(self._authenticated)

    @authenticated.setter
    def authenticated(self, value: Any) -> None:
        self._authenticated = None if value is None else bool(value)

    @property
    def use_cache(self) -> bool:
        """Whether results may be written to the cache (default True)."""
        return True if self._use_cache is None else self._use_cache

    @use_cache.setter
    def use_cache(self, value: bool) -> None:
        self._use_cache = bool(value)

    def is_ignore_cache(self) -> bool:
        return bool(self.ignore_cache)

    def is_ignore_terminus(self) -> bool:
        return bool(self.ignore_terminus)

    def is_synchronous(self) -> bool:
        return bool(self.synchronous)

    @property
    def plural(self) -> bool:
        """True when the request targets several instances."""
        return self.method == "search"

    # ── Timeout bookkeeping ──────────────────────────────────────

    def elapsed(self) -> float:
        """Seconds since the first time this was asked."""
        if self.start is None:
            self.start = time.monotonic()
        return time.monotonic() - self.start

    def remaining(self, timeout: float) -> float:
        return max(0.0, timeout - self.elapsed())

    def timed_out(self, timeout: float) -> bool:
        return self.elapsed() > timeout

    # ── Lookup ───────────────────────────────────────────────────

    def indirection(self, context: IndirectorContext | None = None) -> Indirection | None:
        from .context import get_context

        ctx = context or get_context()
        return ctx.indirections.instance(self.indirection_name)

    def model(self, context: IndirectorContext | None = None) -> type[Any]:
        found = self.indirection(context)
        if found is None:
            raise InvalidRequestError(
                f"Could not find indirection '{self.indirection_name}'"
            )
        return found.model

    # ── Encoding ─────────────────────────────────────────────────

    @property
    def escaped_key(self) -> str:
        return quote(self.key or "")

    def query_string(self) -> str:
        """Encode ``options`` as a URL query string (empty if no options)."""
        if not self.options:
            return ""
        parts: list[str] = []
        for key, value in self.options.items():
            if value is None:
                continue
            if isinstance(value, bool):
                encoded = "true" if value else "false"
            elif isinstance(value, (int, float)):
                encoded = str(value)
            elif isinstance(value, str):
                encoded = quote_plus(value)
            elif isinstance(value, (list, tuple)):
                encoded = quote_plus(json.dumps(list(value)))
            else:
                raise QueryEncodingError(value)
            parts.append(f"{key}={encoded}")
        return "?" + "&".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Options merged with every promoted attribute that is set."""
        result = dict(self.options)
        for attribute in OPTION_ATTRIBUTES:
            value = self._attribute_value(attribute)
            if value:
                result[attribute] = value
        return result

    def to_wire(self) -> dict[str, Any]:
        """Structured record suitable for JSON transport."""
        attributes: dict[str, Any] = {}
        for attribute in OPTION_ATTRIBUTES:
            if attribute == "instance":
                continue
            value = self._attribute_value(attribute)
            if value is not None:
                attributes[attribute] = value

        result: dict[str, Any] = {
            "indirection_name": self.indirection_name,
            "method": self.method,
            "key": self.key,
            "request_id": self.request_id,
            "attributes": attributes,
        }
        if self.instance is not None:
            result["instance"] = instance_to_wire(self.instance)
        return result

    @classmethod
    def from_wire(cls, data: dict[str, Any], model: type[Any] | None = None) -> Request:
        """Rebuild a request from :meth:`to_wire` output.

        When *model* is given the nested instance is hydrated with its
        ``from_wire``; otherwise the raw mapping is kept.
        """
        for field in ("indirection_name", "method"):
            if not data.get(field):
                raise InvalidRequestError(f"No {field} provided in wire data")
        if data.get("key") is None:
            raise InvalidRequestError("No key provided in wire data")

        request = cls(data["indirection_name"], data["method"])
        request.key = data["key"]
        if data.get("request_id"):
            request.request_id = str(data["request_id"])

        for name, value in (data.get("attributes") or {}).items():
            if name not in OPTION_ATTRIBUTES or name == "instance":
                raise InvalidRequestError(f"Unknown request attribute {name!r}")
            setattr(request, name, value)

        raw_instance = data.get("instance")
        if raw_instance is not None:
            request.instance = instance_from_wire(model, raw_instance)
        return request

    # ── Internals ────────────────────────────────────────────────

    def _attribute_value(self, attribute: str) -> Any:
        if attribute == "authenticated":
            return self._authenticated
        return getattr(self, attribute)

    def _set_attributes(self, options: dict[str, Any]) -> None:
        for attribute in OPTION_ATTRIBUTES:
            if attribute in options:
                setattr(self, attribute, options.pop(attribute))

    def _set_uri_key(self, key: str) -> None:
        self.uri = key
        try:
            parsed = urlsplit(key)
            port = parsed.port
        except ValueError as e:
            raise InvalidRequestError(f"Could not understand URL {key}: {e}") from e

        if parsed.scheme == "file":
            self.key = unquote(parsed.path)
            return

        if parsed.hostname:
            self.server = parsed.hostname

        if not port and parsed.scheme == "puppet":
            self.port = self._masterport
        else:
            self.port = port or _DEFAULT_PORTS.get(parsed.scheme, 0)

        self.protocol = parsed.scheme

        path = unquote(parsed.path)
        if path.startswith("/"):
            path = path[1:]
        segments = path.split("/", 2)

        if parsed.scheme == "puppet":
            # environment/indirection/key; the environment is not applied
            self.key = segments[2] if len(segments) == 3 else path
            return

        environment = segments[0]
        self.key = segments[2] if len(segments) == 3 else ""
        if environment:
            self.environment = environment

    def __str__(self) -> str:
        return self.uri or f"/{self.indirection_name}/{self.key}"

    def __repr__(self) -> str:
        return (
            f"Request(indirection_name={self.indirection_name!r}, "
            f"method={self.method!r}, key={self.key!r}, "
            f"request_id={self.request_id!r})"
        )


__all__ = ["DEFAULT_MASTERPORT", "METHODS", "OPTION_ATTRIBUTES", "Request"]
