"""JSON encoding of requests and responses carried over the queue."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any, NamedTuple

from indirector_core.request import Request
from indirector_core.serialization import instance_from_wire, instance_to_wire

from .exceptions import MessagingSerializationError

if TYPE_CHECKING:
    from collections.abc import Mapping

# A reply starting with this prefix carries error text, not a payload.
ERROR_PREFIX = "Error: "
_ERROR_ID = re.compile(r"\[([^\]\s]+)\] ")


def _json_serializer(obj: Any) -> Any:
    """Serialize datetime and other non-JSON types."""
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _dumps(data: Any) -> str:
    try:
        return json.dumps(data, default=_json_serializer)
    except (TypeError, ValueError) as e:
        raise MessagingSerializationError(str(e)) from e


def _loads(raw: str | bytes) -> Any:
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MessagingSerializationError(str(e)) from e


def is_error(raw: str) -> bool:
    return raw.startswith(ERROR_PREFIX)


def encode_error(error: BaseException | str, request_id: str | None = None) -> str:
    """Encode an error reply, tagged with *request_id* when one is known."""
    if request_id is None:
        return f"{ERROR_PREFIX}{error}"
    return f"{ERROR_PREFIX}[{request_id}] {error}"


def decode_error(raw: str) -> tuple[str | None, str]:
    """Return ``(request_id, text)`` of an error reply; the id may be absent."""
    text = raw[len(ERROR_PREFIX) :]
    match = _ERROR_ID.match(text)
    if match is None:
        return None, text
    return match.group(1), text[match.end() :]


def encode_request(request: Request) -> str:
    """Encode *request* with :meth:`Request.to_wire`."""
    return _dumps(request.to_wire())


def decode_request(
    raw: str | bytes, models: Mapping[str, type[Any]] | None = None
) -> Request:
    """Decode a request, hydrating its instance with the matching model."""
    data = _loads(raw)
    if not isinstance(data, dict):
        raise MessagingSerializationError("Request message is not an object")
    model = (models or {}).get(str(data.get("indirection_name")))
    try:
        return Request.from_wire(data, model)
    except ValueError as e:
        raise MessagingSerializationError(str(e)) from e


def encode_instance(instance: Any) -> str:
    if isinstance(instance, list):
        return _dumps([instance_to_wire(item) for item in instance])
    return _dumps(instance_to_wire(instance))


def decode_instance(raw: str | bytes, model: type[Any] | None) -> Any:
    try:
        return instance_from_wire(model, _loads(raw))
    except ValueError as e:
        raise MessagingSerializationError(str(e)) from e


class QueuedResponse(NamedTuple):
    """A decoded response record; ``error`` is set when execution failed."""

    request_id: str | None
    result: Any = None
    error: str | None = None


def encode_response(
    request_id: str, method: str, result: Any = None, *, error: object = None
) -> str:
    """Encode the outcome of executing a request."""
    if error is not None:
        return _dumps({"request_id": request_id, "method": method, "error": str(error)})
    if isinstance(result, list):
        payload: Any = [instance_to_wire(item) for item in result]
    else:
        payload = instance_to_wire(result)
    return _dumps({"request_id": request_id, "method": method, "result": payload})


def decode_response(raw: str | bytes, model: type[Any] | None) -> QueuedResponse:
    """Decode a response record; found instances are hydrated.

    A bare ``Error: ...`` reply decodes to an error response whose id is
    whatever the reply was tagged with.
    """
    if isinstance(raw, str) and is_error(raw):
        request_id, text = decode_error(raw)
        return QueuedResponse(request_id, error=text)
    data = _loads(raw)
    if not isinstance(data, dict):
        raise MessagingSerializationError("Response message is not an object")
    request_id = data.get("request_id")
    if "error" in data:
        return QueuedResponse(request_id, error=str(data["error"]))
    if "result" not in data:
        raise MessagingSerializationError("Response message has no result")
    method = data.get("method")
    payload = data["result"]
    try:
        if method == "search" and isinstance(payload, list):
            result: Any = [instance_from_wire(model, item) for item in payload]
        elif method in ("find", "save") and isinstance(payload, dict):
            result = instance_from_wire(model, payload)
        else:
            result = payload
    except ValueError as e:
        raise MessagingSerializationError(str(e)) from e
    return QueuedResponse(request_id, result)
