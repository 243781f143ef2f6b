"""Request id stamping and verification for queued responses."""

from __future__ import annotations

import logging
from typing import Any

from .exceptions import ResponseMismatchError

logger = logging.getLogger("indirector.messaging.correlation")


def stamp_request_id(result: Any, request_id: str) -> None:
    """Copy *request_id* onto the result (each element for a list)."""
    items = result if isinstance(result, list) else [result]
    for item in items:
        if item is not None and hasattr(item, "request_id"):
            item.request_id = request_id


def verify_request_id(request: Any, result: Any) -> None:
    """Raise if *result* answers a different request than *request*."""
    if result is None:
        return
    received = getattr(result, "request_id", None)
    if received is None:
        logger.warning("No request ID for response to %s", request)
        return
    if received != request.request_id:
        raise ResponseMismatchError(request, request.request_id, received)
