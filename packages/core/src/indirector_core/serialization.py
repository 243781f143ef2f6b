"""Helpers converting model instances to and from wire records."""

from __future__ import annotations

from typing import Any


def instance_to_wire(instance: Any) -> Any:
    """Return the JSON-compatible record for *instance*."""
    if hasattr(instance, "to_wire"):
        return instance.to_wire()
    if hasattr(instance, "model_dump"):
        return instance.model_dump(mode="json")
    return instance


def instance_from_wire(model: type[Any] | None, data: Any) -> Any:
    """Hydrate *data* with ``model.from_wire`` (or pydantic validation)."""
    if model is None or data is None:
        return data
    if hasattr(model, "from_wire"):
        return model.from_wire(data)
    if hasattr(model, "model_validate"):
        return model.model_validate(data)
    return data
