"""Envelope metadata carried by every indirected model instance."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnvelopeMixin(BaseModel):
    """Mixin that adds ``expiration`` and ``request_id`` to a model.

    An instance with no ``expiration`` never expires. ``request_id`` copies
    the id of the request that produced the instance so asynchronous replies
    can be matched to the call that is waiting for them.
    """

    expiration: datetime | None = None
    request_id: str | None = None

    @field_validator("expiration")
    @classmethod
    def _aware_expiration(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def expired(self) -> bool:
        """Return True if an expiration is set and lies in the past."""
        return self.expiration is not None and self.expiration < utcnow()

    def expire_now(self, offset: float = 60.0) -> None:
        """Force the expiration *offset* seconds into the past."""
        object.__setattr__(self, "expiration", utcnow() - timedelta(seconds=offset))


class Indirected(EnvelopeMixin):
    """Base class for models managed through an indirection.

    Subclasses add their own fields; ``name`` is used as the default request
    key when an instance is passed where a key is expected.
    """

    name: str

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Indirected:
        return cls.model_validate(data)

    def render(self) -> str:
        """Encode the instance as a JSON document."""
        return self.model_dump_json()

    @classmethod
    def convert_from(cls, raw: str | bytes) -> Indirected:
        """Decode an instance from a JSON document."""
        return cls.model_validate_json(raw)


def is_expired(instance: Any) -> bool:
    """Envelope check usable on any object carrying an ``expiration``."""
    expiration = getattr(instance, "expiration", None)
    if expiration is None:
        return False
    if expiration.tzinfo is None:
        expiration = expiration.replace(tzinfo=timezone.utc)
    return bool(expiration < utcnow())


def stamp_expiration(instance: Any, expiration: datetime) -> None:
    """Set ``expiration`` on *instance* unless it already has one."""
    if getattr(instance, "expiration", None) is not None:
        return
    try:
        instance.expiration = expiration
    except (AttributeError, TypeError, ValueError):
        return
