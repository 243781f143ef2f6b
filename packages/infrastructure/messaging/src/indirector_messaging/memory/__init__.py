"""In-memory queue transport."""

from __future__ import annotations

from .client import InMemoryQueueClient, InMemorySubscription

__all__ = ["InMemoryQueueClient", "InMemorySubscription"]
