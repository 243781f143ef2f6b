"""Queue-backed indirection for indirector - RabbitMQ and in-memory transports."""

from __future__ import annotations

from .exceptions import (
    MessageDeclined,
    MessagingConnectionError,
    MessagingError,
    MessagingSerializationError,
    QueueTimeoutError,
    RemoteExecutionError,
    ResponseMismatchError,
)
from .indirection import QueuedIndirection
from .memory import InMemoryQueueClient, InMemorySubscription
from .registry import (
    QueueClientRegistry,
    build_default_registry,
    get_queue_registry,
    set_queue_registry,
)
from .terminus import QueueTerminus
from .worker import QueueWorker

__all__ = [
    "InMemoryQueueClient",
    "InMemorySubscription",
    "MessageDeclined",
    "MessagingConnectionError",
    "MessagingError",
    "MessagingSerializationError",
    "QueueClientRegistry",
    "QueueTerminus",
    "QueueTimeoutError",
    "QueueWorker",
    "QueuedIndirection",
    "RemoteExecutionError",
    "ResponseMismatchError",
    "build_default_registry",
    "get_queue_registry",
    "set_queue_registry",
]
