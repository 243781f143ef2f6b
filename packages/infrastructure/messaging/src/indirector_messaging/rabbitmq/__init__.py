"""RabbitMQ transport adapter (optional extra: indirector[rabbitmq])."""

from __future__ import annotations

from .client import RabbitMQQueueClient, RabbitMQSubscription

__all__ = [
    "RabbitMQQueueClient",
    "RabbitMQSubscription",
]
