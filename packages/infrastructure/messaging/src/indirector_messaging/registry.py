"""QueueClientRegistry - named queue transports with one shared client each."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from indirector_core.primitives.exceptions import ConfigurationError
from indirector_core.settings import IndirectorSettings

if TYPE_CHECKING:
    from collections.abc import Callable

    from indirector_core.ports.queue import IQueueClient

    QueueClientFactory = Callable[[IndirectorSettings], IQueueClient]

logger = logging.getLogger("indirector.messaging.registry")


class QueueClientRegistry:
    """Registry of queue transports keyed by name.

    A transport is registered as a factory taking :class:`IndirectorSettings`;
    :meth:`client` builds it on first use and hands the same instance to
    every later caller.

    Usage::

        registry = QueueClientRegistry()
        registry.register_queue_type("memory", InMemoryQueueClient)
        client = registry.client("memory")
    """

    def __init__(self) -> None:
        self._types: dict[str, QueueClientFactory] = {}
        self._clients: dict[str, IQueueClient] = {}

    def register_queue_type(self, name: str, factory: QueueClientFactory) -> None:
        existing = self._types.get(name)
        if existing is not None and existing is not factory:
            msg = f"Duplicate queue type {name}: already registered"
            raise ConfigurationError(msg)
        self._types[name] = factory
        logger.debug("Registered queue type %s", name)

    def queue_type_to_class(self, name: str) -> QueueClientFactory:
        factory = self._types.get(name)
        if factory is None:
            raise ConfigurationError(f"Queue type {name} is unknown")
        return factory

    def queue_types(self) -> list[str]:
        return sorted(self._types)

    def client(
        self, name: str | None = None, settings: IndirectorSettings | None = None
    ) -> IQueueClient:
        """Return the shared client for transport *name*."""
        settings = settings or IndirectorSettings()
        name = name or settings.queue_type
        existing = self._clients.get(name)
        if existing is None:
            existing = self.queue_type_to_class(name)(settings)
            self._clients[name] = existing
            logger.info("Created %s queue client", name)
        return existing

    async def close_all(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.close()

    def clear(self) -> None:
        """Forget transports and clients (testing utility)."""
        self._types.clear()
        self._clients.clear()


def _memory_client(settings: IndirectorSettings) -> Any:
    from .memory import InMemoryQueueClient

    return InMemoryQueueClient(settings)


def _rabbitmq_client(settings: IndirectorSettings) -> Any:
    # aio-pika is an optional extra; only import it when the transport is used.
    from .rabbitmq import RabbitMQQueueClient

    return RabbitMQQueueClient.from_settings(settings)


def build_default_registry() -> QueueClientRegistry:
    """Return a registry with the built-in ``memory`` and ``rabbitmq`` types."""
    registry = QueueClientRegistry()
    registry.register_queue_type("memory", _memory_client)
    registry.register_queue_type("rabbitmq", _rabbitmq_client)
    return registry


_default_registry: QueueClientRegistry | None = None


def get_queue_registry() -> QueueClientRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = build_default_registry()
    return _default_registry


def set_queue_registry(registry: QueueClientRegistry | None) -> None:
    global _default_registry
    _default_registry = registry


__all__ = [
    "QueueClientRegistry",
    "build_default_registry",
    "get_queue_registry",
    "set_queue_registry",
]
