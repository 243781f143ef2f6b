"""Queue client ports - minimal publish/subscribe over named destinations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine


@runtime_checkable
class ISubscription(Protocol):
    """Handle returned by ``subscribe``; ``cancel`` stops delivery."""

    destination: str

    async def cancel(self) -> None: ...


@runtime_checkable
class IQueueClient(Protocol):
    """
    Port for a message transport (in-memory, RabbitMQ, ...).

    Messages are text. Each message published to a destination is handed to
    exactly one of the handlers subscribed to it.
    """

    async def publish(self, destination: str, message: str) -> None:
        """Publish *message* to *destination*."""
        ...

    async def subscribe(
        self,
        destination: str,
        handler: Callable[[str], Coroutine[Any, Any, None]],
    ) -> ISubscription:
        """Invoke *handler* once per inbound message until cancelled.

        A handler that declines a message gets it returned to *destination*
        and its subscription ends.
        """
        ...

    async def close(self) -> None:
        """Release transport resources."""
        ...
