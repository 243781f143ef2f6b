"""InMemoryQueueClient - IQueueClient over asyncio queues for tests and single processes."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from indirector_core.ports.queue import IQueueClient, ISubscription

from ..exceptions import MessageDeclined

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from indirector_core.settings import IndirectorSettings

logger = logging.getLogger("indirector.messaging.memory")


class InMemorySubscription(ISubscription):
    """A consumer task draining one destination."""

    def __init__(self, client: InMemoryQueueClient, destination: str) -> None:
        self.destination = destination
        self._client = client
        self._task: asyncio.Task[None] | None = None

    def start(self, handler: Callable[[str], Coroutine[Any, Any, None]]) -> None:
        self._task = asyncio.create_task(
            self._consume(handler), name=f"queue:{self.destination}"
        )

    async def _consume(self, handler: Callable[[str], Coroutine[Any, Any, None]]) -> None:
        queue = self._client.queue(self.destination)
        while True:
            message = await queue.get()
            try:
                await handler(message)
            except MessageDeclined:
                queue.put_nowait(message)
                self._client.forget(self)
                logger.debug("Returned declined message to %s", self.destination)
                return
            except Exception as e:  # noqa: BLE001
                logger.warning(
                    "Got exception processing message on %s: %s", self.destination, e
                )
            finally:
                queue.task_done()
            await asyncio.sleep(0)

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def cancel(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        self._client.forget(self)


class InMemoryQueueClient(IQueueClient):
    """In-memory transport with broker-like delivery.

    Each destination is an :class:`asyncio.Queue`. Messages published before
    anyone subscribes wait in the queue. Every subscription runs its own
    consumer task and subscribers of one destination compete, so each message
    is handled once. A declined message goes back on its queue and ends the
    declining subscription. ``get_published`` and :meth:`join` support test
    assertions.
    """

    def __init__(self, settings: IndirectorSettings | None = None) -> None:  # noqa: ARG002
        self._queues: dict[str, asyncio.Queue[str]] = {}
        self._published: list[tuple[str, str]] = []
        self._subscriptions: list[InMemorySubscription] = []

    def queue(self, destination: str) -> asyncio.Queue[str]:
        return self._queues.setdefault(destination, asyncio.Queue())

    async def publish(self, destination: str, message: str) -> None:
        self._published.append((destination, message))
        self.queue(destination).put_nowait(message)

    async def subscribe(
        self,
        destination: str,
        handler: Callable[[str], Coroutine[Any, Any, None]],
    ) -> InMemorySubscription:
        subscription = InMemorySubscription(self, destination)
        subscription.start(handler)
        self._subscriptions.append(subscription)
        return subscription

    def forget(self, subscription: InMemorySubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def close(self) -> None:
        for subscription in list(self._subscriptions):
            await subscription.cancel()

    # ── Test helpers ─────────────────────────────────────────────

    async def join(self, destination: str) -> None:
        """Wait until every message on *destination* has been handled."""
        await self.queue(destination).join()

    def pending(self, destination: str) -> int:
        return self.queue(destination).qsize()

    def subscriptions(self, destination: str | None = None) -> list[InMemorySubscription]:
        return [
            s
            for s in self._subscriptions
            if destination is None or s.destination == destination
        ]

    def get_published(self) -> list[tuple[str, str]]:
        """Return all (destination, message) published so far."""
        return list(self._published)
