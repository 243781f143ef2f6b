"""QueuedIndirection - every operation answered by a worker over the queue."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from indirector_core.indirection import Indirection
from indirector_core.primitives.exceptions import TerminusError
from indirector_core.utils import benchmark

from .channels import request_queue, response_queue
from .correlation import stamp_request_id
from .exceptions import (
    MessageDeclined,
    MessagingSerializationError,
    QueueTimeoutError,
    RemoteExecutionError,
    ResponseMismatchError,
)
from .registry import get_queue_registry
from .serialization import (
    decode_request,
    decode_response,
    encode_request,
    encode_response,
)

if TYPE_CHECKING:
    from indirector_core.ports.queue import IQueueClient, ISubscription
    from indirector_core.request import Request

    from .registry import QueueClientRegistry
    from .serialization import QueuedResponse

logger = logging.getLogger("indirector.queued_indirection")

_DISPATCHABLE = frozenset({"find", "save", "search", "destroy"})


class QueuedIndirection(Indirection):
    """An indirection whose find/save/search/destroy all run on workers.

    Callers publish the request and wait on the response channel for a
    reply carrying the same ``request_id``; any other id is a protocol
    violation and raises :class:`ResponseMismatchError`. Each caller takes a
    single reply and declines anything after it. Failed executions come back
    as response records carrying the request id and the error text.

    Workers call :meth:`look_for_requests` to start answering requests with
    the locally configured terminus.

    ``expire`` stays local: it only touches this process's cache.
    """

    def __init__(
        self,
        model: type[Any],
        name: str,
        *,
        client: IQueueClient | None = None,
        queue_registry: QueueClientRegistry | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(model, name, **kwargs)
        self._client = client
        self._queue_registry = queue_registry
        self.timeout = timeout or self.context.settings.queued_indirection_timeout

    @property
    def client(self) -> IQueueClient:
        if self._client is None:
            settings = self.context.settings
            registry = self._queue_registry or get_queue_registry()
            self._client = registry.client(settings.queue_type, settings)
        return self._client

    @property
    def request_queue(self) -> str:
        return request_queue(self.context.settings.queue_namespace, self.name)

    @property
    def response_queue(self) -> str:
        return response_queue(self.context.settings.queue_namespace, self.name)

    # ── Caller side ──────────────────────────────────────────────

    async def find(self, key: Any, options: dict[str, Any] | None = None) -> Any | None:
        return await self.handle_request(self.default_route.request("find", key, options))

    async def save(
        self,
        key_or_instance: Any,
        instance: Any = None,
        options: dict[str, Any] | None = None,
    ) -> Any:
        request = self.default_route.request(
            "save", key_or_instance, options, instance=instance
        )
        return await self.handle_request(request)

    async def search(
        self, key: Any, options: dict[str, Any] | None = None
    ) -> list[Any]:
        result = await self.handle_request(
            self.default_route.request("search", key, options)
        )
        return [] if result is None else list(result)

    async def destroy(self, key: Any, options: dict[str, Any] | None = None) -> Any:
        return await self.handle_request(
            self.default_route.request("destroy", key, options)
        )

    async def handle_request(self, request: Request) -> Any:
        """Publish *request* and wait for the matching response."""
        outcome: asyncio.Future[QueuedResponse] = (
            asyncio.get_running_loop().create_future()
        )

        async def on_response(raw: str) -> None:
            if outcome.done():
                raise MessageDeclined(f"Response for {request} already settled")
            try:
                outcome.set_result(decode_response(raw, self.model))
            except MessagingSerializationError as e:
                logger.warning("Dropping malformed response for %s: %s", request, e)

        subscription = await self.client.subscribe(self.response_queue, on_response)
        try:
            with benchmark(logger, logging.INFO, f"Queued {request.method} for {request}"):
                await self.client.publish(self.request_queue, encode_request(request))
                response = await asyncio.wait_for(
                    outcome, request.remaining(self.timeout)
                )
        except asyncio.TimeoutError:
            raise QueueTimeoutError(request, self.timeout) from None
        finally:
            await subscription.cancel()

        if response.request_id != request.request_id:
            raise ResponseMismatchError(
                request, request.request_id, response.request_id
            )
        if response.error is not None:
            raise RemoteExecutionError(request, response.error)
        return response.result

    # ── Worker side ──────────────────────────────────────────────

    async def look_for_requests(self) -> ISubscription:
        """Start answering queued requests with the local terminus."""
        return await self.client.subscribe(self.request_queue, self._on_request)

    async def _on_request(self, raw: str) -> None:
        try:
            request = decode_request(raw, {self.name: self.model})
        except MessagingSerializationError as e:
            logger.warning("Dropping malformed request on %s: %s", self.request_queue, e)
            return

        try:
            result = await self.execute(request)
        except Exception as e:  # noqa: BLE001
            logger.error("%s failed for %s: %s", request.method, request, e)
            await self.client.publish(
                self.response_queue,
                encode_response(request.request_id, request.method, error=e),
            )
            return

        await self.client.publish(
            self.response_queue,
            encode_response(request.request_id, request.method, result),
        )

    async def execute(self, request: Request) -> Any:
        """Run *request* directly against the configured terminus."""
        if request.method not in _DISPATCHABLE:
            raise TerminusError(f"Cannot execute {request.method} for {request}")
        terminus, _ = self.default_route.prepare(request)
        result = await getattr(terminus, request.method)(request)
        stamp_request_id(result, request.request_id)
        return result


__all__ = ["QueuedIndirection"]
