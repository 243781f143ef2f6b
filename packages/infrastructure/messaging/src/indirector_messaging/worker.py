"""QueueWorker - answers QueueTerminus requests with a local terminus."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from indirector_core.primitives.exceptions import TerminusError

from .channels import request_queue, response_queue
from .correlation import stamp_request_id
from .exceptions import MessagingSerializationError
from .registry import get_queue_registry
from .serialization import decode_request, encode_error, encode_instance

if TYPE_CHECKING:
    from indirector_core.indirection import Indirection
    from indirector_core.ports.queue import IQueueClient, ISubscription
    from indirector_core.request import Request

    from .registry import QueueClientRegistry

logger = logging.getLogger("indirector.queue.worker")

_DISPATCHABLE = frozenset({"find", "save", "search", "destroy"})


class QueueWorker:
    """Subscribes to an indirection's request channel and executes requests.

    Each decoded request is run against ``terminus_name`` of *indirection*;
    the result is stamped with the request id and published on the response
    channel. Failures are published as ``Error: [<request id>] <text>``.
    Messages that cannot be decoded are logged and dropped.

    Any number of workers may subscribe to the same channel; the broker hands
    each request to exactly one of them.
    """

    def __init__(
        self,
        indirection: Indirection,
        terminus_name: str,
        *,
        client: IQueueClient | None = None,
        queue_registry: QueueClientRegistry | None = None,
    ) -> None:
        self.indirection = indirection
        self.terminus_name = terminus_name
        self._client = client
        self._queue_registry = queue_registry

    @property
    def client(self) -> IQueueClient:
        if self._client is None:
            settings = self.indirection.context.settings
            registry = self._queue_registry or get_queue_registry()
            self._client = registry.client(settings.queue_type, settings)
        return self._client

    @property
    def request_queue(self) -> str:
        namespace = self.indirection.context.settings.queue_namespace
        return request_queue(namespace, self.indirection.name)

    @property
    def response_queue(self) -> str:
        namespace = self.indirection.context.settings.queue_namespace
        return response_queue(namespace, self.indirection.name)

    async def start(self) -> ISubscription:
        return await self.client.subscribe(self.request_queue, self.handle)

    async def handle(self, raw: str) -> None:
        try:
            request = decode_request(raw, {self.indirection.name: self.indirection.model})
        except MessagingSerializationError as e:
            logger.warning("Dropping malformed request on %s: %s", self.request_queue, e)
            return

        logger.info("Trying to execute request for %s", request)
        try:
            result = await self.execute(request)
        except Exception as e:  # noqa: BLE001
            logger.error("%s failed for %s: %s", request.method, request, e)
            await self.client.publish(
                self.response_queue, encode_error(e, request.request_id)
            )
            return

        stamp_request_id(result, request.request_id)
        await self.client.publish(self.response_queue, encode_instance(result))

    async def execute(self, request: Request) -> Any:
        if request.method not in _DISPATCHABLE:
            raise TerminusError(f"Cannot execute {request.method} for {request}")
        terminus = self.indirection.terminus(self.terminus_name)
        return await getattr(terminus, request.method)(request)


__all__ = ["QueueWorker"]
