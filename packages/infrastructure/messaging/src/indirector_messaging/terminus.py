"""QueueTerminus - a synchronous-looking terminus over a message queue."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from indirector_core.primitives.exceptions import TerminusError
from indirector_core.terminus import Terminus
from indirector_core.utils import benchmark

from .channels import queue_name, request_queue, response_queue
from .correlation import verify_request_id
from .exceptions import (
    MessageDeclined,
    MessagingSerializationError,
    QueueTimeoutError,
    RemoteExecutionError,
    ResponseMismatchError,
)
from .registry import get_queue_registry
from .serialization import (
    decode_error,
    decode_instance,
    encode_instance,
    encode_request,
    is_error,
)

if TYPE_CHECKING:
    from indirector_core.indirection import Indirection
    from indirector_core.ports.queue import IQueueClient
    from indirector_core.request import Request

    from .registry import QueueClientRegistry

logger = logging.getLogger("indirector.queue")


class QueueTerminus(Terminus):
    """Serves ``find`` by asking a remote worker over the queue.

    ``find`` publishes the request to ``<namespace>.<indirection>.request``
    and waits on ``<namespace>.<indirection>.response`` for the answer, up to
    ``settings.queue_timeout`` seconds measured from the first check. An
    ``Error: ...`` reply is raised as :class:`RemoteExecutionError`. The
    subscription takes one reply; anything arriving after that is declined
    back to the channel.

    With ``strict_correlation`` (the default) a reply or error stamped with
    another request's id raises :class:`ResponseMismatchError`. Without it
    any reply on the channel is accepted, which is only safe when a single
    request is outstanding per channel.

    ``save`` publishes the instance itself onto the response channel; this is
    how a worker hands a computed instance back to a waiting ``find``.
    """

    def __init__(
        self,
        indirection: Indirection,
        name: str | None = None,
        *,
        client: IQueueClient | None = None,
        queue_registry: QueueClientRegistry | None = None,
        strict_correlation: bool = True,
    ) -> None:
        super().__init__(indirection, name)
        self._client = client
        self._queue_registry = queue_registry
        self.strict_correlation = strict_correlation
        self.timeout = self.settings.queue_timeout

    @property
    def client(self) -> IQueueClient:
        if self._client is None:
            registry = self._queue_registry or get_queue_registry()
            self._client = registry.client(self.settings.queue_type, self.settings)
        return self._client

    def queue_name(self, *parts: object) -> str:
        return queue_name(*parts)

    @property
    def request_queue(self) -> str:
        return request_queue(self.settings.queue_namespace, self.indirection_name)

    @property
    def response_queue(self) -> str:
        return response_queue(self.settings.queue_namespace, self.indirection_name)

    async def find(self, request: Request) -> Any | None:
        with benchmark(
            logger,
            logging.INFO,
            f"Queued request for {self.indirection_name} for {request.key}",
        ):
            await self.client.publish(self.request_queue, encode_request(request))

        with benchmark(logger, logging.INFO, f"Received response for {request}"):
            result = await self._await_response(request)

        if self.strict_correlation:
            verify_request_id(request, result)
        return result

    async def save(self, request: Request) -> Any:
        if request.instance is None:
            raise TerminusError(f"Cannot queue {request}: no instance given")
        with benchmark(
            logger, logging.INFO, f"Queued {self.indirection_name} for {request.key}"
        ):
            await self.client.publish(
                self.response_queue, encode_instance(request.instance)
            )
        return request.instance

    async def _await_response(self, request: Request) -> Any | None:
        outcome: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        async def on_response(raw: str) -> None:
            if outcome.done():
                raise MessageDeclined(f"Response for {request} already settled")
            if is_error(raw):
                received, text = decode_error(raw)
                if (
                    self.strict_correlation
                    and received is not None
                    and received != request.request_id
                ):
                    outcome.set_exception(
                        ResponseMismatchError(request, request.request_id, received)
                    )
                else:
                    outcome.set_exception(RemoteExecutionError(request, text))
                return
            try:
                result = decode_instance(raw, self.model)
            except MessagingSerializationError as e:
                logger.warning(
                    "Failed to convert response to %s: %s", self.indirection_name, e
                )
                return
            outcome.set_result(result)

        subscription = await self.client.subscribe(self.response_queue, on_response)
        try:
            logger.debug("Waiting for result from %s/%s", request, request.request_id)
            return await asyncio.wait_for(outcome, request.remaining(self.timeout))
        except asyncio.TimeoutError:
            raise QueueTimeoutError(request, self.timeout) from None
        finally:
            await subscription.cancel()


__all__ = ["QueueTerminus"]
