"""Messaging-specific exceptions for indirector-messaging."""

from __future__ import annotations

from indirector_core.primitives.exceptions import IndirectorError


class MessagingError(IndirectorError):
    """Base class for all messaging-related errors."""


class MessagingConnectionError(MessagingError):
    """Raised when connectivity to the message broker fails."""


class MessagingSerializationError(MessagingError):
    """Raised when message serialization or deserialization fails."""


class QueueTimeoutError(MessagingError, TimeoutError):
    """Raised when no response arrives for a queued request in time."""

    def __init__(self, request: object, timeout: float) -> None:
        self.request = request
        self.timeout = timeout
        super().__init__(f"Response from {request} timed out after {timeout}s")


class RemoteExecutionError(MessagingError):
    """Raised when the remote side answers with an error-tagged message."""

    def __init__(self, request: object, error: str) -> None:
        self.request = request
        self.error = error
        super().__init__(f"Could not retrieve {request}: {error}")


class ResponseMismatchError(MessagingError):
    """Raised when a response carries another request's id."""

    def __init__(self, request: object, expected: str, received: str | None) -> None:
        self.request = request
        self.expected = expected
        self.received = received
        super().__init__(
            f"Got wrong response for {request}: {received} vs {expected}"
        )


class MessageDeclined(MessagingError):
    """Raised by a subscription handler that will not take the message.

    The transport hands the message back to its destination for another
    consumer and the subscription stops consuming.
    """
