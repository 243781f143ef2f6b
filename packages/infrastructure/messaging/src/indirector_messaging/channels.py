"""Queue channel naming: ``<namespace>.<indirection>[.request|.response]``."""

from __future__ import annotations


def queue_name(*parts: object) -> str:
    return ".".join(str(part) for part in parts)


def request_queue(namespace: str, indirection_name: str) -> str:
    return queue_name(namespace, indirection_name, "request")


def response_queue(namespace: str, indirection_name: str) -> str:
    return queue_name(namespace, indirection_name, "response")
