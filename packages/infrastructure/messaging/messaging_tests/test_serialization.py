"""Tests for queue message encoding."""

from __future__ import annotations

import json

import pytest

from indirector_core import Request, TerminusError
from indirector_messaging.exceptions import MessagingSerializationError
from indirector_messaging.serialization import (
    decode_error,
    decode_instance,
    decode_request,
    decode_response,
    encode_error,
    encode_instance,
    encode_request,
    encode_response,
    is_error,
)


def test_error_prefix_round_trip() -> None:
    raw = encode_error(OSError("disk full"))

    assert raw == "Error: disk full"
    assert is_error(raw)
    assert decode_error(raw) == (None, "disk full")
    assert not is_error('{"name": "Error: in a field"}')


def test_error_reply_carries_request_id() -> None:
    raw = encode_error("Could not find terminus rest", "abc123")

    assert raw == "Error: [abc123] Could not find terminus rest"
    assert decode_error(raw) == ("abc123", "Could not find terminus rest")
    assert decode_error("Error: [not an id] text") == (None, "[not an id] text")


def test_request_encoding_hydrates_instance(catalog_model) -> None:
    request = Request(
        "catalog",
        "save",
        "web01",
        {"node": "web01"},
        instance=catalog_model(name="web01", version=7),
    )

    decoded = decode_request(encode_request(request), {"catalog": catalog_model})

    assert decoded.request_id == request.request_id
    assert decoded.node == "web01"
    assert decoded.instance == catalog_model(name="web01", version=7)


@pytest.mark.parametrize(
    "raw",
    ["not json", "[1, 2]", json.dumps({"indirection_name": "catalog"})],
)
def test_malformed_requests_raise_serialization_error(raw) -> None:
    with pytest.raises(MessagingSerializationError):
        decode_request(raw)


def test_instance_encoding(catalog_model) -> None:
    catalog = catalog_model(name="web01", request_id="abc")

    assert decode_instance(encode_instance(catalog), catalog_model) == catalog
    assert decode_instance(encode_instance(None), catalog_model) is None


def test_instance_decoding_rejects_invalid_payload(catalog_model) -> None:
    with pytest.raises(MessagingSerializationError):
        decode_instance('{"version": "many"}', catalog_model)


def test_response_record_for_search(catalog_model) -> None:
    results = [catalog_model(name="a"), catalog_model(name="b")]

    response = decode_response(encode_response("abc", "search", results), catalog_model)

    assert response.request_id == "abc"
    assert response.result == results
    assert response.error is None


def test_response_record_for_destroy_keeps_plain_value(catalog_model) -> None:
    request_id, decoded, error = decode_response(
        encode_response("abc", "destroy", True), catalog_model
    )

    assert request_id == "abc"
    assert decoded is True
    assert error is None


def test_error_response_record_keeps_request_id(catalog_model) -> None:
    raw = encode_response("abc", "save", error=TerminusError("no instance given"))

    assert json.loads(raw) == {
        "request_id": "abc",
        "method": "save",
        "error": "no instance given",
    }
    response = decode_response(raw, catalog_model)
    assert response.request_id == "abc"
    assert response.error == "no instance given"
    assert response.result is None


def test_bare_error_reply_decodes_as_error_response(catalog_model) -> None:
    assert decode_response("Error: disk full", catalog_model) == (
        None,
        None,
        "disk full",
    )
    assert decode_response("Error: [abc] disk full", catalog_model).request_id == "abc"


def test_response_without_result_is_rejected(catalog_model) -> None:
    with pytest.raises(MessagingSerializationError, match="no result"):
        decode_response('{"request_id": "abc"}', catalog_model)
    with pytest.raises(MessagingSerializationError, match="not an object"):
        decode_response("[]", catalog_model)
