import json

import pytest

from indirector_core import (
    Indirected,
    Indirection,
    InvalidRequestError,
    QueryEncodingError,
    Request,
)


class Catalog(Indirected):
    version: int = 1


def test_promoted_options_become_attributes() -> None:
    request = Request(
        "catalog",
        "find",
        "web01",
        {"node": "web01", "ip": "10.0.0.1", "authenticated": "yes", "extra": 1},
    )

    assert request.node == "web01"
    assert request.ip == "10.0.0.1"
    assert request.authenticated is True
    assert request.options == {"extra": 1}
    assert request.key == "web01"


def test_invalid_method_is_rejected() -> None:
    with pytest.raises(InvalidRequestError, match="Invalid method 'fetch'"):
        Request("catalog", "fetch", "web01")


def test_flags_default_to_false() -> None:
    request = Request("catalog", "find", "web01")

    assert not request.is_ignore_cache()
    assert not request.is_ignore_terminus()
    assert request.authenticated is False
    assert request.use_cache is True
    assert request.plural is False
    assert Request("catalog", "search", "*").plural is True


def test_puppet_uri_uses_last_path_segment_as_key() -> None:
    request = Request(
        "catalog", "find", "puppet://host.example.com:8140/production/catalog/foo"
    )

    assert request.server == "host.example.com"
    assert request.port == 8140
    assert request.protocol == "puppet"
    assert request.key == "foo"
    assert request.environment is None
    assert str(request) == "puppet://host.example.com:8140/production/catalog/foo"


def test_puppet_uri_without_port_uses_masterport() -> None:
    request = Request(
        "catalog", "find", "puppet://master/production/catalog/foo", masterport=9140
    )

    assert request.port == 9140


def test_http_uri_sets_environment_and_default_port() -> None:
    request = Request("catalog", "find", "https://example.com/staging/catalog/foo")

    assert request.port == 443
    assert request.environment == "staging"
    assert request.key == "foo"


def test_file_uri_yields_unquoted_path() -> None:
    request = Request("catalog", "find", "file:///tmp/some%20file")

    assert request.key == "/tmp/some file"
    assert request.server is None


def test_malformed_uri_names_offending_string() -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        Request("catalog", "find", "http://host:notaport/production/catalog/x")

    assert "http://host:notaport/production/catalog/x" in str(exc_info.value)


def test_instance_name_becomes_key() -> None:
    catalog = Catalog(name="web01")

    request = Request("catalog", "save", catalog)

    assert request.key == "web01"
    assert request.instance is catalog


def test_query_string_encodes_each_type() -> None:
    request = Request(
        "catalog",
        "find",
        "web01",
        {"flag": True, "off": False, "count": 2, "label": "x y", "tags": [1, 2]},
    )

    assert request.query_string() == (
        "?flag=true&off=false&count=2&label=x+y&tags=%5B1%2C+2%5D"
    )


def test_query_string_is_empty_without_options() -> None:
    assert Request("catalog", "find", "web01").query_string() == ""


def test_query_string_rejects_unsupported_types() -> None:
    request = Request("catalog", "find", "web01", {"bad": {"nested": 1}})

    with pytest.raises(QueryEncodingError, match="cannot handle values of type 'dict'"):
        request.query_string()


def test_to_dict_merges_options_and_attributes() -> None:
    request = Request("catalog", "find", "web01", {"node": "web01", "foo": "bar"})

    result = request.to_dict()

    assert result["foo"] == "bar"
    assert result["node"] == "web01"
    assert "ip" not in result


def test_wire_round_trip_preserves_identity_and_attributes() -> None:
    request = Request(
        "catalog",
        "find",
        "web01",
        {
            "node": "web01",
            "ip": "10.0.0.1",
            "ignore_cache": True,
            "environment": "production",
        },
    )

    rebuilt = Request.from_wire(json.loads(json.dumps(request.to_wire())))

    assert rebuilt.indirection_name == "catalog"
    assert rebuilt.method == "find"
    assert rebuilt.key == "web01"
    assert rebuilt.node == "web01"
    assert rebuilt.ip == "10.0.0.1"
    assert rebuilt.ignore_cache is True
    assert rebuilt.environment == "production"
    assert rebuilt.request_id == request.request_id


def test_wire_round_trip_hydrates_instance() -> None:
    request = Request(
        "catalog", "save", "web01", instance=Catalog(name="web01", version=3)
    )

    data = request.to_wire()
    rebuilt = Request.from_wire(json.loads(json.dumps(data)), Catalog)

    assert "instance" not in data["attributes"]
    assert isinstance(rebuilt.instance, Catalog)
    assert rebuilt.instance.version == 3


def test_from_wire_requires_key() -> None:
    with pytest.raises(InvalidRequestError, match="No key"):
        Request.from_wire({"indirection_name": "catalog", "method": "find"})


def test_from_wire_rejects_unknown_attribute() -> None:
    data = Request("catalog", "find", "web01").to_wire()
    data["attributes"]["colour"] = "blue"

    with pytest.raises(InvalidRequestError, match="Unknown request attribute"):
        Request.from_wire(data)


def test_remaining_counts_down_from_first_check() -> None:
    request = Request("catalog", "find", "web01")

    remaining = request.remaining(10)

    assert request.start is not None
    assert 9 < remaining <= 10
    assert not request.timed_out(100)


def test_model_lookup_through_context(context) -> None:
    Indirection(Catalog, "catalog", context=context)

    assert Request("catalog", "find", "web01").model(context) is Catalog
    with pytest.raises(InvalidRequestError, match="Could not find indirection"):
        Request("missing", "find", "web01").model(context)


def test_str_falls_back_to_indirection_and_key() -> None:
    assert str(Request("catalog", "find", "web01")) == "/catalog/web01"
