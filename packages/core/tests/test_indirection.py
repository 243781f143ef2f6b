from datetime import timedelta

import pytest

from indirector_core import (
    DevError,
    DuplicateIndirectionError,
    Indirected,
    Indirection,
    MemoryTerminus,
    TerminusNotFoundError,
    indirects,
)
from indirector_core.domain.envelope import utcnow


class Node(Indirected):
    environment: str = "production"


@pytest.fixture
def registered(context):
    context.termini.register("node", "memory", MemoryTerminus)
    return context


def test_second_indirection_with_same_name_is_rejected(registered) -> None:
    first = Indirection(Node, "node", terminus_class="memory", context=registered)

    with pytest.raises(DuplicateIndirectionError, match="Indirection node is already defined"):
        Indirection(Node, "node", terminus_class="memory", context=registered)

    assert registered.indirections.instance("node") is first


def test_failed_setup_does_not_leave_registration(registered) -> None:
    with pytest.raises(TerminusNotFoundError, match="Could not find terminus rest"):
        Indirection(Node, "node", terminus_class="rest", context=registered)

    assert registered.indirections.instance("node") is None


def test_ttl_defaults_to_runinterval(registered) -> None:
    nodes = Indirection(Node, "node", context=registered)

    assert nodes.ttl == registered.settings.runinterval


@pytest.mark.parametrize("value", ["60", 1.5, True])
def test_ttl_must_be_integer(registered, value) -> None:
    with pytest.raises(ValueError, match="TTL must be an integer"):
        Indirection(Node, "node", ttl=value, context=registered)

    assert registered.indirections.instance("node") is None


def test_expiration_is_now_plus_ttl(registered) -> None:
    nodes = Indirection(Node, "node", ttl=120, context=registered)

    delta = nodes.expiration() - utcnow()

    assert timedelta(seconds=115) < delta <= timedelta(seconds=120)


def test_terminus_instances_are_shared(registered) -> None:
    nodes = Indirection(Node, "node", terminus_class="memory", context=registered)

    first = nodes.terminus("memory")

    assert nodes.terminus("memory") is first
    assert first.indirection is nodes
    assert first.name == "memory"

    nodes.reset_termini()
    assert nodes.terminus("memory") is not first


def test_terminus_requires_a_name(registered) -> None:
    nodes = Indirection(Node, "node", context=registered)

    with pytest.raises(DevError, match="No terminus specified for node"):
        nodes.terminus(None)
    with pytest.raises(TerminusNotFoundError):
        nodes.terminus("rest")


def test_doc_includes_terminus_setting(registered) -> None:
    nodes = Indirection(
        Node,
        "node",
        terminus_setting="node_terminus",
        doc="  Where nodes live.  ",
        context=registered,
    )

    assert nodes.doc == "Where nodes live.\n\n* **Terminus Setting**: node_terminus"


def test_delete_frees_the_name(registered) -> None:
    nodes = Indirection(Node, "node", context=registered)

    nodes.delete()

    assert registered.indirections.instance("node") is None
    Indirection(Node, "node", context=registered)


@pytest.mark.asyncio
async def test_indirects_decorator_attaches_indirection(registered) -> None:
    registered.termini.register("host", "memory", MemoryTerminus)

    @indirects("host", terminus_class="memory", context=registered)
    class Host(Indirected):
        pass

    assert Host.indirection.model is Host
    assert registered.indirections.model("host") is Host
    await Host.indirection.save(Host(name="web01"))
    assert (await Host.indirection.find("web01")).name == "web01"


def test_uses_default_context(context) -> None:
    nodes = Indirection(Node, "node")

    assert nodes.context is context
    assert context.indirections.instances() == ["node"]
