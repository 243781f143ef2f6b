import logging

import pytest

from indirector_core import (
    IndirectionRegistry,
    MemoryTerminus,
    Terminus,
    TerminusCapabilities,
    TerminusRegistrationError,
    TerminusRegistry,
    register_terminus,
)
from indirector_core.termini import FileTerminus


class AuthorizingTerminus(Terminus):
    def authorized(self, request) -> bool:
        return True


class FilteringTerminus(Terminus):
    def filter(self, result):
        return result


def test_register_and_resolve() -> None:
    registry = TerminusRegistry()

    registry.register("catalog", "memory", MemoryTerminus)

    assert registry.resolve("catalog", "memory") is MemoryTerminus
    assert ("catalog", "memory") in registry
    assert registry.terminus_names("catalog") == ["memory"]


def test_resolve_missing_returns_none() -> None:
    registry = TerminusRegistry()

    assert registry.resolve("catalog", "rest") is None


def test_conflicting_registration_is_rejected(caplog) -> None:
    caplog.set_level(logging.DEBUG)
    registry = TerminusRegistry()
    registry.register("catalog", "memory", MemoryTerminus)

    # Same implementation again is allowed
    registry.register("catalog", "memory", MemoryTerminus)

    with pytest.raises(TerminusRegistrationError, match="Duplicate terminus memory"):
        registry.register("catalog", "memory", FileTerminus)
    assert "Registered terminus catalog/memory -> MemoryTerminus" in caplog.text


def test_lazy_import_path_is_loaded_on_resolve() -> None:
    registry = TerminusRegistry()
    path = "indirector_core.termini.memory:MemoryTerminus"
    registry.register("catalog", "memory", path)

    assert registry.resolve("catalog", "memory") is MemoryTerminus
    # Re-registering the same path after loading is not a conflict
    registry.register("catalog", "memory", path)


def test_dotted_import_path_is_supported() -> None:
    registry = TerminusRegistry()
    registry.register("catalog", "file", "indirector_core.termini.file.FileTerminus")

    assert registry.resolve("catalog", "file") is FileTerminus


def test_broken_import_path_resolves_to_none(caplog) -> None:
    registry = TerminusRegistry()
    registry.register("catalog", "rest", "indirector_missing.rest:RestTerminus")

    assert registry.resolve("catalog", "rest") is None
    assert "Could not load terminus rest for catalog" in caplog.text


def test_capabilities_are_detected_at_registration() -> None:
    registry = TerminusRegistry()
    registry.register("catalog", "auth", AuthorizingTerminus)
    registry.register("catalog", "filter", FilteringTerminus)
    registry.register("catalog", "memory", MemoryTerminus)

    assert registry.capabilities("catalog", "auth") == TerminusCapabilities(
        authorizer=True
    )
    assert registry.capabilities("catalog", "filter") == TerminusCapabilities(
        filter=True
    )
    assert registry.capabilities("catalog", "memory") == TerminusCapabilities()
    assert registry.capabilities("catalog", "missing") == TerminusCapabilities()


def test_clear_forgets_everything() -> None:
    registry = TerminusRegistry()
    registry.register("catalog", "memory", MemoryTerminus)

    registry.clear()

    assert registry.resolve("catalog", "memory") is None
    registry.register("catalog", "memory", FileTerminus)


def test_register_terminus_decorator_uses_given_registry() -> None:
    registry = TerminusRegistry()

    @register_terminus("catalog", "custom", registry=registry)
    class CustomTerminus(Terminus):
        pass

    assert registry.resolve("catalog", "custom") is CustomTerminus


def test_register_terminus_decorator_defaults_to_context(context) -> None:
    @register_terminus("catalog", "custom")
    class CustomTerminus(Terminus):
        pass

    assert context.termini.resolve("catalog", "custom") is CustomTerminus


def test_indirection_registry_lookup() -> None:
    class FakeIndirection:
        name = "catalog"
        model = dict

    registry = IndirectionRegistry()
    indirection = FakeIndirection()
    registry.register(indirection)

    assert registry.instance("catalog") is indirection
    assert registry.model("catalog") is dict
    assert registry.model("missing") is None
    assert registry.instances() == ["catalog"]

    registry.unregister(indirection)
    assert registry.instance("catalog") is None
