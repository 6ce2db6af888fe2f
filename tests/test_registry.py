"""Tests for the identifier-to-resolver registry."""

from diminish.registry import Registry
from diminish.resolver import Resolver


class TestRegistry:
    def test_empty_registry(self, registry: Registry) -> None:
        assert len(registry) == 0
        assert registry.get("missing") is None
        assert not registry.has("missing")
        assert "missing" not in registry

    def test_set_and_get(self, registry: Registry) -> None:
        resolver = Resolver(registry, "answer", lambda: 42)

        registry.set("answer", resolver)

        assert registry.get("answer") is resolver
        assert registry.has("answer")
        assert "answer" in registry
        assert len(registry) == 1

    def test_iteration_keeps_insertion_order(self, registry: Registry) -> None:
        for name in ("b", "a", "c"):
            registry.set(name, Resolver(registry, name, lambda: name))

        assert list(registry) == ["b", "a", "c"]
        assert list(registry.keys()) == ["b", "a", "c"]
