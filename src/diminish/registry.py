from __future__ import annotations

from collections.abc import Iterator, KeysView
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from diminish.resolver import Resolver


class Registry:
    """Store resolvers indexed by identifier.

    The registry performs no validation. Key rules and duplicate checks belong to
    ``Container``, which is the only writer. Every resolver holds a reference to
    the registry it was created against and looks its dependencies up here.
    """

    __slots__ = ("_resolvers",)

    def __init__(self) -> None:
        self._resolvers: dict[str, Resolver] = {}

    def get(self, name: str) -> Resolver | None:
        """Return the resolver registered under ``name``, if any."""
        return self._resolvers.get(name)

    def set(self, name: str, resolver: Resolver) -> None:
        """Store ``resolver`` under ``name``, replacing any previous entry."""
        self._resolvers[name] = resolver

    def has(self, name: str) -> bool:
        """Return whether a resolver is registered under ``name``."""
        return name in self._resolvers

    def keys(self) -> KeysView[str]:
        return self._resolvers.keys()

    def __contains__(self, name: object) -> bool:
        return name in self._resolvers

    def __iter__(self) -> Iterator[str]:
        return iter(self._resolvers)

    def __len__(self) -> int:
        return len(self._resolvers)
