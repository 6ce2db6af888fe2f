from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import (
    Awaitable,
    Callable,
    Coroutine,
    Mapping,
    MutableMapping,
    MutableSequence,
    Sequence,
)
from enum import Enum, auto
from typing import Any, Generic, TypeAlias, TypeVar

from diminish.dependencies import (
    DependencyRef,
    GroupDependency,
    ProducerSignature,
    ProducerSignatureExtractor,
)
from diminish.exceptions import (
    DiminishCircularDependencyError,
    DiminishContextNotAllowedError,
    DiminishError,
    DiminishNotRegisteredError,
    DiminishResolutionFailedError,
)
from diminish.pending import Pending
from diminish.registry import Registry
from diminish.types import Producer, ProducerKind

T = TypeVar("T")

logger = logging.getLogger(__name__)

_SIGNATURE_EXTRACTOR = ProducerSignatureExtractor()

_Slot: TypeAlias = "tuple[MutableSequence[Any] | MutableMapping[Any, Any], Any, Pending[Any]]"
"""Where a pending value lands once it completes: (container, index or key, handle)."""


def _close_awaitable(awaitable: Awaitable[Any]) -> None:
    if inspect.iscoroutine(awaitable):
        awaitable.close()


class ResolutionState(Enum):
    """Lifecycle of a resolver's value. Transitions only move forward."""

    UNRESOLVED = auto()
    PENDING = auto()
    RESOLVED = auto()


class Resolver(Generic[T]):
    """Wrap one producer with its dependency list and memoized value.

    A resolver applies its producer at most once. Synchronous dependency chains
    resolve immediately; as soon as one dependency (or the producer itself) is
    asynchronous, ``resolve`` returns a ``Pending`` handle shared by every
    caller until the value is available.
    """

    __slots__ = ("_name", "_pending", "_producer", "_registry", "_signature", "_state", "_value")

    def __init__(
        self,
        registry: Registry,
        name: str,
        producer: Producer,
        *,
        signature_extractor: ProducerSignatureExtractor | None = None,
    ) -> None:
        extractor = signature_extractor or _SIGNATURE_EXTRACTOR
        self._signature: ProducerSignature = extractor.extract(producer)
        self._registry = registry
        self._name = name
        self._producer = producer
        self._state = ResolutionState.UNRESOLVED
        self._value: T | None = None
        self._pending: Pending[T] | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def producer(self) -> Producer:
        return self._producer

    @property
    def signature(self) -> ProducerSignature:
        return self._signature

    @property
    def state(self) -> ResolutionState:
        return self._state

    def is_circular(
        self,
        path: Sequence[str] = (),
        *,
        staged: Mapping[str, Resolver[Any]] | None = None,
    ) -> bool:
        """Return whether resolving this producer would revisit a node on ``path``.

        Args:
            path: Names already on the resolution path, outermost first.
            staged: Resolvers not yet in the registry that should be treated as
                registered, such as the rest of a registration batch.

        """
        if self._name in path:
            return True

        dependency_names = self._signature.dependency_names
        current_path = (*path, self._name)
        if any(node in dependency_names for node in current_path):
            return True

        for name in dependency_names:
            resolver = self._lookup(name, staged)
            if resolver is not None and resolver.is_circular(current_path, staged=staged):
                return True

        return False

    def resolve(self, context: Any = None) -> T | Pending[T]:
        """Return the producer's value, computing it on first use.

        Args:
            context: Invocation context handed to ``FUNCTION`` producers as their
                ``self`` argument. Dependencies are always resolved without one.

        Returns:
            The value, or a ``Pending`` handle when any part of the chain is async.

        Raises:
            DiminishCircularDependencyError: If the dependency graph has a cycle
                through this producer.
            DiminishNotRegisteredError: If a dependency has no producer.
            DiminishContextNotAllowedError: If a context is given to a producer
                that cannot take one.
            DiminishResolutionFailedError: If the producer raises.

        """
        if self.is_circular():
            raise DiminishCircularDependencyError(self._name)

        if self._state is ResolutionState.RESOLVED:
            return self._value  # type: ignore[return-value]
        if self._pending is not None:
            return self._pending

        return self._resolve(context)

    def _resolve(self, context: Any) -> T | Pending[T]:
        self._check_context(context)

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        waits: list[_Slot] = []

        for dependency in self._signature.dependencies:
            value = self._dependency_value(dependency, waits)
            if dependency.keyword is None:
                args.append(value)
                target: MutableSequence[Any] | MutableMapping[Any, Any] = args
                slot: Any = len(args) - 1
            else:
                kwargs[dependency.keyword] = value
                target, slot = kwargs, dependency.keyword
            if isinstance(value, Pending):
                waits.append((target, slot, value))

        if waits:
            logger.debug("Deferring '%s' until %d dependencies complete", self._name, len(waits))
            return self._defer(functools.partial(self._complete, context, args, kwargs, waits))

        result = self._apply(context, args, kwargs)
        if inspect.isawaitable(result):
            return self._defer(
                functools.partial(self._await_result, result),
                discard=functools.partial(_close_awaitable, result),
            )
        return self._settle(result)

    def _dependency_value(self, dependency: DependencyRef, waits: list[_Slot]) -> Any:
        if isinstance(dependency, GroupDependency):
            group: dict[str, Any] = {}
            for name in dependency.names:
                value = group[name] = self._resolve_dependency(name)
                if isinstance(value, Pending):
                    waits.append((group, name, value))
            return group
        return self._resolve_dependency(dependency.name)

    def _resolve_dependency(self, name: str) -> Any:
        resolver = self._registry.get(name)
        if resolver is None:
            raise DiminishNotRegisteredError(name)
        return resolver.resolve()

    def _defer(
        self,
        work: Callable[[], Coroutine[Any, Any, T]],
        *,
        discard: Callable[[], object] | None = None,
    ) -> Pending[T]:
        self._pending = Pending(work, discard=discard)
        self._state = ResolutionState.PENDING
        return self._pending

    async def _complete(
        self,
        context: Any,
        args: list[Any],
        kwargs: dict[str, Any],
        waits: list[_Slot],
    ) -> T:
        values = await asyncio.gather(*(pending for _, _, pending in waits))
        # Completion order is arbitrary; each value goes back to its declared slot.
        for (target, slot, _), value in zip(waits, values):
            target[slot] = value

        result = self._apply(context, args, kwargs)
        if inspect.isawaitable(result):
            return await self._await_result(result)
        return self._settle(result)

    async def _await_result(self, result: Awaitable[Any]) -> T:
        try:
            value = await result
        except DiminishError:
            raise
        except Exception as error:
            raise DiminishResolutionFailedError(self._name, error) from error
        return self._settle(value)

    def _settle(self, value: T) -> T:
        if self._state is not ResolutionState.RESOLVED:
            self._value = value
            self._state = ResolutionState.RESOLVED
            logger.debug("Resolved '%s'", self._name)
        return self._value  # type: ignore[return-value]

    def _check_context(self, context: Any) -> None:
        if context is not None and self._signature.kind is not ProducerKind.FUNCTION:
            raise DiminishContextNotAllowedError(self._name, self._signature.kind)

    def _apply(self, context: Any, args: list[Any], kwargs: dict[str, Any]) -> Any:
        try:
            if self._signature.kind is ProducerKind.FUNCTION:
                return self._producer(context, *args, **kwargs)
            return self._producer(*args, **kwargs)
        except DiminishError:
            raise
        except Exception as error:
            raise DiminishResolutionFailedError(self._name, error) from error

    def _lookup(
        self,
        name: str,
        staged: Mapping[str, Resolver[Any]] | None,
    ) -> Resolver[Any] | None:
        resolver = self._registry.get(name)
        if resolver is None and staged is not None:
            return staged.get(name)
        return resolver

    def __repr__(self) -> str:
        kind = self._signature.kind
        return f"Resolver(name={self._name!r}, kind={kind}, state={self._state.name})"
