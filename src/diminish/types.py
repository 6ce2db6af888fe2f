from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from types import ModuleType

    from diminish.container import Container


class ProducerKind(str, Enum):
    """Defines how a producer is invoked once its dependencies are resolved."""

    CLASS = "class"
    """Invoked via construction. Never accepts an invocation context."""

    FUNCTION = "function"
    """A function with a leading ``self`` parameter that receives the invocation context."""

    NO_CONTEXT_FUNCTION = "no_context_function"
    """Invoked as a plain call. Rejects an invocation context."""

    def __str__(self) -> str:
        return self.value


Producer: TypeAlias = Callable[..., Any]
"""A class, function or other callable whose parameters name its dependencies."""

Loader: TypeAlias = "Callable[[Container, ModuleType], Awaitable[None] | None]"
"""Callback applied to every module found by ``Container.import_modules``."""
