from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from diminish.defaults import DEPENDENCIES_ATTR
from diminish.exceptions import DiminishInvalidRegistrationError
from diminish.validators import KeyValidator

P = TypeVar("P", bound=Callable[..., Any])

_KEY_VALIDATOR = KeyValidator()


@dataclass(frozen=True, slots=True, init=False)
class Group:
    """Request several dependencies as one parameter.

    Attach ``Group`` metadata to ``typing.Annotated``. The parameter receives a
    ``dict`` mapping each name to its resolved value.

    Examples:
        .. code-block:: python

            def report(deps: Annotated[dict[str, Any], Group("db", "clock")]) -> Report:
                return Report(deps["db"], deps["clock"])

    """

    names: tuple[str, ...]

    def __init__(self, *names: str) -> None:
        if not names:
            msg = "Group() requires at least one dependency name."
            raise DiminishInvalidRegistrationError(msg)

        invalid = [name for name in names if not _KEY_VALIDATOR.is_valid(name)]
        if invalid:
            msg = f"Group() received invalid dependency names: {invalid!r}."
            raise DiminishInvalidRegistrationError(msg)

        # Duplicates collapse, first occurrence wins.
        object.__setattr__(self, "names", tuple(dict.fromkeys(names)))


def depends_on(*dependencies: str | Group) -> Callable[[P], P]:
    """Declare a producer's dependencies explicitly instead of inferring them.

    Each entry is passed positionally, in order: a string injects that key's
    value, a ``Group`` injects a ``dict`` of its members.

    Args:
        dependencies: Dependency names or ``Group`` markers, in parameter order.

    Returns:
        A decorator that records the dependencies and returns the producer unchanged.

    Raises:
        DiminishInvalidRegistrationError: If an entry is neither a valid key nor a ``Group``.

    Examples:
        .. code-block:: python

            @depends_on("config", Group("db", "cache"))
            def build_service(*args): ...

    """
    for dependency in dependencies:
        if isinstance(dependency, Group):
            continue
        if not _KEY_VALIDATOR.is_valid(dependency):
            msg = f"depends_on() received an invalid dependency: {dependency!r}."
            raise DiminishInvalidRegistrationError(msg)

    def decorator(producer: P) -> P:
        setattr(producer, DEPENDENCIES_ATTR, tuple(dependencies))
        return producer

    return decorator
