from __future__ import annotations

import inspect
import sys
from dataclasses import dataclass
from inspect import Parameter
from types import FunctionType
from typing import Annotated, Any, TypeAlias, get_args, get_origin, get_type_hints

from typing_extensions import is_typeddict

from diminish.defaults import CONTEXT_PARAMETER_NAME, DEPENDENCIES_ATTR
from diminish.exceptions import DiminishNotCallableError, DiminishUnsupportedNativeError
from diminish.markers import Group
from diminish.types import ProducerKind

_ANNOTATED_MARKER_MIN_ARGS = 2
_POSITIONAL_KINDS = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)
_CONSTRUCTOR_NAMES = ("__init__", "__new__")


@dataclass(frozen=True, slots=True)
class SimpleDependency:
    """Inject the resolved value of a single key."""

    name: str
    keyword: str | None = None
    """Parameter name when the value must be passed by keyword."""

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name,)


@dataclass(frozen=True, slots=True)
class GroupDependency:
    """Inject a ``dict`` holding the resolved values of several keys."""

    names: tuple[str, ...]
    keyword: str | None = None
    """Parameter name when the value must be passed by keyword."""


DependencyRef: TypeAlias = SimpleDependency | GroupDependency


@dataclass(frozen=True, slots=True)
class ProducerSignature:
    """Invocation category and ordered dependency references of a producer."""

    kind: ProducerKind
    dependencies: tuple[DependencyRef, ...] = ()

    @property
    def dependency_names(self) -> tuple[str, ...]:
        """Unique dependency names in first-seen order, group members flattened."""
        names: dict[str, None] = {}
        for dependency in self.dependencies:
            names.update(dict.fromkeys(dependency.names))
        return tuple(names)


@dataclass(slots=True)
class ProducerSignatureExtractor:
    """Classify producers and extract their dependencies from their parameters.

    Classes use the nearest constructor declared along their MRO. Functions use
    their own parameters. Parameters with defaults, ``*args`` and ``**kwargs``
    are not dependencies and are skipped.
    """

    def extract(self, producer: Any) -> ProducerSignature:
        """Build the signature of ``producer``.

        Args:
            producer: Class or callable to inspect.

        Returns:
            The producer kind and its dependency references in declaration order.

        Raises:
            DiminishNotCallableError: If ``producer`` is not callable.
            DiminishUnsupportedNativeError: If the parameters cannot be inspected.

        """
        if not callable(producer):
            raise DiminishNotCallableError(producer)

        if inspect.isclass(producer):
            kind = ProducerKind.CLASS
            target = self._nearest_constructor(producer)
            parameters = self._parameters(producer, target, skip_first_parameter=True)
        else:
            parameters = self._parameters(producer, producer, skip_first_parameter=False)
            kind = self._function_kind(producer, parameters)
            if kind is ProducerKind.FUNCTION:
                parameters = parameters[1:]
            target = producer

        explicit = self._explicit_dependencies(producer)
        if explicit is not None:
            return ProducerSignature(kind=kind, dependencies=explicit)

        if target is None:
            return ProducerSignature(kind=kind)

        annotations = self._resolved_annotations(producer, target)
        dependencies: list[DependencyRef] = []
        for parameter in parameters:
            dependency = self._dependency_from_parameter(parameter, annotations)
            if dependency is not None:
                dependencies.append(dependency)

        return ProducerSignature(kind=kind, dependencies=tuple(dependencies))

    def _nearest_constructor(self, cls: type[Any]) -> Any | None:
        for klass in cls.__mro__:
            if klass is object:
                break
            for name in _CONSTRUCTOR_NAMES:
                if name in vars(klass):
                    return getattr(klass, name)
        return None

    def _parameters(
        self,
        producer: Any,
        target: Any | None,
        *,
        skip_first_parameter: bool,
    ) -> tuple[Parameter, ...]:
        if target is None:
            return ()
        try:
            parameters = tuple(inspect.signature(target).parameters.values())
        except (ValueError, TypeError) as error:
            raise DiminishUnsupportedNativeError(producer) from error
        if skip_first_parameter and parameters and parameters[0].kind in _POSITIONAL_KINDS:
            return parameters[1:]
        return parameters

    def _function_kind(self, producer: Any, parameters: tuple[Parameter, ...]) -> ProducerKind:
        if (
            isinstance(producer, FunctionType)
            and parameters
            and parameters[0].name == CONTEXT_PARAMETER_NAME
            and parameters[0].kind in _POSITIONAL_KINDS
        ):
            return ProducerKind.FUNCTION
        return ProducerKind.NO_CONTEXT_FUNCTION

    def _explicit_dependencies(self, producer: Any) -> tuple[DependencyRef, ...] | None:
        # Read the producer's own namespace so subclasses don't inherit a base's list.
        declared = getattr(producer, "__dict__", {}).get(DEPENDENCIES_ATTR)
        if declared is None:
            return None
        return tuple(
            GroupDependency(names=item.names) if isinstance(item, Group) else SimpleDependency(item)
            for item in declared
        )

    def _resolved_annotations(self, producer: Any, target: Any) -> dict[str, Any]:
        annotations = self._type_hints(target)
        if inspect.isclass(producer):
            for name, annotation in self._type_hints(producer).items():
                annotations.setdefault(name, annotation)
        return annotations

    def _type_hints(self, target: Any) -> dict[str, Any]:
        try:
            return get_type_hints(target, include_extras=True)
        except (AttributeError, NameError, TypeError):
            return self._partial_type_hints(target)

    def _partial_type_hints(self, target: Any) -> dict[str, Any]:
        """Evaluate annotations one at a time, keeping every one that resolves.

        A single forward reference that cannot be evaluated makes
        ``get_type_hints`` fail for the whole callable. Falling back per name
        keeps ``Group`` markers on the other parameters visible.
        """
        try:
            raw = inspect.get_annotations(target)
        except TypeError:
            return {}

        namespace = _global_namespace(target)
        hints: dict[str, Any] = {}
        for name, annotation in raw.items():
            try:
                hints.update(
                    get_type_hints(
                        _annotation_holder(name, annotation),
                        globalns=namespace,
                        include_extras=True,
                    ),
                )
            except (AttributeError, NameError, SyntaxError, TypeError):
                continue
        return hints

    def _dependency_from_parameter(
        self,
        parameter: Parameter,
        annotations: dict[str, Any],
    ) -> DependencyRef | None:
        if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
            return None
        if parameter.default is not Parameter.empty:
            return None

        keyword = parameter.name if parameter.kind is Parameter.KEYWORD_ONLY else None
        annotation = annotations.get(parameter.name, parameter.annotation)
        group = self._group_names(annotation)
        if group is not None:
            return GroupDependency(names=group, keyword=keyword)
        return SimpleDependency(name=parameter.name, keyword=keyword)

    def _group_names(self, annotation: Any) -> tuple[str, ...] | None:
        """Return group member names for ``Annotated[..., Group(...)]`` or a TypedDict."""
        if annotation is Parameter.empty or isinstance(annotation, str):
            return None

        if get_origin(annotation) is Annotated:
            args = get_args(annotation)
            if len(args) < _ANNOTATED_MARKER_MIN_ARGS:
                return None  # pragma: no cover - Annotated requires at least 2 args
            for metadata in args[1:]:
                if isinstance(metadata, Group):
                    return metadata.names
            annotation = args[0]

        if is_typeddict(annotation):
            return Group(*annotation.__annotations__).names
        return None


def _global_namespace(target: Any) -> dict[str, Any]:
    if inspect.isclass(target):
        module = sys.modules.get(target.__module__)
        return vars(module) if module is not None else {}
    return getattr(inspect.unwrap(target), "__globals__", {})


def _annotation_holder(name: str, annotation: Any) -> Any:
    def holder() -> None: ...

    holder.__annotations__ = {name: annotation}
    return holder
