from __future__ import annotations

import inspect
import logging
import os
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from types import ModuleType
from typing import Any, TypeVar, overload

from diminish.defaults import INVOKE_KEY
from diminish.dependencies import ProducerSignatureExtractor
from diminish.exceptions import (
    DiminishCircularDependencyError,
    DiminishDuplicateKeyError,
    DiminishImportFailedError,
    DiminishInvalidArityError,
    DiminishInvalidImportOptionsError,
    DiminishInvalidRegistrationError,
    DiminishNotCallableError,
    DiminishNotRegisteredError,
    DiminishResolutionFailedError,
)
from diminish.importing import ImportOptions, ModuleFinder, default_loader
from diminish.pending import Pending
from diminish.registry import Registry
from diminish.resolver import Resolver
from diminish.types import Loader, Producer
from diminish.validators import KeyValidator

P = TypeVar("P", bound=Callable[..., Any])

logger = logging.getLogger(__name__)


def _literal_producer(value: Any) -> Producer:
    def produce() -> Any:
        return value

    return produce


class Container:
    """Register named producers and resolve them with their dependencies.

    A producer's parameter names are the keys of the producers it depends on.
    Values are built lazily on first resolution and cached for the lifetime of
    the container. Registrations are write-once; a batch either registers
    completely or not at all.

    Examples:
        .. code-block:: python

            container = Container()
            container.literal("dsn", "sqlite://")
            container.register("db", lambda dsn: Database(dsn))
            db = container.resolve("db")

    """

    __slots__ = (
        "_import_loader",
        "_key_validator",
        "_module_finder",
        "_registry",
        "_signature_extractor",
    )

    def __init__(
        self,
        *,
        module_finder: ModuleFinder | None = None,
        import_loader: Loader = default_loader,
        signature_extractor: ProducerSignatureExtractor | None = None,
    ) -> None:
        """Create an empty container.

        Args:
            module_finder: Discovers and loads files for ``import_modules``.
            import_loader: Default callback applied to each imported module.
            signature_extractor: Classifies producers and extracts their dependencies.

        """
        self._registry = Registry()
        self._key_validator = KeyValidator()
        self._signature_extractor = signature_extractor or ProducerSignatureExtractor()
        self._module_finder = module_finder or ModuleFinder()
        self._import_loader = import_loader

    @overload
    def register(self, producers: Mapping[str, Producer], /) -> None: ...

    @overload
    def register(self, key: str, producer: Producer, /) -> None: ...

    def register(self, *args: Any) -> None:
        """Register one producer, or a mapping of keys to producers.

        Every key is validated, checked for duplicates, and every new producer
        is checked for circular dependencies (including cycles inside the batch)
        before anything is inserted.

        Raises:
            DiminishInvalidArityError: If not called with one or two arguments.
            DiminishInvalidKeyError: If a key is not a valid identifier.
            DiminishDuplicateKeyError: If a key is already registered.
            DiminishNotCallableError: If a producer is not callable.
            DiminishCircularDependencyError: If a producer closes a dependency cycle.

        """
        staged: dict[str, Resolver[Any]] = {}
        for key, producer in self._batch("register", args):
            self._check_new_key(key)
            staged[key] = self._make_resolver(key, producer)

        for key, resolver in staged.items():
            if resolver.is_circular(staged=staged):
                raise DiminishCircularDependencyError(key)

        self._commit(staged)

    @overload
    def literal(self, values: Mapping[str, Any], /) -> None: ...

    @overload
    def literal(self, key: str, value: Any, /) -> None: ...

    def literal(self, *args: Any) -> None:
        """Register one value, or a mapping of keys to values, as-is.

        Each value is wrapped in a producer without dependencies, so it flows
        through the same resolution and caching path as any other producer.

        Raises:
            DiminishInvalidArityError: If not called with one or two arguments.
            DiminishInvalidKeyError: If a key is not a valid identifier.
            DiminishDuplicateKeyError: If a key is already registered.

        """
        staged: dict[str, Resolver[Any]] = {}
        for key, value in self._batch("literal", args):
            self._check_new_key(key)
            staged[key] = self._make_resolver(key, _literal_producer(value))

        self._commit(staged)

    def resolve(self, key: str) -> Any:
        """Resolve a registered key.

        Returns:
            The value, or a ``Pending`` handle to await when the producer or any
            of its dependencies is asynchronous.

        Raises:
            DiminishNotRegisteredError: If ``key`` is not registered, or one of
                its dependencies is not.
            DiminishCircularDependencyError: If the dependency graph has a cycle.
            DiminishResolutionFailedError: If a producer raises. ``key`` names the
                failing producer and ``requested`` the key passed here.

        """
        resolver = self._registry.get(key) if isinstance(key, str) else None
        if resolver is None:
            raise DiminishNotRegisteredError(key, requested=key)

        logger.debug("Resolving '%s'", key)
        try:
            return resolver.resolve()
        except (DiminishNotRegisteredError, DiminishResolutionFailedError) as error:
            raise error.with_requested(key) from error

    async def aresolve(self, key: str) -> Any:
        """Resolve a registered key and await the value if it is pending."""
        result = self.resolve(key)
        if not isinstance(result, Pending):
            return result
        try:
            return await result
        except (DiminishNotRegisteredError, DiminishResolutionFailedError) as error:
            raise error.with_requested(key) from error

    @overload
    def invoke(self, producer: Producer, /) -> Any: ...

    @overload
    def invoke(self, context: Any, producer: Producer, /) -> Any: ...

    def invoke(self, *args: Any) -> Any:
        """Call a producer with its dependencies without registering it.

        Args:
            args: ``(producer,)`` or ``(context, producer)``. The context is handed
                to producers whose first parameter is ``self``.

        Returns:
            The producer's result, or a ``Pending`` handle when anything is async.

        Raises:
            DiminishInvalidArityError: If not called with one or two arguments.
            DiminishNotCallableError: If the producer is not callable.
            DiminishContextNotAllowedError: If a context is given to a producer
                that cannot take one.

        """
        context, producer = self._invocation("invoke", args)
        resolver = self._make_resolver(INVOKE_KEY, producer)
        return resolver.resolve(context)

    async def ainvoke(self, *args: Any) -> Any:
        """Invoke a producer and await the result if it is pending."""
        result = self.invoke(*args)
        if isinstance(result, Pending):
            return await result
        return result

    def is_registered(self, key: str) -> bool:
        """Return whether ``key`` is registered.

        Raises:
            DiminishInvalidKeyError: If ``key`` is not a valid identifier.

        """
        return self._registry.has(self._key_validator.validate(key))

    def producer(self, key: str | None = None) -> Callable[[P], P]:
        """Register the decorated callable, under ``key`` or its ``__name__``.

        Examples:
            .. code-block:: python

                @container.producer()
                def settings() -> Settings:
                    return Settings()

        """

        def decorator(producer: P) -> P:
            self.register(key if key is not None else producer.__name__, producer)
            return producer

        return decorator

    def import_modules(
        self,
        include: str | os.PathLike[str] | Sequence[str] | ImportOptions,
        *,
        exclude: str | Sequence[str] | None = None,
        cwd: str | os.PathLike[str] | None = None,
        loader: Loader | None = None,
    ) -> None:
        """Load every file matching ``include`` and pass each module to a loader.

        The default loader registers the module's exported producers. Files are
        processed in discovery order and the first failure stops the import.

        Raises:
            DiminishInvalidImportOptionsError: If the patterns are invalid.
            DiminishImportFailedError: If a file fails to load or register, or a
                loader returns an awaitable (use ``aimport_modules`` instead).

        """
        options = self._import_options(include, exclude=exclude, cwd=cwd, loader=loader)
        paths = self._module_finder.find(options)
        for path in paths:
            result = self._load_module(path, options)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                msg = "Loader returned an awaitable; use aimport_modules() for async loaders."
                raise DiminishImportFailedError(path, TypeError(msg))

        logger.info("Imported %d modules from %s", len(paths), options.cwd)

    async def aimport_modules(
        self,
        include: str | os.PathLike[str] | Sequence[str] | ImportOptions,
        *,
        exclude: str | Sequence[str] | None = None,
        cwd: str | os.PathLike[str] | None = None,
        loader: Loader | None = None,
    ) -> None:
        """Async variant of ``import_modules`` that awaits awaitable loader results."""
        options = self._import_options(include, exclude=exclude, cwd=cwd, loader=loader)
        paths = self._module_finder.find(options)
        for path in paths:
            result = self._load_module(path, options)
            if inspect.isawaitable(result):
                try:
                    await result
                except Exception as error:
                    raise DiminishImportFailedError(path, error) from error

        logger.info("Imported %d modules from %s", len(paths), options.cwd)

    def _batch(self, operation: str, args: tuple[Any, ...]) -> list[tuple[Any, Any]]:
        if len(args) == 1:
            (entries,) = args
            if not isinstance(entries, Mapping):
                msg = (
                    f"{operation}() with one argument expects a mapping of keys, "
                    f"got {type(entries).__name__}."
                )
                raise DiminishInvalidRegistrationError(msg)
            return list(entries.items())
        if len(args) == 2:  # noqa: PLR2004
            return [args]
        raise DiminishInvalidArityError(operation, len(args))

    def _invocation(self, operation: str, args: tuple[Any, ...]) -> tuple[Any, Producer]:
        if len(args) == 1:
            context, producer = None, args[0]
        elif len(args) == 2:  # noqa: PLR2004
            context, producer = args
        else:
            raise DiminishInvalidArityError(operation, len(args))

        if not callable(producer):
            raise DiminishNotCallableError(producer)
        return context, producer

    def _check_new_key(self, key: Any) -> None:
        self._key_validator.validate(key)
        if self._registry.has(key):
            raise DiminishDuplicateKeyError(key)

    def _make_resolver(self, key: str, producer: Producer) -> Resolver[Any]:
        return Resolver(
            self._registry,
            key,
            producer,
            signature_extractor=self._signature_extractor,
        )

    def _commit(self, staged: Mapping[str, Resolver[Any]]) -> None:
        for key, resolver in staged.items():
            self._registry.set(key, resolver)
            logger.debug("Registered '%s' (%s)", key, resolver.signature.kind)

    def _import_options(
        self,
        include: str | os.PathLike[str] | Sequence[str] | ImportOptions,
        *,
        exclude: str | Sequence[str] | None,
        cwd: str | os.PathLike[str] | None,
        loader: Loader | None,
    ) -> ImportOptions:
        if isinstance(include, ImportOptions):
            if exclude is not None or cwd is not None or loader is not None:
                msg = "Pass either ImportOptions or keyword options, not both."
                raise DiminishInvalidImportOptionsError(msg)
            return include
        return ImportOptions.build(include, exclude=exclude, cwd=cwd, loader=loader)

    def _load_module(self, path: Path, options: ImportOptions) -> Awaitable[None] | None:
        loader = options.loader or self._import_loader
        try:
            module: ModuleType = self._module_finder.load(path)
            return loader(self, module)
        except Exception as error:
            raise DiminishImportFailedError(path, error) from error
