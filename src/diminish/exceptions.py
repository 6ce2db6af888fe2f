from __future__ import annotations

from typing import Any

from typing_extensions import Self


class DiminishError(Exception):
    """Represent a base class for all diminish-specific failures.

    Catch this type when you want to handle any diminish error path without
    matching each concrete exception class individually.
    """


class DiminishInvalidKeyError(DiminishError):
    """Signal an identifier that is not a single valid token.

    Raised by ``Container.register``, ``Container.literal`` and
    ``Container.is_registered``. Keys must match ``[A-Za-z_$][A-Za-z0-9_$]*``.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Error while checking key {key!r}: Invalid key")


class DiminishDuplicateKeyError(DiminishError):
    """Signal a registration for a key that already has a producer.

    Registrations are write-once. The first registration stays intact.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Error while registering key '{key}': Duplicate key")


class DiminishNotRegisteredError(DiminishError):
    """Signal that a key has no registered producer.

    Raised by ``Container.resolve`` for an unknown top-level key and by
    ``Resolver.resolve`` when a declared dependency is missing. ``key`` names the
    missing identifier and ``requested`` the key ``Container.resolve`` was asked
    for, when the failure surfaced through it.
    """

    def __init__(self, key: str, *, requested: str | None = None) -> None:
        self.key = key
        self.requested = requested
        msg = f"'{key}' is not registered"
        if requested is not None and requested != key:
            msg = f"{msg} (required by '{requested}')"
        super().__init__(msg)

    def with_requested(self, requested: str) -> Self:
        """Return a copy of this error that also names the requested key."""
        return type(self)(self.key, requested=requested)


class DiminishCircularDependencyError(DiminishError):
    """Signal a dependency graph that revisits a node on the current path.

    Raised at registration time when the new producer closes a cycle, and at
    resolution time before any producer in the cycle is applied.

    Typical fix is breaking the cycle by resolving one side lazily through
    ``Container.invoke`` inside the producer body.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"'{key}' has circular dependencies")


class DiminishContextNotAllowedError(DiminishError):
    """Signal a custom invocation context passed to a producer that cannot take one.

    Classes and context-free callables (functions without a leading ``self``
    parameter, lambdas, bound methods, partials) reject a context.
    """

    def __init__(self, key: str, kind: Any) -> None:
        self.key = key
        self.kind = kind
        msg = f"Producer '{key}' of kind '{kind}' cannot be called with a custom context"
        super().__init__(msg)


class DiminishNotCallableError(DiminishError):
    """Signal a value used as a producer that is not callable."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Expected a function or class, got {value!r}")


class DiminishUnsupportedNativeError(DiminishError):
    """Signal a callable without an inspectable parameter list.

    Some builtins and extension callables expose no signature. Wrap them in a
    small Python function, or declare dependencies with ``depends_on``.
    """

    def __init__(self, producer: Any) -> None:
        self.producer = producer
        super().__init__(f"Cannot inspect the parameters of native callable {producer!r}")


class DiminishInvalidArityError(DiminishError):
    """Signal a call with an unsupported number of positional arguments."""

    def __init__(self, operation: str, count: int) -> None:
        self.operation = operation
        self.count = count
        super().__init__(f"{operation}() expected 1 or 2 arguments, got {count}")


class DiminishInvalidRegistrationError(DiminishError):
    """Signal an invalid registration payload or marker.

    Raised when a bulk registration receives something other than a mapping, or
    when a ``Group`` marker names no valid identifiers.
    """


class DiminishResolutionFailedError(DiminishError):
    """Wrap a failure raised by a producer while it was being applied.

    ``key`` identifies the producer that failed and ``error`` holds the original
    exception, also chained as ``__cause__``. ``requested`` is the key
    ``Container.resolve`` was asked for, which may sit further up the dependency
    chain than ``key``. It is ``None`` when the error is raised by a resolver
    outside a container call.
    """

    def __init__(self, key: str, error: BaseException, *, requested: str | None = None) -> None:
        self.key = key
        self.error = error
        self.requested = requested
        if requested is None or requested == key:
            msg = f"Error while resolving '{key}': {error}"
        else:
            msg = f"Error while resolving '{requested}': producer '{key}' failed: {error}"
        super().__init__(msg)

    def with_requested(self, requested: str) -> Self:
        """Return a copy of this error that also names the requested key."""
        return type(self)(self.key, self.error, requested=requested)


class DiminishInvalidImportOptionsError(DiminishError):
    """Signal invalid ``Container.import_modules`` arguments.

    At least one include pattern is required and every pattern must be a string.
    """


class DiminishImportFailedError(DiminishError):
    """Signal a module that failed to load or register during an import.

    ``path`` is the absolute file path and ``error`` the original exception.
    """

    def __init__(self, path: Any, error: BaseException) -> None:
        self.path = path
        self.error = error
        super().__init__(f"Failed to load module {path}: {error}")
