from __future__ import annotations

import glob
import importlib.util
import itertools
import logging
import os
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

from typing_extensions import Self

from diminish.defaults import DEFAULT_IMPORT_EXCLUDE
from diminish.exceptions import DiminishInvalidImportOptionsError
from diminish.types import Loader, Producer

if TYPE_CHECKING:
    from diminish.container import Container

logger = logging.getLogger(__name__)


def _as_patterns(value: Any, *, field_name: str) -> tuple[str, ...]:
    if isinstance(value, (str, os.PathLike)):
        items: tuple[Any, ...] = (value,)
    elif isinstance(value, Iterable):
        items = tuple(value)
    else:
        msg = f"{field_name} must be a pattern or a sequence of patterns, got {value!r}."
        raise DiminishInvalidImportOptionsError(msg)
    patterns = tuple(os.fspath(item) if isinstance(item, os.PathLike) else item for item in items)
    if any(not isinstance(pattern, str) for pattern in patterns):
        msg = f"{field_name} patterns must be strings, got {patterns!r}."
        raise DiminishInvalidImportOptionsError(msg)
    return patterns


@dataclass(frozen=True, slots=True)
class ImportOptions:
    """Which files ``Container.import_modules`` loads and how it registers them.

    Patterns are ``glob`` patterns (``**`` matches any depth) relative to
    ``cwd`` unless absolute. ``loader`` defaults to the container's
    ``import_loader``.
    """

    include: tuple[str, ...]
    exclude: tuple[str, ...] = DEFAULT_IMPORT_EXCLUDE
    cwd: Path = field(default_factory=Path.cwd)
    loader: Loader | None = None

    @classmethod
    def build(
        cls,
        include: str | os.PathLike[str] | Sequence[str],
        *,
        exclude: str | Sequence[str] | None = None,
        cwd: str | os.PathLike[str] | None = None,
        loader: Loader | None = None,
    ) -> Self:
        """Normalize user-facing import arguments.

        Raises:
            DiminishInvalidImportOptionsError: If no include pattern is given or a
                pattern is not a string.

        """
        patterns = _as_patterns(include, field_name="include")
        if not patterns:
            msg = "Must provide at least one include pattern."
            raise DiminishInvalidImportOptionsError(msg)

        return cls(
            include=patterns,
            exclude=DEFAULT_IMPORT_EXCLUDE
            if exclude is None
            else _as_patterns(exclude, field_name="exclude"),
            cwd=Path.cwd() if cwd is None else Path(cwd),
            loader=loader,
        )


class ModuleFinder:
    """Discover and load Python source files holding producers."""

    def __init__(self) -> None:
        self._module_counter = itertools.count(1)

    def find(self, options: ImportOptions) -> list[Path]:
        """Return absolute paths of files matching ``include`` minus ``exclude``.

        Paths keep the order of the include patterns; matches of a single
        pattern are sorted and duplicates across patterns are dropped.
        """
        cwd = options.cwd.resolve()
        excluded = {path for pattern in options.exclude for path in self._glob(pattern, cwd)}

        found: dict[Path, None] = {}
        for pattern in options.include:
            for path in sorted(self._glob(pattern, cwd)):
                if path not in excluded:
                    found.setdefault(path)
        return list(found)

    def load(self, path: Path) -> ModuleType:
        """Execute the file at ``path`` as a fresh module and return it."""
        module_name = f"_diminish_imported_{next(self._module_counter)}_{path.stem}"
        logger.debug("Loading %s as module %s", path, module_name)
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            msg = f"Cannot create an import spec for {path}"
            raise ImportError(msg)

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        return module

    def _glob(self, pattern: str, cwd: Path) -> list[Path]:
        return [
            (cwd / match).resolve()
            for match in glob.glob(pattern, root_dir=cwd, recursive=True)
            if (cwd / match).is_file()
        ]


def module_producers(module: ModuleType) -> dict[str, Producer]:
    """Return the producers a module exports.

    Names listed in ``__all__`` when the module defines it, otherwise every
    public callable defined in the module itself (imports are skipped).
    """
    exported = getattr(module, "__all__", None)
    if exported is not None:
        return {name: getattr(module, name) for name in exported}

    return {
        name: value
        for name, value in vars(module).items()
        if not name.startswith("_")
        and callable(value)
        and getattr(value, "__module__", None) == module.__name__
    }


def default_loader(container: Container, module: ModuleType) -> None:
    """Register a module's exported producers as one batch."""
    producers = module_producers(module)
    if producers:
        container.register(producers)
