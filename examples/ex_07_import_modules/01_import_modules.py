"""Load producers from files matched by glob patterns.

Each matching file is executed as a module; its public callables are
registered under their names. Pass ``loader`` to register modules differently.
"""

from __future__ import annotations

from pathlib import Path
from types import ModuleType

from diminish import Container

HERE = Path(__file__).parent


def main() -> None:
    container = Container()
    container.import_modules("producers/*.py", cwd=HERE)

    print(container.resolve("Repository").dsn)  # => sqlite:///app.db

    loaded: list[str] = []

    def record(target: Container, module: ModuleType) -> None:
        loaded.append(Path(module.__file__ or "").name)

    Container().import_modules("producers/*.py", cwd=HERE, loader=record)
    print(loaded)  # => ['repository.py', 'settings.py']


if __name__ == "__main__":
    main()
