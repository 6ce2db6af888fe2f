"""Every failure is a ``DiminishError`` with structured attributes."""

from __future__ import annotations

from diminish import (
    Container,
    DiminishError,
    DiminishInvalidKeyError,
    DiminishNotRegisteredError,
    DiminishResolutionFailedError,
)


def settings() -> dict[str, str]:
    return {}


def database(settings: dict[str, str]) -> str:
    return settings["dsn"]


def main() -> None:
    container = Container()
    container.register({"settings": settings, "database": database})

    try:
        container.resolve("database")
    except DiminishResolutionFailedError as error:
        print(f"{error.key}: {type(error.error).__name__}")  # => database: KeyError

    try:
        container.resolve("cache")
    except DiminishNotRegisteredError as error:
        print(error)  # => 'cache' is not registered

    try:
        container.register("2fa", settings)
    except DiminishInvalidKeyError as error:
        print(f"invalid={error.key!r}")  # => invalid='2fa'

    print(issubclass(DiminishInvalidKeyError, DiminishError))  # => True


if __name__ == "__main__":
    main()
