"""Groups inject several dependencies through one parameter.

Annotate a parameter with ``Group`` or with a ``TypedDict`` to receive a dict of
resolved values. ``depends_on`` lists dependencies explicitly instead.
"""

from __future__ import annotations

from typing import Annotated, Any, TypedDict

from diminish import Container, Group, depends_on


class Endpoint(TypedDict):
    host: str
    port: int


def url(endpoint: Endpoint) -> str:
    return f"http://{endpoint['host']}:{endpoint['port']}"


def health(checks: Annotated[dict[str, Any], Group("url", "port")]) -> str:
    return ", ".join(f"{name}={value}" for name, value in checks.items())


@depends_on("host", Group("port"))
def describe(*parts: Any) -> str:
    return repr(parts)


def main() -> None:
    container = Container()
    container.literal({"host": "localhost", "port": 8000})
    container.register({"url": url, "health": health, "describe": describe})

    print(container.resolve("url"))  # => http://localhost:8000
    print(container.resolve("health"))  # => url=http://localhost:8000, port=8000
    print(container.resolve("describe"))  # => ('localhost', {'port': 8000})


if __name__ == "__main__":
    main()
