"""Invoke producers without registering them, optionally with a context.

A function whose first parameter is ``self`` receives the invocation context.
Classes and other callables reject one.
"""

from __future__ import annotations

from diminish import Container, DiminishContextNotAllowedError


class Request:
    def __init__(self, user: str) -> None:
        self.user = user


def handle(self: Request, greeting: str) -> str:
    return f"{greeting}, {self.user}"


def main() -> None:
    container = Container()
    container.literal("greeting", "Welcome")

    print(container.invoke(Request("ada"), handle))  # => Welcome, ada
    print(container.invoke(lambda greeting: len(greeting)))  # => 7

    try:
        container.invoke(Request("ada"), Request)
    except DiminishContextNotAllowedError as error:
        print(error.kind)  # => class


if __name__ == "__main__":
    main()
