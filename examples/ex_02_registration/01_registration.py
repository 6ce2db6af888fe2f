"""Registration forms: single keys, batches, literals and the decorator.

Registrations are write-once. A batch is checked as a whole, so a duplicate or
a cycle anywhere in it leaves the container untouched.
"""

from __future__ import annotations

from diminish import Container, DiminishCircularDependencyError, DiminishDuplicateKeyError


def main() -> None:
    container = Container()

    container.literal("greeting", "hello")
    container.register("shout", lambda greeting: greeting.upper())

    @container.producer()
    def banner(shout: str) -> str:
        return f"*** {shout} ***"

    print(container.resolve("banner"))  # => *** HELLO ***

    try:
        container.register("greeting", lambda: "hi")
    except DiminishDuplicateKeyError as error:
        print(error)  # => Error while registering key 'greeting': Duplicate key

    try:
        container.register({"ping": lambda pong: pong, "pong": lambda ping: ping})
    except DiminishCircularDependencyError as error:
        print(error)  # => 'ping' has circular dependencies

    print(f"ping_registered={container.is_registered('ping')}")  # => ping_registered=False


if __name__ == "__main__":
    main()
