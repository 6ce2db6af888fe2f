"""Async producers resolve to a shared Pending handle.

Dependents of an async producer become pending too. Awaiting the handle, from
any number of callers, runs every producer once.
"""

from __future__ import annotations

import asyncio

from diminish import Container, Pending

CALLS: list[str] = []


async def connection() -> str:
    CALLS.append("connection")
    await asyncio.sleep(0.01)
    return "conn-1"


class Repository:
    def __init__(self, connection: str) -> None:
        self.connection = connection


async def main() -> None:
    container = Container()
    container.register({"connection": connection, "repository": Repository})

    pending = container.resolve("repository")
    print(f"pending={isinstance(pending, Pending)}")  # => pending=True

    first, second = await asyncio.gather(
        container.aresolve("repository"),
        container.aresolve("repository"),
    )
    print(f"same={first is second}")  # => same=True
    print(f"connection={first.connection}")  # => connection=conn-1
    print(f"calls={CALLS}")  # => calls=['connection']


if __name__ == "__main__":
    asyncio.run(main())
