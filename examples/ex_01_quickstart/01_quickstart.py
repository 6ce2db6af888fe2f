"""Quickstart: dependencies are named by parameters.

Register producers under keys, resolve only the top-level key, and see how
diminish builds the whole chain, each value exactly once.
"""

from __future__ import annotations

from diminish import Container


class Database:
    def __init__(self, dsn: str) -> None:
        self.dsn = dsn


class UserRepository:
    def __init__(self, database: Database) -> None:
        self.database = database


class UserService:
    def __init__(self, user_repository: UserRepository) -> None:
        self.repository = user_repository


def main() -> None:
    container = Container()
    container.literal("dsn", "postgresql://localhost/app")
    container.register(
        {
            "database": Database,
            "user_repository": UserRepository,
            "user_service": UserService,
        },
    )

    service = container.resolve("user_service")
    print(f"dsn={service.repository.database.dsn}")  # => dsn=postgresql://localhost/app

    chain = (
        f"{type(service).__name__}"
        f">{type(service.repository).__name__}"
        f">{type(service.repository.database).__name__}"
    )
    print(f"chain={chain}")  # => chain=UserService>UserRepository>Database

    same = container.resolve("database") is service.repository.database
    print(f"cached={same}")  # => cached=True


if __name__ == "__main__":
    main()
