from __future__ import annotations


class Repository:
    def __init__(self, dsn: str) -> None:
        self.dsn = dsn
