from __future__ import annotations


def dsn() -> str:
    return "sqlite:///app.db"
