from __future__ import annotations

from typing import Any

from diminish.defaults import KEY_PATTERN
from diminish.exceptions import DiminishInvalidKeyError


class KeyValidator:
    """Validates registry identifiers before they reach the registry."""

    def is_valid(self, key: Any) -> bool:
        """Return whether ``key`` is a string forming a single identifier token."""
        return isinstance(key, str) and KEY_PATTERN.fullmatch(key) is not None

    def validate(self, key: Any) -> str:
        """Return ``key`` unchanged or raise ``DiminishInvalidKeyError``."""
        if not self.is_valid(key):
            raise DiminishInvalidKeyError(key)
        return key
