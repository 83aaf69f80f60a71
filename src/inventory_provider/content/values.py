from __future__ import annotations

from typing import Any, Optional


class ContentValues(dict):
    """Column -> value mapping handed to providers for insert and update."""

    def contains_key(self, key: str) -> bool:
        return key in self

    def size(self) -> int:
        return len(self)

    def get_as_string(self, key: str) -> Optional[str]:
        value = self.get(key)
        if value is None:
            return None
        return str(value)

    def get_as_integer(self, key: str) -> Optional[int]:
        """Return the value as int, or None when absent or not convertible."""
        value: Any = self.get(key)
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            return None
