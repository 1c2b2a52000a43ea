"""
In-memory key-value store.

Keeps every write in ``history`` so callers can assert how often, and with
what, the registry persisted.
"""

from typing import Any


class InMemoryStore:
    """Dictionary-backed store that records its writes."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(initial or {})
        self.history: list[tuple[str, Any]] = []

    @property
    def write_count(self) -> int:
        return len(self.history)

    def get(self, key: str) -> Any | None:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.history.append((key, value))
