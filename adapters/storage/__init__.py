"""Key-value stores satisfying ``healthcore.services.ignored_metrics.KeyValueStore``."""

from .json_file import JsonFileStore
from .memory import InMemoryStore

__all__ = ["InMemoryStore", "JsonFileStore"]
