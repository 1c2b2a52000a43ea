"""
Registry of metric keys the user has chosen to hide from scoring and summaries.

The in-memory set is the only thing reads touch. Persistence is decoupled from
mutation: each change (re)schedules one write of the whole set after a quiet
period, so a burst of changes produces a single write of the final state.
Pending writes are flushed on teardown.

Key patterns:
- Protocol-based storage injection (tests count writes on a fake store)
- Cancellable ``loop.call_later`` handle for the debounce
- Async context manager for the lifecycle
"""

import asyncio
import json
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager
from typing import Any, Protocol

import structlog

from healthcore.config import RegistryConfig, get_config
from healthcore.errors import CorruptStateError

logger = structlog.get_logger(__name__)


class KeyValueStore(Protocol):
    """Durable key-value storage the registry persists into."""

    def get(self, key: str) -> Any | None:
        """Return the stored value, or None when the key was never written."""
        ...

    def set(self, key: str, value: Any) -> None:
        ...


def parse_ignored(raw: Any) -> set[str]:
    """
    Decode the persisted form: a JSON array of strings (or the list itself).

    Raises:
        CorruptStateError: if the value is not a sequence of strings.
    """
    if raw is None:
        return set()

    data = raw
    if isinstance(raw, str | bytes):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise CorruptStateError("ignored metrics are not valid JSON", raw=raw) from e

    if not isinstance(data, list | tuple) or not all(isinstance(item, str) for item in data):
        raise CorruptStateError("ignored metrics must be a list of strings", raw=raw)
    return set(data)


def serialize_ignored(keys: set[str] | frozenset[str]) -> str:
    return json.dumps(sorted(keys))


class IgnoredMetricRegistry:
    """
    Owner of the ignored-metric set and its debounced persistence.

    Usage:
        async with IgnoredMetricRegistry(store).open() as registry:
            registry.ignore("hemoglobin")

    Outside a running event loop there is nothing to defer onto, so mutations
    are written straight through.
    """

    def __init__(self, store: KeyValueStore, config: RegistryConfig | None = None) -> None:
        self.store = store
        self.config = config or get_config().registry
        self.logger = logger.bind(
            component="ignored_metric_registry", storage_key=self.config.storage_key
        )
        self._ignored: set[str] = set()
        self._pending: asyncio.TimerHandle | None = None
        self._dirty = False
        self.load()

    # ---- Reads (synchronous, in-memory only) ----
    @property
    def ignored(self) -> frozenset[str]:
        return frozenset(self._ignored)

    def is_ignored(self, key: str) -> bool:
        return key in self._ignored

    def __contains__(self, key: object) -> bool:
        return key in self._ignored

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ignored))

    def __len__(self) -> int:
        return len(self._ignored)

    # ---- Mutations ----
    def ignore(self, key: str) -> None:
        if key in self._ignored:
            return
        self._ignored.add(key)
        self.logger.info("metric_ignored", metric=key)
        self._schedule_write()

    def unignore(self, key: str) -> None:
        if key not in self._ignored:
            return
        self._ignored.discard(key)
        self.logger.info("metric_unignored", metric=key)
        self._schedule_write()

    def toggle(self, key: str) -> bool:
        """Flip a key and return whether it is now ignored."""
        if key in self._ignored:
            self.unignore(key)
            return False
        self.ignore(key)
        return True

    # ---- Persistence ----
    def load(self) -> None:
        """Replace the in-memory set with the persisted one; corrupt data resets to empty."""
        try:
            self._ignored = parse_ignored(self.store.get(self.config.storage_key))
        except CorruptStateError as e:
            self.logger.warning("corrupt_ignored_metrics_reset", error=e.message)
            self._ignored = set()
        self.logger.debug("ignored_metrics_loaded", count=len(self._ignored))

    @property
    def has_pending_write(self) -> bool:
        return self._pending is not None or self._dirty

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _schedule_write(self) -> None:
        self._cancel_pending()
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write()
            return
        self._pending = loop.call_later(self.config.debounce_seconds, self._write)

    def _write(self) -> None:
        self._pending = None
        try:
            self.store.set(self.config.storage_key, serialize_ignored(self._ignored))
        except Exception as e:
            # Stay dirty so flush() retries on teardown
            self.logger.exception("ignored_metrics_persist_failed", error=str(e))
            return
        self._dirty = False
        self.logger.info("ignored_metrics_persisted", count=len(self._ignored))

    def flush(self) -> None:
        """Write any outstanding change now instead of waiting for the quiet period."""
        self._cancel_pending()
        if self._dirty:
            self._write()

    async def close(self) -> None:
        self.flush()

    @asynccontextmanager
    async def open(self) -> AsyncIterator["IgnoredMetricRegistry"]:
        """Lifecycle scope that always flushes pending writes on exit."""
        self.logger.debug("ignored_metrics_session_started")
        try:
            yield self
        finally:
            await self.close()
            self.logger.debug("ignored_metrics_session_ended")
