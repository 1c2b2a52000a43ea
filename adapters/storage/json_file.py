"""
Key-value store backed by a single JSON document on disk.

The whole document is rewritten on every ``set`` through a temporary file and
``os.replace`` so a crash never leaves a half-written file behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

import structlog

from healthcore.errors import CorruptStateError

logger = structlog.get_logger(__name__)


class JsonFileStore:
    """File-backed store; the file is created on first write."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self.logger = logger.bind(component="json_file_store", path=str(self.path))

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise CorruptStateError(f"{self.path} is not valid JSON") from e
        if not isinstance(document, dict):
            raise CorruptStateError(f"{self.path} must hold a JSON object", raw=document)
        return document

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        try:
            document = self._read()
        except CorruptStateError:
            self.logger.warning("corrupt_store_overwritten")
            document = {}
        document[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        self.logger.debug("store_written", key=key)
