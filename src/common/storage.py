# ABOUTME: Declares the opaque key-value storage interface the engine persists through.
# ABOUTME: Ships an in-memory backend for tests and a JSON-file backend for local runs.

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    def save_data(self, key: str, value: Any) -> None:
        ...

    def load_data(self, key: str) -> Optional[Any]:
        ...


class InMemoryStorage:
    """Dict-backed storage; values are JSON round-tripped so callers never share references."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def save_data(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def load_data(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def remove_data(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """Stores each key as ``<root>/<key>.json``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def save_data(self, key: str, value: Any) -> None:
        self._path(key).write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")

    def load_data(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable storage file %s", path)
            return None

    def remove_data(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
