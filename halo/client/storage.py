"""
Device-local key/value storage.

Values are JSON-serializable and kept in a single JSON file, so the session
token, the device fingerprint and the cached document survive restarts.
Without a path the storage only lives in memory.
"""

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class LocalStorage:
    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._items: Optional[dict[str, Any]] = None
        self._lock = Lock()

    def _load(self) -> dict[str, Any]:
        # Raises on a corrupt file; callers decide whether that is fatal
        if self._items is None:
            if self.path and self.path.exists():
                self._items = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            else:
                self._items = {}
        return self._items

    def _flush(self):
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._items), encoding="utf-8")
        tmp_path.replace(self.path)

    def get_item(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def set_item(self, key: str, value: Any):
        with self._lock:
            self._load()[key] = value
            self._flush()

    def remove_item(self, key: str):
        with self._lock:
            if self._load().pop(key, None) is not None:
                self._flush()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._load()
