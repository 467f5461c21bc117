from __future__ import annotations

"""
Cookie store: named keys mapped to JSON-serializable values.

`JsonFileCookieStore` persists all keys in one JSON object on disk so
resolutions survive between CLI runs; `MemoryCookieStore` is process-local.
"""

import copy
import json
import threading
from typing import Any, Dict, Optional

from bridge.core.config.io import atomic_write_json, read_json_file


class CookieStore:
    def read(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def write(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryCookieStore(CookieStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._lock = threading.Lock()
        self._data: Dict[str, str] = {}
        for k, v in (initial or {}).items():
            self.write(k, v)

    def read(self, key: str) -> Optional[Any]:
        with self._lock:
            raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def write(self, key: str, value: Any) -> None:
        # serialize on write so callers never share state with the store
        raw = json.dumps(value, ensure_ascii=False)
        with self._lock:
            self._data[key] = raw

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileCookieStore(CookieStore):
    def __init__(self, path: str, *, logger: Any = None):
        self.path = path
        self.logger = logger
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        rr = read_json_file(self.path)
        if not rr.ok and rr.error not in (None, "missing") and self.logger:
            self.logger.warning(f"Cookie file unreadable ({rr.error}); starting empty.")
        return rr.data

    def read(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._load().get(key))

    def write(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = json.loads(json.dumps(value, ensure_ascii=False))
            atomic_write_json(self.path, data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                atomic_write_json(self.path, data)
