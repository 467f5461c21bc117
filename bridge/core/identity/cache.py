from __future__ import annotations

import copy
import threading
from typing import Any, Dict, Mapping, Optional

from bridge.core.errors import ValidationError
from bridge.core.identity.merge import merge_into


class IdentityCache:
    """
    Last-known identity for one client.

    Lifecycle: absent until the first update(); every update merges into the
    same dict instance; reset() drops it. Concurrent completions are merged
    one at a time, the last merge to complete wins per leaf key.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._identity: Optional[Dict[str, Any]] = None

    @property
    def exists(self) -> bool:
        return self._identity is not None

    def get(self) -> Optional[Dict[str, Any]]:
        return self._identity

    def has_role(self, role: str) -> bool:
        ident = self._identity
        return bool(ident is not None and ident.get(role))

    def update(self, partial: Mapping[str, Any]) -> Dict[str, Any]:
        if not isinstance(partial, Mapping):
            raise ValidationError("Identity update must be an object.", got=type(partial).__name__)
        with self._lock:
            if self._identity is None:
                self._identity = {}
            merge_into(partial, self._identity)
            return self._identity

    def snapshot(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._identity)

    def reset(self) -> None:
        with self._lock:
            self._identity = None
