"""
Identity audit trail: one JSON object per line, secrets redacted.
"""
from __future__ import annotations

import json
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


REDACT_KEYS = frozenset(
    {
        "password",
        "hash",
        "secret",
        "token",
        "api_key",
        "authorization",
        "cookie",
        "session",
    }
)
REDACTED = "***REDACTED***"


def redact(obj: Any) -> Any:
    """Copy of `obj` with values under credential-like keys masked, at any depth."""
    if isinstance(obj, Mapping):
        return {k: REDACTED if str(k).lower() in REDACT_KEYS else redact(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [redact(x) for x in obj]
    return obj


@dataclass(frozen=True)
class EventLogger:
    path: str
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)

    def log(self, trace_id: str, event_type: str, details: Optional[Dict[str, Any]] = None) -> None:
        record = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "trace_id": trace_id,
            "event": event_type,
            "outcome": event_type.rsplit(".", 1)[-1],
            "details": redact(details or {}),
        }
        line = json.dumps(record, ensure_ascii=False, default=str)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
