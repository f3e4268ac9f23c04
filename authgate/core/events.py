from __future__ import annotations

import json
import os
import threading
import time
from typing import Any, Dict, List, Optional


SECRET_KEYS = frozenset(
    {
        "code",
        "secret",
        "password",
        "passphrase",
        "token",
        "session_id",
        "sessionid",
        "digest",
        "salt",
        "authorization",
    }
)

REDACTED = "***REDACTED***"


def redact(obj: Any) -> Any:
    """Copy of obj with every value under a secret-bearing key masked, at any depth."""
    if isinstance(obj, dict):
        return {k: (REDACTED if str(k).lower() in SECRET_KEYS else redact(v)) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [redact(v) for v in obj]
    return obj


def utc_stamp(ts: Optional[float] = None) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(ts))


class JsonlFile:
    """Append-only JSON-lines file. One lock per file object."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def append(self, record: Dict[str, Any]) -> None:
        line = json.dumps(record, ensure_ascii=False, default=str)
        with self._lock:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def tail(self, n: int = 50) -> List[Dict[str, Any]]:
        if n <= 0 or not os.path.exists(self.path):
            return []
        with self._lock:
            with open(self.path, "r", encoding="utf-8") as f:
                lines = f.readlines()[-int(n):]
        out: List[Dict[str, Any]] = []
        for line in lines:
            try:
                out.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return out


class EventLogger:
    """Per-request trace lines (events.jsonl)."""

    def __init__(self, path: str):
        self.path = path
        self._file = JsonlFile(path)

    def log(self, trace_id: str, event_type: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._file.append(
            {
                "ts": utc_stamp(),
                "trace_id": trace_id,
                "event": event_type,
                "details": redact(details or {}),
            }
        )
