from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from authgate.core.events import JsonlFile, redact, utc_stamp


class SecurityAuditLogger:
    """
    Login, logout and session-takeover trail, one JSON object per line.

    Records carry the account and client address, never the code or a
    session id (details are redacted before writing).
    """

    def __init__(self, path: str = os.path.join("logs", "security.log")):
        self.path = path
        self._file = JsonlFile(path)

    def log(
        self,
        *,
        trace_id: str,
        severity: str,
        event: str,
        ip: Optional[str],
        endpoint: str,
        outcome: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._file.append(
            {
                "ts": utc_stamp(),
                "trace_id": trace_id,
                "severity": str(getattr(severity, "value", severity)),
                "event": event,
                "ip": ip,
                "endpoint": endpoint,
                "outcome": outcome,
                "details": redact(details or {}),
            }
        )

    def tail(self, n: int = 50) -> List[Dict[str, Any]]:
        return self._file.tail(n)
