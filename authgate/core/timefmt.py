from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def display_time(ts: Optional[float] = None, *, tz_name: str = "Asia/Seoul") -> str:
    """Human-readable local time for console log lines. Falls back to UTC for unknown zones."""
    t = time.time() if ts is None else float(ts)
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        tz = timezone.utc
    return datetime.fromtimestamp(t, tz=tz).strftime("%Y-%m-%d %H:%M:%S")
