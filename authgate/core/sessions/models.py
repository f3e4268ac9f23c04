from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class SessionState(str, Enum):
    ABSENT = "ABSENT"
    LIVE = "LIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"
    LOGGED_OUT = "LOGGED_OUT"


class Reason(str, Enum):
    MISSING_FIELDS = "missing_fields"
    AUTH_FAILED = "auth_failed"
    EXPIRED = "expired"
    WRONG_SESSION = "wrong_session"
    ALREADY_LOGGED_OUT = "already_logged_out"
    VERIFIER_UNAVAILABLE = "verifier_unavailable"


@dataclass(frozen=True)
class SessionRecord:
    account: str
    token: str
    source_ip: str
    last_activity: float

    def idle_seconds(self, now: float) -> float:
        return float(now) - self.last_activity

    def is_live(self, now: float, ttl_seconds: float) -> bool:
        # boundary inclusive: exactly ttl idle is still live
        return self.idle_seconds(now) <= ttl_seconds


class OperationResult(BaseModel):
    ok: bool
    reason: Optional[Reason] = None


class LoginResult(OperationResult):
    token: Optional[str] = None
    ttl_seconds: Optional[float] = None
    replaced_previous: bool = False


class ValidateResult(OperationResult):
    live: bool = False
    same_token: Optional[bool] = None
    ttl_remaining_seconds: Optional[float] = None


class HeartbeatResult(OperationResult):
    ttl_remaining_seconds: Optional[float] = None


class LogoutResult(OperationResult):
    pass
