"""
AuthService: the operation boundary in front of the session registry.

Callers (the web layer, tests, embedding code) hand over raw primitives; the
service trims them, runs the registry operation, and writes the log and
security-audit lines. Business failures come back as typed results.
VerifierUnavailableError is the one failure that is raised; callers must
keep it apart from a wrong code.
"""

from __future__ import annotations

from typing import Any, Optional

from authgate.core.errors import VerifierUnavailableError
from authgate.core.security_events import SecurityAuditLogger
from authgate.core.sessions.models import (
    HeartbeatResult,
    LoginResult,
    LogoutResult,
    Reason,
    SessionState,
    ValidateResult,
)
from authgate.core.sessions.registry import SessionRegistry
from authgate.core.timefmt import display_time


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class AuthService:
    def __init__(
        self,
        *,
        registry: SessionRegistry,
        audit_logger: Optional[SecurityAuditLogger] = None,
        logger=None,
        display_timezone: str = "Asia/Seoul",
    ):
        self.registry = registry
        self.audit = audit_logger
        self.logger = logger
        self.display_timezone = display_timezone

    @property
    def ttl_seconds(self) -> float:
        return self.registry.ttl_seconds

    def login(self, email: Any, code: Any, *, client_ip: str = "", now: Optional[float] = None, trace_id: str = "auth") -> LoginResult:
        account = _clean(email)
        secret = _clean(code)
        if not account or not secret:
            return LoginResult(ok=False, reason=Reason.MISSING_FIELDS)
        try:
            res = self.registry.login(account, secret, client_ip, now=now)
        except VerifierUnavailableError as e:
            self._log("error", f"[login unavailable] {self._ts()} | {account} | credential store: {e.context.get('reason')}")
            self._audit(trace_id, "CRITICAL", "auth.verifier_unavailable", client_ip, "login", "unavailable", {"account": account})
            raise

        if not res.ok:
            # never say which of account/code was wrong
            self._log("warning", f"[login failed] {self._ts()} | {account} | IP:{client_ip}")
            self._audit(trace_id, "WARN", "auth.login_failed", client_ip, "login", "denied", {"account": account})
            return res

        if res.replaced_previous:
            self._log("info", f"[duplicate login -> previous session ended] {self._ts()} | {account} | IP:{client_ip}")
            self._audit(
                trace_id,
                "INFO",
                "auth.duplicate_login",
                client_ip,
                "login",
                SessionState.REVOKED.value,
                {"account": account},
            )
        self._log("info", f"[login ok] {self._ts()} | {account} | IP:{client_ip}")
        self._audit(trace_id, "INFO", "auth.login", client_ip, "login", "ok", {"account": account})
        return res

    def check(self, email: Any, session_id: Any = None, *, now: Optional[float] = None) -> ValidateResult:
        account = _clean(email)
        if not account:
            return ValidateResult(ok=False, reason=Reason.MISSING_FIELDS)
        return self.registry.validate(account, _clean(session_id) or None, now=now)

    def touch(self, email: Any, session_id: Any = None, *, client_ip: str = "", now: Optional[float] = None, trace_id: str = "auth") -> HeartbeatResult:
        account = _clean(email)
        res = self.registry.heartbeat(account, _clean(session_id) or None, now=now)
        if res.reason == Reason.WRONG_SESSION:
            self._audit(trace_id, "WARN", "auth.wrong_session", client_ip, "touch", "denied", {"account": account})
        return res

    def logout(self, email: Any, session_id: Any = None, *, client_ip: str = "", now: Optional[float] = None, trace_id: str = "auth") -> LogoutResult:
        account = _clean(email)
        res = self.registry.logout(account, _clean(session_id) or None, now=now)
        if res.ok:
            self._log("info", f"[logout] {self._ts()} | {account}")
            self._audit(trace_id, "INFO", "auth.logout", client_ip, "logout", SessionState.LOGGED_OUT.value, {"account": account})
        elif res.reason == Reason.WRONG_SESSION:
            self._audit(trace_id, "WARN", "auth.wrong_session", client_ip, "logout", "denied", {"account": account})
        return res

    # ---- internals ----
    def _ts(self) -> str:
        return display_time(tz_name=self.display_timezone)

    def _log(self, level: str, msg: str) -> None:
        if self.logger is not None:
            getattr(self.logger, level)(msg)

    def _audit(self, trace_id: str, severity: str, event: str, ip: Optional[str], endpoint: str, outcome: str, details: dict) -> None:
        if self.audit is None:
            return
        self.audit.log(trace_id=trace_id, severity=severity, event=event, ip=ip or None, endpoint=endpoint, outcome=outcome, details=details)
