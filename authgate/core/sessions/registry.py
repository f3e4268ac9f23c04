from __future__ import annotations

import secrets
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, Optional

from authgate.core.config.models import SESSION_TTL_SECONDS
from authgate.core.credentials.verifier import CredentialVerifier
from authgate.core.sessions.models import (
    HeartbeatResult,
    LoginResult,
    LogoutResult,
    Reason,
    SessionRecord,
    SessionState,
    ValidateResult,
)


def make_token_factory(prefix: str = "sess_", nbytes: int = 8) -> Callable[[], str]:
    if int(nbytes) < 8:
        raise ValueError("session tokens need at least 8 random bytes")

    def _make() -> str:
        return f"{prefix}{secrets.token_hex(int(nbytes))}"

    return _make


def _same_token(stored: str, supplied: str) -> bool:
    return secrets.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


class SessionRegistry:
    """
    Single-active-session registry: account -> at most one SessionRecord.

    - login replaces any live record for the account (the old token dies at once)
    - heartbeat is the only operation that moves last_activity
    - expiry is lazy: any operation touching an account prunes it if idle > ttl
    - one lock serializes every read-modify-write of the map; credential checks
      run before the lock is taken

    With require_token=True, heartbeat and logout must present the session token.
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        *,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        require_token: bool = True,
        token_factory: Optional[Callable[[], str]] = None,
        clock: Callable[[], float] = time.time,
    ):
        if float(ttl_seconds) <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self.verifier = verifier
        self.ttl_seconds = float(ttl_seconds)
        self.require_token = bool(require_token)
        self._token_factory = token_factory or make_token_factory()
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, SessionRecord] = {}

    # ---- operations ----
    def login(self, account: str, secret: str, client_ip: str = "", now: Optional[float] = None) -> LoginResult:
        if not account or not secret:
            return LoginResult(ok=False, reason=Reason.MISSING_FIELDS)
        # VerifierUnavailableError propagates; no state is touched either way.
        if not self.verifier.verify(account, secret):
            return LoginResult(ok=False, reason=Reason.AUTH_FAILED)

        with self._lock:
            t = self._now(now)
            cur = self._live_locked(account, t)
            if cur is not None:
                del self._sessions[account]
            token = self._new_token(avoid=cur.token if cur is not None else None)
            self._sessions[account] = SessionRecord(account=account, token=token, source_ip=client_ip or "", last_activity=t)
        return LoginResult(ok=True, token=token, ttl_seconds=self.ttl_seconds, replaced_previous=cur is not None)

    def validate(self, account: str, token: Optional[str] = None, now: Optional[float] = None) -> ValidateResult:
        if not account:
            return ValidateResult(ok=False, reason=Reason.MISSING_FIELDS)
        with self._lock:
            t = self._now(now)
            cur = self._live_locked(account, t)
            if cur is None:
                return ValidateResult(ok=False, reason=Reason.EXPIRED)
            same = _same_token(cur.token, token) if token else None
            remaining = self.ttl_seconds - cur.idle_seconds(t)
        return ValidateResult(ok=True, live=True, same_token=same, ttl_remaining_seconds=remaining)

    def heartbeat(self, account: str, token: Optional[str] = None, now: Optional[float] = None) -> HeartbeatResult:
        if not account or (self.require_token and not token):
            return HeartbeatResult(ok=False, reason=Reason.MISSING_FIELDS)
        with self._lock:
            t = self._now(now)
            cur = self._live_locked(account, t)
            if cur is None:
                return HeartbeatResult(ok=False, reason=Reason.EXPIRED)
            if token and not _same_token(cur.token, token):
                return HeartbeatResult(ok=False, reason=Reason.WRONG_SESSION)
            self._sessions[account] = replace(cur, last_activity=t)
        return HeartbeatResult(ok=True, ttl_remaining_seconds=self.ttl_seconds)

    def logout(self, account: str, token: Optional[str] = None, now: Optional[float] = None) -> LogoutResult:
        if not account or (self.require_token and not token):
            return LogoutResult(ok=False, reason=Reason.MISSING_FIELDS)
        with self._lock:
            cur = self._live_locked(account, self._now(now))
            if cur is None:
                return LogoutResult(ok=False, reason=Reason.ALREADY_LOGGED_OUT)
            if token and not _same_token(cur.token, token):
                return LogoutResult(ok=False, reason=Reason.WRONG_SESSION)
            del self._sessions[account]
        return LogoutResult(ok=True)

    # ---- inspection / maintenance ----
    def state(self, account: str, now: Optional[float] = None) -> SessionState:
        """Read-only view; does not prune."""
        with self._lock:
            cur = self._sessions.get(account)
            if cur is None:
                return SessionState.ABSENT
            return SessionState.LIVE if cur.is_live(self._now(now), self.ttl_seconds) else SessionState.EXPIRED

    def peek(self, account: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._sessions.get(account)

    def sweep_expired(self, now: Optional[float] = None) -> int:
        """Full scan; meant for a background sweeper, never the request path."""
        with self._lock:
            t = self._now(now)
            dead = [a for a, r in self._sessions.items() if not r.is_live(t, self.ttl_seconds)]
            for a in dead:
                del self._sessions[a]
        return len(dead)

    def stats(self, now: Optional[float] = None) -> Dict[str, int]:
        with self._lock:
            t = self._now(now)
            live = sum(1 for r in self._sessions.values() if r.is_live(t, self.ttl_seconds))
            return {"records": len(self._sessions), "live": live}

    # ---- internals ----
    def _now(self, now: Optional[float]) -> float:
        return float(self._clock() if now is None else now)

    def _live_locked(self, account: str, now: float) -> Optional[SessionRecord]:
        cur = self._sessions.get(account)
        if cur is None:
            return None
        if not cur.is_live(now, self.ttl_seconds):
            del self._sessions[account]
            return None
        return cur

    def _new_token(self, *, avoid: Optional[str]) -> str:
        token = self._token_factory()
        while avoid is not None and token == avoid:
            token = self._token_factory()
        return token
