from __future__ import annotations

import os
import threading
import time
from typing import Any, Callable, Dict, Mapping, NoReturn, Optional

from authgate.core.config.io import atomic_write_json, read_json_file
from authgate.core.credentials.hashing import hash_secret, is_hashed_entry
from authgate.core.errors import VerifierUnavailableError


CredentialTable = Dict[str, Any]


def _normalize_table(raw: Mapping[str, Any], logger=None) -> CredentialTable:
    out: CredentialTable = {}
    for account, value in raw.items():
        if not isinstance(account, str) or not account:
            continue
        if isinstance(value, str) or is_hashed_entry(value):
            out[account] = value
            continue
        if logger:
            logger.warning(f"Skipping credential entry with unsupported value type for {account!r}.")
    return out


class StaticCredentialSource:
    """In-memory table, mostly for tests and embedding."""

    def __init__(self, table: Mapping[str, Any]):
        self._table = _normalize_table(table)

    def table(self) -> CredentialTable:
        return self._table


class JsonCredentialSource:
    """
    Flat account -> secret table loaded from a JSON object file.

    The parsed table is cached. The file's mtime is re-checked at most every
    `reload_interval_seconds`; 0 means load once and never look again.
    Missing or unparsable files raise VerifierUnavailableError and drop the cache.
    """

    def __init__(self, path: str, *, reload_interval_seconds: float = 5.0, logger=None, clock: Callable[[], float] = time.time):
        self.path = path
        self.reload_interval_seconds = float(reload_interval_seconds)
        self.logger = logger
        self._clock = clock
        self._lock = threading.Lock()
        self._table: Optional[CredentialTable] = None
        self._mtime: Optional[float] = None
        self._checked_at = 0.0

    def table(self) -> CredentialTable:
        with self._lock:
            if self._table is None:
                return self._load_locked()
            if self.reload_interval_seconds <= 0:
                return self._table
            now = self._clock()
            if (now - self._checked_at) < self.reload_interval_seconds:
                return self._table
            self._checked_at = now
            try:
                mtime = os.path.getmtime(self.path)
            except OSError:
                mtime = None
            if mtime is None or mtime != self._mtime:
                return self._load_locked()
            return self._table

    def reload(self) -> CredentialTable:
        with self._lock:
            return self._load_locked()

    def _load_locked(self) -> CredentialTable:
        # mtime before content: a write landing in between is seen as a change next time
        try:
            mtime = os.path.getmtime(self.path)
        except FileNotFoundError:
            self._unavailable_locked("missing")
        except OSError as e:
            self._unavailable_locked(f"unreadable:{e}")
        rr = read_json_file(self.path)
        if not rr.ok:
            self._unavailable_locked(rr.error or "unreadable")
        self._table = _normalize_table(rr.data, logger=self.logger)
        self._mtime = mtime
        self._checked_at = self._clock()
        if self.logger:
            self.logger.info(f"Credential table loaded: {len(self._table)} accounts")
        return self._table

    def _unavailable_locked(self, reason: str) -> NoReturn:
        self._table = None
        self._mtime = None
        if self.logger:
            self.logger.error(f"Credential table unavailable: {self.path} ({reason})")
        raise VerifierUnavailableError(path=self.path, reason=reason)


def set_credential(path: str, account: str, secret: str, *, hashed: bool = False, keep_backups: int = 10) -> None:
    """Add or replace one account in the JSON table (atomic write, prewrite backup)."""
    account = str(account or "").strip()
    secret = str(secret or "").strip()
    if not account or not secret:
        raise ValueError("account and secret are required")
    rr = read_json_file(path)
    if not rr.ok and rr.error != "missing":
        raise VerifierUnavailableError(path=path, reason=rr.error)
    data = dict(rr.data)
    data[account] = hash_secret(secret) if hashed else secret
    backups_dir = os.path.join(os.path.dirname(os.path.abspath(path)), "backups")
    atomic_write_json(path, data, backups_dir, keep=keep_backups)


def remove_credential(path: str, account: str, *, keep_backups: int = 10) -> bool:
    rr = read_json_file(path)
    if not rr.ok:
        raise VerifierUnavailableError(path=path, reason=rr.error)
    data = dict(rr.data)
    if account not in data:
        return False
    del data[account]
    backups_dir = os.path.join(os.path.dirname(os.path.abspath(path)), "backups")
    atomic_write_json(path, data, backups_dir, keep=keep_backups)
    return True
