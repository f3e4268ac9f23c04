from __future__ import annotations

import secrets
from typing import Any, Protocol

from authgate.core.credentials.hashing import is_hashed_entry, verify_hashed


class CredentialSource(Protocol):
    def table(self) -> dict[str, Any]: ...


class CredentialVerifier:
    """
    Answers whether (account, secret) matches a known account.

    Plain string entries are compared literally (no normalization) in
    constant time. Hashed entries are checked with scrypt.
    VerifierUnavailableError from the source propagates unchanged so callers
    can tell "cannot check" apart from "wrong credentials".
    """

    def __init__(self, source: CredentialSource):
        self.source = source

    def verify(self, account: str, secret: str) -> bool:
        if not account or not secret:
            return False
        stored = self.source.table().get(account)
        if stored is None:
            return False
        if is_hashed_entry(stored):
            return verify_hashed(secret, stored)
        return secrets.compare_digest(str(stored).encode("utf-8"), secret.encode("utf-8"))
