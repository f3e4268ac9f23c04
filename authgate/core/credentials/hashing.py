from __future__ import annotations

import secrets
from typing import Any, Dict, Optional, Tuple

from cryptography.hazmat.primitives.kdf.scrypt import Scrypt


def _scrypt_hash(secret: str, salt: bytes, n: int = 2**14, r: int = 8, p: int = 1) -> bytes:
    kdf = Scrypt(salt=salt, length=32, n=n, r=r, p=p)
    return kdf.derive(secret.encode("utf-8"))


def hash_secret(secret: str) -> Dict[str, Any]:
    """Build a hashed credential entry for users.json."""
    if not secret:
        raise ValueError("secret must not be empty")
    salt = secrets.token_bytes(16)
    digest = _scrypt_hash(secret, salt)
    return {"salt": salt.hex(), "digest": digest.hex(), "kdf": {"name": "scrypt", "n": 2**14, "r": 8, "p": 1}}


def _kdf_params(payload: Dict[str, Any]) -> Optional[Tuple[int, int, int]]:
    """(n, r, p) when the entry names a usable scrypt setting, else None."""
    kdf = payload.get("kdf") or {}
    if not isinstance(kdf, dict) or str(kdf.get("name", "scrypt")) != "scrypt":
        return None
    try:
        n, r, p = int(kdf.get("n", 2**14)), int(kdf.get("r", 8)), int(kdf.get("p", 1))
    except (TypeError, ValueError):
        return None
    # scrypt needs n to be a power of two above 1
    if n < 2 or n & (n - 1) or r < 1 or p < 1:
        return None
    return n, r, p


def is_hashed_entry(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("salt"), str)
        and isinstance(value.get("digest"), str)
        and _kdf_params(value) is not None
    )


def verify_hashed(secret: str, payload: Dict[str, Any]) -> bool:
    try:
        salt = bytes.fromhex(payload["salt"])
        expected = bytes.fromhex(payload["digest"])
    except (KeyError, TypeError, ValueError):
        return False
    params = _kdf_params(payload)
    if params is None:
        return False
    n, r, p = params
    try:
        digest = _scrypt_hash(secret, salt, n=n, r=r, p=p)
    except (TypeError, ValueError, MemoryError):
        return False
    return secrets.compare_digest(digest, expected)
