from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from authgate.core.events import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class AuthGateError(Exception):
    """
    Base for failures that are raised rather than returned as a result.

    `http_status` is what the web layer answers with; `context` is for logs
    only and is redacted by `to_dict()`.
    """

    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    http_status: int = 500
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }

    def public(self) -> Dict[str, Any]:
        return {"ok": False, "reason": self.code, "detail": self.user_message}


class ConfigError(AuthGateError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class VerifierUnavailableError(AuthGateError):
    """The credential table could not be loaded. Not the same as bad credentials."""

    def __init__(self, user_message: str = "Credential store unavailable.", **ctx: Any):
        super().__init__("verifier_unavailable", user_message, severity=Severity.CRITICAL, recoverable=True, http_status=503, context=ctx)


class ValidationError(AuthGateError):
    def __init__(self, user_message: str = "Invalid request.", *, http_status: int = 400, **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, http_status=http_status, context=ctx)
