from __future__ import annotations

from authgate.core.errors import ConfigError, Severity, ValidationError, VerifierUnavailableError
from authgate.core.events import EventLogger, redact
from authgate.core.security_events import SecurityAuditLogger
from authgate.core.timefmt import display_time

from .helpers.log_assertions import assert_no_secret_leak, read_jsonl


def test_error_codes_and_severity():
    assert ConfigError().code == "config_error"
    assert ConfigError().severity == Severity.CRITICAL
    assert VerifierUnavailableError().code == "verifier_unavailable"
    assert VerifierUnavailableError().recoverable is True
    assert ValidationError().severity == Severity.WARN
    assert VerifierUnavailableError().http_status == 503
    assert ValidationError(http_status=413).http_status == 413
    assert ConfigError().public() == {"ok": False, "reason": "config_error", "detail": "Configuration error."}


def test_to_dict_redacts_context():
    err = ValidationError("bad", code="123456", nested={"session_id": "sess_abc", "ok": 1})
    d = err.to_dict()
    assert d["code"] == "validation_error"
    assert d["context"]["code"] == "***REDACTED***"
    assert d["context"]["nested"] == {"session_id": "***REDACTED***", "ok": 1}


def test_redact_handles_lists_and_case():
    out = redact({"items": [{"Password": "p"}, {"email": "a@x.com"}], "Token": "t"})
    assert out == {"items": [{"Password": "***REDACTED***"}, {"email": "a@x.com"}], "Token": "***REDACTED***"}


def test_event_logger_writes_redacted_jsonl(tmp_path):
    path = str(tmp_path / "logs" / "events.jsonl")
    ev = EventLogger(path)
    ev.log("t1", "web.request", {"path": "/auth", "code": "4321"})
    ev.log("t2", "web.response", {"status": 200})
    rows = read_jsonl(path)
    assert [r["trace_id"] for r in rows] == ["t1", "t2"]
    assert rows[0]["event"] == "web.request"
    assert_no_secret_leak(rows, "4321")


def test_security_audit_tail(tmp_path):
    audit = SecurityAuditLogger(path=str(tmp_path / "security.log"))
    assert audit.tail() == []
    for i in range(5):
        audit.log(trace_id=f"t{i}", severity="INFO", event="auth.login", ip="1.1.1.1", endpoint="/auth", outcome="LIVE", details={"account": "a@x.com", "token": "sess_x"})
    last = audit.tail(2)
    assert [r["trace_id"] for r in last] == ["t3", "t4"]
    assert last[0]["details"]["token"] == "***REDACTED***"


def test_display_time_falls_back_to_utc():
    assert display_time(0, tz_name="UTC") == "1970-01-01 00:00:00"
    assert display_time(0, tz_name="Not/AZone") == "1970-01-01 00:00:00"
