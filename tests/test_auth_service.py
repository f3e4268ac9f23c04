from __future__ import annotations

import pytest

from authgate.core.credentials import CredentialVerifier
from authgate.core.errors import VerifierUnavailableError
from authgate.core.security_events import SecurityAuditLogger
from authgate.core.service import AuthService
from authgate.core.sessions import Reason, SessionRegistry

from .helpers.fakes import BrokenSource, RecordingLogger
from .helpers.log_assertions import assert_no_secret_leak, events_named, read_jsonl


def test_inputs_are_trimmed(service):
    res = service.login("  a@x.com ", " 123 ", client_ip="1.2.3.4")
    assert res.ok is True
    assert service.check(" a@x.com", f" {res.token} ").same_token is True
    assert service.touch("a@x.com ", res.token).ok is True
    assert service.logout(" a@x.com", res.token).ok is True


@pytest.mark.parametrize("email,code", [("", "123"), ("a@x.com", ""), ("   ", "123"), (None, None)])
def test_missing_fields(service, email, code):
    res = service.login(email, code)
    assert res.ok is False
    assert res.reason == Reason.MISSING_FIELDS


def test_check_touch_logout_missing_email(service):
    assert service.check("").reason == Reason.MISSING_FIELDS
    assert service.touch(" ", "sess_0001").reason == Reason.MISSING_FIELDS
    assert service.logout(None, "sess_0001").reason == Reason.MISSING_FIELDS


def test_blank_session_id_counts_as_missing(service):
    service.login("a@x.com", "123")
    assert service.touch("a@x.com", "   ").reason == Reason.MISSING_FIELDS
    assert service.check("a@x.com", "  ").same_token is None


def test_failed_login_is_audited_without_secret(service, audit_path):
    res = service.login("a@x.com", "wrong-code", client_ip="9.9.9.9")
    assert res.reason == Reason.AUTH_FAILED
    events = read_jsonl(audit_path)
    failed = events_named(events, "auth.login_failed")
    assert len(failed) == 1
    assert failed[0]["ip"] == "9.9.9.9"
    assert failed[0]["details"]["account"] == "a@x.com"
    assert failed[0]["severity"] == "WARN"
    assert_no_secret_leak(events, "wrong-code")


def test_unknown_account_and_wrong_code_look_identical(service):
    a = service.login("nobody@x.com", "123")
    b = service.login("a@x.com", "nope")
    assert a.model_dump() == b.model_dump()


def test_duplicate_login_is_logged_not_an_error(registry, audit_path):
    logger = RecordingLogger()
    svc = AuthService(registry=registry, audit_logger=SecurityAuditLogger(path=audit_path), logger=logger, display_timezone="UTC")
    svc.login("a@x.com", "123", client_ip="1.1.1.1")
    res = svc.login("a@x.com", "123", client_ip="2.2.2.2")
    assert res.ok is True
    assert any("duplicate login" in m and "2.2.2.2" in m for m in logger.messages("info"))
    dup = events_named(read_jsonl(audit_path), "auth.duplicate_login")
    assert len(dup) == 1
    assert dup[0]["outcome"] == "REVOKED"


def test_wrong_session_and_logout_are_audited(service, audit_path):
    t1 = service.login("a@x.com", "123").token
    t2 = service.login("a@x.com", "123").token
    assert service.touch("a@x.com", t1, client_ip="5.5.5.5").reason == Reason.WRONG_SESSION
    assert service.logout("a@x.com", t2).ok is True
    events = read_jsonl(audit_path)
    assert len(events_named(events, "auth.wrong_session")) == 1
    logout = events_named(events, "auth.logout")
    assert logout and logout[0]["outcome"] == "LOGGED_OUT"
    assert_no_secret_leak(events, t1)
    assert_no_secret_leak(events, t2)


def test_verifier_unavailable_is_raised_and_audited(clock, audit_path):
    logger = RecordingLogger()
    reg = SessionRegistry(CredentialVerifier(BrokenSource()), ttl_seconds=60, clock=clock)
    svc = AuthService(registry=reg, audit_logger=SecurityAuditLogger(path=audit_path), logger=logger)
    with pytest.raises(VerifierUnavailableError):
        svc.login("a@x.com", "123", client_ip="1.2.3.4")
    assert logger.messages("error")
    assert events_named(read_jsonl(audit_path), "auth.verifier_unavailable")


def test_service_without_audit_or_logger(registry):
    svc = AuthService(registry=registry)
    tok = svc.login("a@x.com", "123").token
    assert svc.ttl_seconds == registry.ttl_seconds
    assert svc.logout("a@x.com", tok).ok is True
