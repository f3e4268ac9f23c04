from __future__ import annotations

import json
import os

import pytest

from authgate.core.config.manager import ConfigManager
from authgate.core.config.paths import ConfigFsPaths
from authgate.core.credentials import CredentialVerifier, StaticCredentialSource
from authgate.core.security_events import SecurityAuditLogger
from authgate.core.service import AuthService
from authgate.core.sessions import SessionRegistry

from .helpers.fakes import DummyLogger, FakeClock, SequenceTokens


TTL = 7200.0
USERS = {"a@x.com": "123", "b@x.com": "secret-b"}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def verifier():
    return CredentialVerifier(StaticCredentialSource(USERS))


@pytest.fixture
def registry(verifier, clock):
    return SessionRegistry(verifier, ttl_seconds=TTL, token_factory=SequenceTokens(), clock=clock)


@pytest.fixture
def audit_path(tmp_path):
    return str(tmp_path / "logs" / "security.log")


@pytest.fixture
def service(registry, audit_path):
    return AuthService(registry=registry, audit_logger=SecurityAuditLogger(path=audit_path), logger=DummyLogger(), display_timezone="UTC")


@pytest.fixture
def users_file(tmp_path):
    path = tmp_path / "users.json"
    path.write_text(json.dumps(USERS), encoding="utf-8")
    return str(path)


@pytest.fixture
def tmp_config_root(tmp_path):
    """
    Provides an isolated root with config/ under tmp_path.
    """
    fs = ConfigFsPaths(root=str(tmp_path))
    os.makedirs(fs.config_dir, exist_ok=True)
    return fs


@pytest.fixture
def config_manager(tmp_config_root):
    cm = ConfigManager(fs=tmp_config_root, logger=DummyLogger(), read_only=False, environ={})
    cm.load_all()
    return cm
