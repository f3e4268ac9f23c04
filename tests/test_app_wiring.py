from __future__ import annotations

import json
import os

from fastapi.testclient import TestClient

from app import build_services
from authgate.web.api import create_app

from .helpers.fakes import DummyLogger
from .helpers.log_assertions import events_named, read_jsonl


def test_build_services_from_config(config_manager, tmp_config_root):
    with open(os.path.join(tmp_config_root.root, "users.json"), "w", encoding="utf-8") as f:
        json.dump({"a@x.com": "123"}, f)
    sess = config_manager.get().sessions.model_dump()
    sess["ttl_seconds"] = 60
    sess["token_prefix"] = "tok_"
    cfg = config_manager.save_file("sessions.json", sess)

    svc = build_services(cfg, fs=tmp_config_root, logger=DummyLogger())
    assert svc.service.ttl_seconds == 60
    assert svc.sweeper.cfg.enabled is False

    c = TestClient(create_app(svc.service, web_cfg=cfg.web, event_logger=svc.event_logger))
    r = c.post("/auth", json={"email": "a@x.com", "code": "123"})
    assert r.status_code == 200
    assert r.json()["session_id"].startswith("tok_")
    assert r.json()["ttl_ms"] == 60_000

    log_dir = os.path.join(tmp_config_root.root, "logs")
    assert events_named(read_jsonl(os.path.join(log_dir, "security.log")), "auth.login")
    assert events_named(read_jsonl(os.path.join(log_dir, "events.jsonl")), "web.response")


def test_missing_users_file_reports_unavailable(config_manager, tmp_config_root):
    svc = build_services(config_manager.get(), fs=tmp_config_root, logger=DummyLogger())
    c = TestClient(create_app(svc.service, web_cfg=config_manager.get().web))
    assert c.post("/auth", json={"email": "a@x.com", "code": "123"}).status_code == 503
