from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from typing import Optional

import uvicorn

from authgate.core.config.manager import ConfigManager
from authgate.core.config.models import AppConfig
from authgate.core.config.paths import ConfigFsPaths
from authgate.core.credentials import CredentialVerifier, JsonCredentialSource
from authgate.core.errors import AuthGateError
from authgate.core.events import EventLogger
from authgate.core.logger import setup_logging
from authgate.core.security_events import SecurityAuditLogger
from authgate.core.service import AuthService
from authgate.core.sessions import SessionRegistry, SessionSweeper, SweeperConfig, make_token_factory
from authgate.web.api import create_app


@dataclass
class Services:
    service: AuthService
    sweeper: SessionSweeper
    event_logger: EventLogger


def build_services(cfg: AppConfig, *, fs: ConfigFsPaths, logger) -> Services:
    log_dir = fs.resolve(cfg.app.log_dir)
    source = JsonCredentialSource(
        fs.resolve(cfg.credentials.path),
        reload_interval_seconds=cfg.credentials.reload_interval_seconds,
        logger=logger,
    )
    registry = SessionRegistry(
        CredentialVerifier(source),
        ttl_seconds=cfg.sessions.ttl_seconds,
        require_token=cfg.sessions.require_token,
        token_factory=make_token_factory(cfg.sessions.token_prefix, cfg.sessions.token_bytes),
    )
    service = AuthService(
        registry=registry,
        audit_logger=SecurityAuditLogger(path=os.path.join(log_dir, "security.log")),
        logger=logger,
        display_timezone=cfg.app.display_timezone,
    )
    sweeper = SessionSweeper(
        registry=registry,
        cfg=SweeperConfig(enabled=cfg.sessions.sweep.enabled, interval_seconds=cfg.sessions.sweep.interval_seconds),
        logger=logger,
    )
    return Services(service=service, sweeper=sweeper, event_logger=EventLogger(os.path.join(log_dir, "events.jsonl")))


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="authgate: single-active-session login server")
    ap.add_argument("--root", default=os.environ.get("AUTHGATE_ROOT") or ".", help="Directory holding config/ and logs/.")
    ap.add_argument("--host", default=None, help="Override web.bind_host.")
    ap.add_argument("--port", type=int, default=None, help="Override web.port (PORT env also works).")
    args = ap.parse_args(argv)

    fs = ConfigFsPaths(args.root)
    bootstrap_logger = setup_logging(os.path.join(args.root, "logs"))
    try:
        cfg = ConfigManager(fs=fs, logger=bootstrap_logger).load_all()
    except AuthGateError as e:
        bootstrap_logger.error(f"Refusing to start: {e.user_message}")
        return 2
    logger = setup_logging(fs.resolve(cfg.app.log_dir), level=cfg.app.log_level)

    svc = build_services(cfg, fs=fs, logger=logger)
    # Surface a broken credential table at startup; requests keep reporting it until fixed.
    try:
        svc.service.registry.verifier.source.table()
    except AuthGateError as e:
        logger.warning(f"Credential table not loaded yet: {e.context.get('reason')}")

    host = args.host or cfg.web.bind_host
    port = int(args.port or cfg.web.port)
    app = create_app(svc.service, web_cfg=cfg.web, event_logger=svc.event_logger, logger=logger)

    svc.sweeper.start()
    logger.info(f"authgate listening on {host}:{port} (ttl={cfg.sessions.ttl_seconds:g}s, single session per account)")
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info"))
    try:
        server.run()
    finally:
        svc.sweeper.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
