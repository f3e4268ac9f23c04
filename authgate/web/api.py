from __future__ import annotations

from typing import Dict, Optional, Type, TypeVar

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from authgate import __version__
from authgate.core.config.models import WebConfig
from authgate.core.errors import AuthGateError, ValidationError
from authgate.core.events import EventLogger
from authgate.core.service import AuthService
from authgate.core.sessions.models import Reason
from authgate.web.middleware import RequestTraceMiddleware
from authgate.web.models import (
    AuthResponse,
    BasicResponse,
    CheckResponse,
    LoginParams,
    SessionParams,
    TouchResponse,
)
from authgate.web.params import client_ip, read_params


STATUS_BY_REASON: Dict[Reason, int] = {
    Reason.MISSING_FIELDS: 400,
    Reason.AUTH_FAILED: 401,
    Reason.EXPIRED: 401,
    Reason.WRONG_SESSION: 409,
    Reason.ALREADY_LOGGED_OUT: 409,
    Reason.VERIFIER_UNAVAILABLE: 503,
}

DETAIL_BY_REASON: Dict[Reason, str] = {
    Reason.MISSING_FIELDS: "Required fields missing.",
    Reason.AUTH_FAILED: "Invalid email or code.",
    Reason.EXPIRED: "Session expired.",
    Reason.WRONG_SESSION: "Session was replaced by a newer login.",
    Reason.ALREADY_LOGGED_OUT: "Already logged out.",
    Reason.VERIFIER_UNAVAILABLE: "Credential store unavailable.",
}

P = TypeVar("P", bound=BaseModel)


def _ms(seconds: Optional[float]) -> Optional[int]:
    if seconds is None:
        return None
    return max(0, int(seconds * 1000))


def _respond(body: BasicResponse, reason: Optional[Reason]) -> JSONResponse:
    code = 200 if reason is None else STATUS_BY_REASON.get(reason, 400)
    return JSONResponse(status_code=code, content=body.model_dump())


def create_app(
    service: AuthService,
    *,
    web_cfg: Optional[WebConfig] = None,
    event_logger: Optional[EventLogger] = None,
    logger=None,
) -> FastAPI:
    web_cfg = web_cfg or WebConfig()
    app = FastAPI(title="authgate", version=__version__)

    if web_cfg.allowed_origins:
        if any(o == "*" for o in web_cfg.allowed_origins):
            raise ValueError("Wildcard CORS origins are not allowed.")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(web_cfg.allowed_origins),
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    app.middleware("http")(RequestTraceMiddleware(web_cfg=web_cfg, event_logger=event_logger, logger=logger))

    @app.exception_handler(AuthGateError)
    async def authgate_error_handler(request: Request, exc: AuthGateError):
        if logger is not None and exc.http_status >= 500:
            logger.error(f"{exc.code} on {request.url.path}")
        return JSONResponse(status_code=exc.http_status, content=exc.public())

    def _trace(request: Request) -> str:
        return getattr(getattr(request, "state", None), "trace_id", "web")

    def _ip(request: Request) -> str:
        ip = getattr(getattr(request, "state", None), "client_ip", None)
        return ip if ip is not None else client_ip(request, trust_forwarded_for=web_cfg.trust_forwarded_for)

    async def _params(request: Request, model: Type[P]) -> P:
        raw = await read_params(request, max_bytes=web_cfg.max_request_bytes)
        try:
            return model.model_validate(raw)
        except PydanticValidationError as e:
            raise ValidationError("Invalid request.", errors=len(e.errors())) from e

    if web_cfg.enable_status_page:
        @app.get("/", response_class=PlainTextResponse)
        async def root():
            return "authgate is running."

    @app.get("/health")
    async def health():
        return {"status": "ok", "sessions": service.registry.stats()}

    @app.api_route("/auth", methods=["GET", "POST"])
    async def auth(request: Request):
        p = await _params(request, LoginParams)
        res = service.login(p.email, p.code, client_ip=_ip(request), trace_id=_trace(request))
        if not res.ok:
            return _respond(AuthResponse(ok=False, reason=res.reason.value, detail=DETAIL_BY_REASON[res.reason]), res.reason)
        return _respond(AuthResponse(ok=True, detail="Logged in.", session_id=res.token, ttl_ms=_ms(res.ttl_seconds)), None)

    @app.get("/check")
    async def check(request: Request):
        p = await _params(request, SessionParams)
        res = service.check(p.email, p.session_id)
        if not res.ok:
            body = CheckResponse(ok=False, reason=res.reason.value, detail=DETAIL_BY_REASON[res.reason], expired=res.reason == Reason.EXPIRED)
            return _respond(body, res.reason)
        body = CheckResponse(ok=True, detail="Session live.", live=True, same_session=res.same_token, expires_in_ms=_ms(res.ttl_remaining_seconds))
        return _respond(body, None)

    @app.post("/touch")
    async def touch(request: Request):
        p = await _params(request, SessionParams)
        res = service.touch(p.email, p.session_id, client_ip=_ip(request), trace_id=_trace(request))
        if not res.ok:
            body = TouchResponse(ok=False, reason=res.reason.value, detail=DETAIL_BY_REASON[res.reason], expired=res.reason == Reason.EXPIRED)
            return _respond(body, res.reason)
        return _respond(TouchResponse(ok=True, detail="Session extended.", expires_in_ms=_ms(res.ttl_remaining_seconds)), None)

    @app.api_route("/logout", methods=["GET", "POST"])
    async def logout(request: Request):
        p = await _params(request, SessionParams)
        res = service.logout(p.email, p.session_id, client_ip=_ip(request), trace_id=_trace(request))
        if not res.ok:
            return _respond(BasicResponse(ok=False, reason=res.reason.value, detail=DETAIL_BY_REASON[res.reason]), res.reason)
        return _respond(BasicResponse(ok=True, detail="Logged out."), None)

    return app
