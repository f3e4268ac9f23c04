from __future__ import annotations

import time
import uuid
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from authgate.core.config.models import WebConfig
from authgate.core.errors import ValidationError
from authgate.core.events import EventLogger
from authgate.web.params import client_ip


class RequestTraceMiddleware:
    """
    Per request:
    1) trace_id on request.state
    2) Content-Length guard (the body itself is re-checked when parsed)
    3) request/response lines in the event log
    """

    def __init__(self, *, web_cfg: WebConfig, event_logger: Optional[EventLogger] = None, logger=None):
        self.web_cfg = web_cfg
        self.event_logger = event_logger
        self.logger = logger

    async def __call__(self, request: Request, call_next):  # noqa: ANN001
        trace_id = uuid.uuid4().hex
        request.state.trace_id = trace_id
        ip = client_ip(request, trust_forwarded_for=self.web_cfg.trust_forwarded_for)
        request.state.client_ip = ip
        path = request.url.path
        method = request.method
        t0 = time.time()
        self._event(trace_id, "web.request", {"path": path, "method": method, "client_host": ip})

        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > int(self.web_cfg.max_request_bytes):
            self._event(trace_id, "web.request_rejected", {"path": path, "reason": "too_large", "bytes": int(declared)})
            err = ValidationError("Request too large.", http_status=413, reason="too_large")
            return JSONResponse(status_code=err.http_status, content=err.public())

        try:
            resp = await call_next(request)
        except Exception as e:
            self._event(trace_id, "web.exception", {"path": path, "error": str(e)})
            if self.logger:
                self.logger.error(f"Unhandled web error on {path}: {e}")
            raise
        self._event(trace_id, "web.response", {"path": path, "status": resp.status_code, "ms": round((time.time() - t0) * 1000.0, 2)})
        return resp

    def _event(self, trace_id: str, event: str, details: dict) -> None:
        if self.event_logger is not None:
            self.event_logger.log(trace_id, event, details)
