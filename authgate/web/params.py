from __future__ import annotations

import json
from typing import Any, Dict, Optional
from urllib.parse import parse_qs

from fastapi import Request

from authgate.core.errors import ValidationError


def client_ip(request: Request, *, trust_forwarded_for: bool = True) -> str:
    """First X-Forwarded-For hop when trusted, else the socket peer. Audit only."""
    if trust_forwarded_for:
        xff = request.headers.get("x-forwarded-for", "")
        first = (xff.split(",")[0] if xff else "").strip()
        if first:
            return first
    return getattr(getattr(request, "client", None), "host", None) or ""


def json_depth(obj: Any, max_depth: int = 4) -> int:
    """Nesting depth of a parsed JSON value; raises ValidationError past max_depth."""
    stack = [(obj, 1)]
    seen_max = 1
    while stack:
        cur, d = stack.pop()
        if d > max_depth:
            raise ValidationError("Request rejected.", reason="too_deep")
        seen_max = max(seen_max, d)
        if isinstance(cur, dict):
            stack.extend((v, d + 1) for v in cur.values())
        elif isinstance(cur, list):
            stack.extend((v, d + 1) for v in cur)
    return seen_max


def enforce_body_limits(body: bytes, *, max_bytes: int) -> None:
    if body is None:
        return
    if len(body) > int(max_bytes):
        raise ValidationError("Request too large.", http_status=413, reason="too_large", size=len(body))
    if b"\x00" in body:
        raise ValidationError("Request rejected.", reason="binary_payload")


def _flatten(obj: Dict[str, Any]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for k, v in obj.items():
        if isinstance(v, list):
            v = v[0] if v else ""
        if v is None or isinstance(v, (dict, list)):
            continue
        out[str(k)] = str(v)
    return out


async def read_params(request: Request, *, max_bytes: int) -> Dict[str, str]:
    """
    GET/HEAD/DELETE read the query string; other methods read the body
    (JSON object or urlencoded form).
    """
    if request.method in {"GET", "HEAD", "DELETE"}:
        return _flatten(dict(request.query_params))
    body = await request.body()
    enforce_body_limits(body, max_bytes=max_bytes)
    if not body:
        return {}
    ct = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in ct:
        return _flatten(parse_qs(body.decode("utf-8", errors="replace"), keep_blank_values=True))
    obj: Optional[Any]
    try:
        obj = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("Invalid JSON body.", reason="bad_json") from e
    if not isinstance(obj, dict):
        raise ValidationError("JSON body must be an object.", reason="not_object")
    json_depth(obj)
    return _flatten(obj)
