from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class LoginParams(BaseModel):
    email: str = Field(default="", max_length=320)
    code: str = Field(default="", max_length=512)


class SessionParams(BaseModel):
    email: str = Field(default="", max_length=320)
    session_id: Optional[str] = Field(default=None, max_length=256)


class BasicResponse(BaseModel):
    ok: bool
    reason: Optional[str] = None
    detail: str = ""


class AuthResponse(BasicResponse):
    session_id: Optional[str] = None
    ttl_ms: Optional[int] = None


class CheckResponse(BasicResponse):
    live: bool = False
    expired: bool = False
    same_session: Optional[bool] = None
    expires_in_ms: Optional[int] = None


class TouchResponse(BasicResponse):
    expired: bool = False
    expires_in_ms: Optional[int] = None
