from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


SESSION_TTL_SECONDS = 2 * 60 * 60


class AppFileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=1, ge=1)
    log_dir: str = "logs"
    log_level: str = "INFO"
    display_timezone: str = "Asia/Seoul"
    max_backups_per_file: int = Field(default=10, ge=1, le=100)

    @field_validator("log_level")
    @classmethod
    def _level(cls, v: str) -> str:
        v = str(v).upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be a logging level name")
        return v


class SweepConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = False
    interval_seconds: float = Field(default=300.0, gt=0)


class SessionsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    ttl_seconds: float = Field(default=SESSION_TTL_SECONDS, gt=0)
    token_prefix: str = "sess_"
    # 8 random bytes = 64 bits, the minimum accepted
    token_bytes: int = Field(default=8, ge=8, le=64)
    require_token: bool = True
    sweep: SweepConfig = Field(default_factory=SweepConfig)


class CredentialsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    path: str = "users.json"
    reload_interval_seconds: float = Field(default=5.0, ge=0)


class WebConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    bind_host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    allowed_origins: List[str] = Field(default_factory=list)
    trust_forwarded_for: bool = True
    max_request_bytes: int = Field(default=16384, ge=256)
    enable_status_page: bool = True

    @field_validator("allowed_origins")
    @classmethod
    def _no_wildcard(cls, v: List[str]) -> List[str]:
        if any(o == "*" for o in v):
            raise ValueError("Wildcard CORS origins are not allowed.")
        return v


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    app: AppFileConfig
    sessions: SessionsConfig
    credentials: CredentialsConfig
    web: WebConfig
