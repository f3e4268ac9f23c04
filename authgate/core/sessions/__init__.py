from authgate.core.sessions.models import (
    HeartbeatResult,
    LoginResult,
    LogoutResult,
    Reason,
    SessionRecord,
    SessionState,
    ValidateResult,
)
from authgate.core.sessions.registry import SessionRegistry, make_token_factory
from authgate.core.sessions.sweeper import SessionSweeper, SweeperConfig

__all__ = [
    "HeartbeatResult",
    "LoginResult",
    "LogoutResult",
    "Reason",
    "SessionRecord",
    "SessionRegistry",
    "SessionState",
    "SessionSweeper",
    "SweeperConfig",
    "ValidateResult",
    "make_token_factory",
]
