"""Public exports for Pydantic schemas."""

from __future__ import annotations

from .telegram_auth import (
    CreateSessionRequest,
    ErrorResponse,
    SessionResponse,
    VerifyInitDataRequest,
    VerifyInitDataResponse,
)

__all__ = [
    "CreateSessionRequest",
    "ErrorResponse",
    "SessionResponse",
    "VerifyInitDataRequest",
    "VerifyInitDataResponse",
]
