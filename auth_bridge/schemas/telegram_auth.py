"""
Pydantic schemas for the Telegram authentication endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from auth_bridge.models.directory import Account, Session


class VerifyInitDataRequest(BaseModel):
    """Request schema for POST /verify-telegram-init-data."""

    init_data: StrictStr | None = Field(
        default=None,
        alias="initData",
        description="initData string from Telegram WebApp.initData",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "initData": (
                    "query_id=xxx&user=%7B%22id%22%3A123...%7D"
                    "&auth_date=1234567890&hash=abc123..."
                )
            }
        },
    )


class VerifyInitDataResponse(BaseModel):
    """Response schema for POST /verify-telegram-init-data."""

    ok: bool


class CreateSessionRequest(BaseModel):
    """Request schema for POST /create-telegram-session."""

    init_data: StrictStr | None = Field(default=None, alias="initData")
    telegram_id: StrictInt | None = Field(
        default=None,
        description="Telegram user id the client claims; must match initData.user.id",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "initData": "query_id=xxx&user=%7B%22id%22%3A123...%7D&auth_date=1&hash=abc",
                "telegram_id": 123,
            }
        },
    )

    @field_validator("telegram_id", mode="before")
    @classmethod
    def _integral_float_to_int(cls, value: object) -> object:
        # JSON clients may send 123456.0 for a numeric id.
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value


class SessionResponse(BaseModel):
    """Response schema for POST /create-telegram-session."""

    user: Account
    session: Session


class ErrorResponse(BaseModel):
    """Every failure is reported as a stable string code."""

    error: str = Field(..., examples=["invalid_hash"])
