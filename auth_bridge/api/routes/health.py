"""Health check endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from auth_bridge.api.dependencies import get_account_directory, get_app_settings
from auth_bridge.core.config import Settings
from auth_bridge.core.version import APP_VERSION
from auth_bridge.directory.base import AccountDirectory

router = APIRouter()


class HealthResponse(BaseModel):
    """Schema returned by the /health endpoint."""

    status: Literal["healthy", "degraded"]
    timestamp: datetime
    checks: dict[str, str]
    version: str = Field(default=APP_VERSION)


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    tags=["health"],
)
async def health(
    settings: Settings = Depends(get_app_settings),  # noqa: B008
    directory: AccountDirectory | None = Depends(get_account_directory),  # noqa: B008
) -> HealthResponse:
    """Report whether the secrets and the directory client are configured.

    No remote call is made; a degraded status means session requests will be
    rejected with a configuration error.
    """

    checks = {
        "telegram_bot_token": "configured" if settings.session_bot_token else "missing",
        "account_directory": "configured" if directory is not None else "missing",
    }
    healthy = all(value == "configured" for value in checks.values())
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(tz=timezone.utc),
        checks=checks,
        version=APP_VERSION,
    )
