"""
Telegram Mini App authentication endpoints.

Both handlers answer ``OPTIONS`` for browser preflights and report every
failure as HTTP 400 with ``{"error": "<code>"}``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import ValidationError

from auth_bridge.api.dependencies import (
    get_init_data_check_service,
    get_telegram_session_service,
)
from auth_bridge.core.errors import CORS_HEADERS, BridgeError, ErrorCode
from auth_bridge.schemas.telegram_auth import (
    CreateSessionRequest,
    ErrorResponse,
    SessionResponse,
    VerifyInitDataRequest,
    VerifyInitDataResponse,
)
from auth_bridge.services.init_data_check import INIT_DATA_REQUIRED, InitDataCheckService
from auth_bridge.services.telegram_session import TelegramSessionService

logger = logging.getLogger("auth_bridge.api.telegram_auth")

router = APIRouter(tags=["telegram-auth"])

VERIFY_PATH = "/verify-telegram-init-data"
CREATE_SESSION_PATH = "/create-telegram-session"

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
}


async def _read_json_object(request: Request) -> dict[str, Any]:
    """Return the JSON body when it is an object; anything else reads as empty."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@router.options(VERIFY_PATH, include_in_schema=False)
@router.options(CREATE_SESSION_PATH, include_in_schema=False)
async def preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.post(
    VERIFY_PATH,
    response_model=VerifyInitDataResponse,
    responses=ERROR_RESPONSES,
    summary="Check that initData was signed for the configured bot",
)
async def verify_telegram_init_data(
    request: Request,
    response: Response,
    service: InitDataCheckService = Depends(get_init_data_check_service),  # noqa: B008
) -> VerifyInitDataResponse:
    """
    Authenticity-only check.

    ``ok: true`` proves the payload came from Telegram for this bot; it does
    not prove the caller is any particular Telegram user.
    """
    try:
        payload = VerifyInitDataRequest.model_validate(await _read_json_object(request))
    except ValidationError as exc:
        raise BridgeError(INIT_DATA_REQUIRED) from exc

    ok = service.is_authentic(payload.init_data)
    response.headers.update(CORS_HEADERS)
    return VerifyInitDataResponse(ok=ok)


@router.post(
    CREATE_SESSION_PATH,
    response_model=SessionResponse,
    responses=ERROR_RESPONSES,
    summary="Exchange Telegram initData for an account session",
)
async def create_telegram_session(
    request: Request,
    response: Response,
    service: TelegramSessionService = Depends(get_telegram_session_service),  # noqa: B008
) -> SessionResponse:
    """
    Validate initData bound to ``telegram_id`` and return ``{user, session}``.

    **Errors** (HTTP 400, ``{"error": code}``): missing_params,
    bot_token_not_set, supabase_env_not_set, invalid_init_data,
    telegram_id_mismatch, invalid_hash, init_data_expired,
    telegram_user_not_found, email_not_found, generate_link_failed,
    verify_otp_failed.
    """
    try:
        payload = CreateSessionRequest.model_validate(await _read_json_object(request))
    except ValidationError as exc:
        raise BridgeError(ErrorCode.MISSING_PARAMS) from exc

    result = await service.issue_session(payload.init_data, payload.telegram_id)
    response.headers.update(CORS_HEADERS)
    return result


__all__ = ["router"]
