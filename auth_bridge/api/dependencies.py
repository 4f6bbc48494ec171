"""Shared FastAPI dependency builders."""

from __future__ import annotations

from fastapi import Depends, Request

from auth_bridge.core.config import Settings
from auth_bridge.directory.base import AccountDirectory
from auth_bridge.services.init_data_check import InitDataCheckService
from auth_bridge.services.telegram_session import TelegramSessionService


def get_app_settings(request: Request) -> Settings:
    """Return the Settings object the application was built with."""
    settings: Settings = request.app.state.settings
    return settings


def get_account_directory(request: Request) -> AccountDirectory | None:
    """Return the application's directory client, or None when it is not configured."""
    directory: AccountDirectory | None = request.app.state.account_directory
    return directory


def get_telegram_session_service(
    settings: Settings = Depends(get_app_settings),  # noqa: B008
    directory: AccountDirectory | None = Depends(get_account_directory),  # noqa: B008
) -> TelegramSessionService:
    """Factory returning a TelegramSessionService bound to the current settings."""
    return TelegramSessionService(
        directory=directory,
        bot_token=settings.session_bot_token,
        init_data_max_age_seconds=settings.init_data_max_age_seconds,
    )


def get_init_data_check_service(
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> InitDataCheckService:
    """Factory returning an InitDataCheckService bound to the current settings."""
    return InitDataCheckService(
        bot_token=settings.verification_bot_token,
        init_data_max_age_seconds=settings.init_data_max_age_seconds,
    )


__all__ = [
    "get_account_directory",
    "get_app_settings",
    "get_init_data_check_service",
    "get_telegram_session_service",
]
