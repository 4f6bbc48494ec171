"""Authenticity-only initData check behind the standalone verification endpoint."""

from __future__ import annotations

import logging

from auth_bridge.core.errors import BridgeError, ConfigurationError, InitDataError
from auth_bridge.telegram.init_data import validate_init_data

logger = logging.getLogger("auth_bridge.services.init_data_check")

INIT_DATA_REQUIRED = "initData is required"
BOT_TOKEN_NOT_CONFIGURED = "TELEGRAM_BOT_TOKEN not configured"


class InitDataCheckService:
    """Answer whether initData was signed for the configured bot.

    A positive answer says nothing about which Telegram user sent the
    request; callers that need that guarantee must use the session flow.
    """

    def __init__(self, *, bot_token: str | None, init_data_max_age_seconds: int = 0) -> None:
        self._bot_token = bot_token
        self._init_data_max_age_seconds = init_data_max_age_seconds

    def is_authentic(self, init_data: str | None) -> bool:
        if not init_data:
            raise BridgeError(INIT_DATA_REQUIRED)
        if not self._bot_token:
            raise ConfigurationError(BOT_TOKEN_NOT_CONFIGURED)

        try:
            validate_init_data(
                init_data,
                self._bot_token,
                expected_telegram_id=None,
                max_age_seconds=self._init_data_max_age_seconds,
            )
        except InitDataError as exc:
            logger.warning(
                "initData rejected",
                extra={"error_code": exc.code},
            )
            return False
        return True


__all__ = ["InitDataCheckService"]
