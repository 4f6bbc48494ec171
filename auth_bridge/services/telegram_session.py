"""Session issuing service: verified Telegram identity to directory session."""

from __future__ import annotations

import logging

from auth_bridge.core.errors import (
    AccountDirectoryError,
    BridgeError,
    ConfigurationError,
    ErrorCode,
)
from auth_bridge.directory.base import AccountDirectory
from auth_bridge.schemas.telegram_auth import SessionResponse
from auth_bridge.telegram.init_data import validate_init_data

logger = logging.getLogger("auth_bridge.services.telegram_session")


class TelegramSessionService:
    """Exchange Telegram initData for an account-directory session.

    The flow never touches a password: a magic-link OTP is minted with the
    service-role key and redeemed within the same call, so the OTP never
    reaches the client.
    """

    def __init__(
        self,
        *,
        directory: AccountDirectory | None,
        bot_token: str | None,
        init_data_max_age_seconds: int = 0,
    ) -> None:
        self._directory = directory
        self._bot_token = bot_token
        self._init_data_max_age_seconds = init_data_max_age_seconds

    async def issue_session(
        self,
        init_data: str | None,
        telegram_id: int | None,
    ) -> SessionResponse:
        """Validate initData bound to ``telegram_id`` and return ``{user, session}``."""

        if not init_data or not telegram_id:
            raise BridgeError(ErrorCode.MISSING_PARAMS, "initData and telegram_id are required")
        if not self._bot_token:
            raise ConfigurationError(ErrorCode.BOT_TOKEN_NOT_SET, "Telegram bot token is not set")
        if self._directory is None:
            raise ConfigurationError(
                ErrorCode.SUPABASE_ENV_NOT_SET,
                "Account directory URL or service role key is not set",
            )

        validate_init_data(
            init_data,
            self._bot_token,
            expected_telegram_id=telegram_id,
            max_age_seconds=self._init_data_max_age_seconds,
        )

        try:
            identity = await self._directory.find_linked_identity(telegram_id)
        except AccountDirectoryError as exc:
            raise BridgeError(
                ErrorCode.TELEGRAM_USER_NOT_FOUND,
                f"Linked identity lookup failed for telegram_id={telegram_id}: {exc}",
            ) from exc
        if identity is None:
            raise BridgeError(
                ErrorCode.TELEGRAM_USER_NOT_FOUND,
                f"No account is linked to telegram_id={telegram_id}",
            )
        if not identity.email:
            raise BridgeError(
                ErrorCode.EMAIL_NOT_FOUND,
                f"Account {identity.user_id} linked to telegram_id={telegram_id} has no email",
            )

        try:
            link = await self._directory.generate_magic_link(identity.email)
        except AccountDirectoryError as exc:
            raise BridgeError(
                ErrorCode.GENERATE_LINK_FAILED,
                f"Magic link generation failed for account {identity.user_id}: {exc}",
            ) from exc
        if not link.email_otp:
            raise BridgeError(
                ErrorCode.GENERATE_LINK_FAILED,
                f"Magic link for account {identity.user_id} carries no OTP",
            )

        try:
            account, session = await self._directory.verify_otp(identity.email, link.email_otp)
        except AccountDirectoryError as exc:
            raise BridgeError(
                ErrorCode.VERIFY_OTP_FAILED,
                f"OTP redemption failed for account {identity.user_id}: {exc}",
            ) from exc

        logger.info(
            "Telegram session issued",
            extra={"telegram_id": telegram_id, "user_id": account.id},
        )
        return SessionResponse(user=account, session=session)


__all__ = ["TelegramSessionService"]
