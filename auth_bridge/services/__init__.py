"""Service layer for the authentication bridge."""

from auth_bridge.services.init_data_check import InitDataCheckService
from auth_bridge.services.telegram_session import TelegramSessionService

__all__ = ["InitDataCheckService", "TelegramSessionService"]
