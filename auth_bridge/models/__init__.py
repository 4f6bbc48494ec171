"""Domain models shared across the bridge."""

from auth_bridge.models.directory import Account, LinkedIdentity, MagicLink, Session
from auth_bridge.models.telegram_user import TelegramUser, VerifiedInitData

__all__ = [
    "Account",
    "LinkedIdentity",
    "MagicLink",
    "Session",
    "TelegramUser",
    "VerifiedInitData",
]
