"""Telegram WebApp user payload and the verified initData envelope."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    """The ``user`` object embedded in Telegram WebApp initData."""

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    is_premium: Optional[bool] = None
    photo_url: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class VerifiedInitData(BaseModel):
    """initData whose signature matched the configured bot secret.

    ``user`` is None when the payload was verified without identity binding
    and its ``user`` field is not a usable Telegram user object.
    """

    pairs: list[tuple[str, str]] = Field(default_factory=list)
    user: Optional[TelegramUser] = None
    auth_date: Optional[datetime] = None
    query_id: Optional[str] = None

    @property
    def telegram_id(self) -> Optional[int]:
        return self.user.id if self.user is not None else None
