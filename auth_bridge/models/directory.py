"""Records exchanged with the account directory."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


@dataclass(slots=True, frozen=True)
class LinkedIdentity:
    """A ``telegram_users`` row joined to the linked account's email."""

    telegram_id: int
    user_id: str
    email: str | None


@dataclass(slots=True, frozen=True)
class MagicLink:
    """One-time login credential minted through the admin API."""

    email: str
    email_otp: str | None
    hashed_token: str | None = None
    action_link: str | None = None


class Account(BaseModel):
    """Directory user object; unknown fields are passed through untouched."""

    id: str
    email: str | None = None

    model_config = ConfigDict(extra="allow")


class Session(BaseModel):
    """Access/refresh token pair minted by the directory's session layer."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    expires_at: int | None = None
    user: Account | None = None

    model_config = ConfigDict(extra="allow")

