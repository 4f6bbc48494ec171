"""In-process account directory for local development and tests."""

from __future__ import annotations

import asyncio
import hmac
import secrets
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable

from auth_bridge.core.errors import AccountDirectoryError
from auth_bridge.directory.base import AccountDirectory
from auth_bridge.models.directory import Account, LinkedIdentity, MagicLink, Session


@dataclass(slots=True)
class _PendingOtp:
    token: str
    expires_at: float


class InMemoryAccountDirectory(AccountDirectory):
    """Dictionary-backed directory with single-use, expiring OTPs.

    Minting a new OTP for an email replaces the previous one. Redemption
    checks and consumes the OTP under a lock, so a token yields at most one
    session.
    """

    def __init__(
        self,
        *,
        otp_ttl_seconds: int = 3600,
        session_ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.otp_ttl_seconds = otp_ttl_seconds
        self.session_ttl_seconds = session_ttl_seconds
        self._clock = clock
        self._accounts: dict[str, Account] = {}
        self._links: dict[int, str] = {}
        self._pending: dict[str, _PendingOtp] = {}
        self._lock = asyncio.Lock()
        self.issued_sessions: list[Session] = []

    def add_account(
        self,
        email: str | None,
        *,
        user_id: str | None = None,
        **fields: Any,
    ) -> Account:
        account = Account(id=user_id or str(uuid.uuid4()), email=email, **fields)
        self._accounts[account.id] = account
        return account

    def link_telegram(self, telegram_id: int, user_id: str) -> None:
        if user_id not in self._accounts:
            raise KeyError(f"Unknown account {user_id}")
        self._links[telegram_id] = user_id

    async def find_linked_identity(self, telegram_id: int) -> LinkedIdentity | None:
        user_id = self._links.get(telegram_id)
        if user_id is None:
            return None
        account = self._accounts[user_id]
        return LinkedIdentity(telegram_id=telegram_id, user_id=user_id, email=account.email)

    async def generate_magic_link(self, email: str) -> MagicLink:
        if self._find_by_email(email) is None:
            raise AccountDirectoryError("User not found", status_code=404)

        token = f"{secrets.randbelow(1_000_000):06d}"
        async with self._lock:
            self._pending[email] = _PendingOtp(
                token=token,
                expires_at=self._clock() + self.otp_ttl_seconds,
            )
        return MagicLink(email=email, email_otp=token)

    async def verify_otp(self, email: str, token: str) -> tuple[Account, Session]:
        async with self._lock:
            pending = self._pending.get(email)
            if pending is None or not hmac.compare_digest(pending.token, token):
                raise AccountDirectoryError("Token has expired or is invalid", status_code=403)
            del self._pending[email]
            if pending.expires_at < self._clock():
                raise AccountDirectoryError("Token has expired or is invalid", status_code=403)

            account = self._find_by_email(email)
            if account is None:
                raise AccountDirectoryError("User not found", status_code=404)

            now = int(self._clock())
            session = Session(
                access_token=secrets.token_urlsafe(32),
                refresh_token=secrets.token_urlsafe(16),
                expires_in=self.session_ttl_seconds,
                expires_at=now + self.session_ttl_seconds,
                user=account,
            )
            self.issued_sessions.append(session)
        return account, session

    def _find_by_email(self, email: str) -> Account | None:
        for account in self._accounts.values():
            if account.email == email:
                return account
        return None


__all__ = ["InMemoryAccountDirectory"]
