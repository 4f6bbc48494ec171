"""Interface of the account directory consumed by the session issuer."""

from __future__ import annotations

from abc import ABC, abstractmethod

from auth_bridge.models.directory import Account, LinkedIdentity, MagicLink, Session


class AccountDirectory(ABC):
    """System of record for accounts, Telegram links and sessions.

    Implementations raise ``AccountDirectoryError`` for every failed call;
    they never return partial results.
    """

    @abstractmethod
    async def find_linked_identity(self, telegram_id: int) -> LinkedIdentity | None:
        """Return the account linked to ``telegram_id`` or ``None`` when unlinked."""

    @abstractmethod
    async def generate_magic_link(self, email: str) -> MagicLink:
        """Mint a single-use login credential for ``email``."""

    @abstractmethod
    async def verify_otp(self, email: str, token: str) -> tuple[Account, Session]:
        """Redeem a credential minted by ``generate_magic_link``."""

    async def aclose(self) -> None:
        return None
