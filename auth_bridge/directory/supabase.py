"""Supabase-backed account directory (PostgREST tables + GoTrue admin API)."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from auth_bridge.core.errors import AccountDirectoryError
from auth_bridge.directory.base import AccountDirectory
from auth_bridge.models.directory import Account, LinkedIdentity, MagicLink, Session

logger = logging.getLogger("auth_bridge.directory.supabase")

TELEGRAM_USERS_PATH = "/rest/v1/telegram_users"
GENERATE_LINK_PATH = "/auth/v1/admin/generate_link"
VERIFY_PATH = "/auth/v1/verify"
MAGIC_LINK_TYPE = "magiclink"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase

    if isinstance(body, Mapping):
        for key in ("msg", "message", "error_description", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return response.reason_phrase


class SupabaseAccountDirectory(AccountDirectory):
    """Talks to a Supabase project with the service-role key."""

    def __init__(
        self,
        *,
        base_url: str,
        service_role_key: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
        }

        logger.info(
            "Supabase account directory initialized",
            extra={"base_url": self.base_url, "timeout": timeout},
        )

    async def find_linked_identity(self, telegram_id: int) -> LinkedIdentity | None:
        rows = await self._request(
            "GET",
            TELEGRAM_USERS_PATH,
            params={
                "select": "user_id,users(email)",
                "telegram_id": f"eq.{telegram_id}",
                "limit": "2",
            },
        )
        if not isinstance(rows, list):
            raise AccountDirectoryError("telegram_users lookup returned an unexpected payload")
        if not rows:
            return None
        if len(rows) > 1:
            raise AccountDirectoryError(f"telegram_id={telegram_id} is linked to several accounts")

        row = rows[0]
        user_id = row.get("user_id")
        if not user_id:
            raise AccountDirectoryError("telegram_users row has no user_id")

        return LinkedIdentity(
            telegram_id=telegram_id,
            user_id=str(user_id),
            email=self._extract_email(row.get("users")),
        )

    async def generate_magic_link(self, email: str) -> MagicLink:
        body = await self._request(
            "POST",
            GENERATE_LINK_PATH,
            json={"type": MAGIC_LINK_TYPE, "email": email},
        )
        if not isinstance(body, Mapping):
            raise AccountDirectoryError("generate_link returned an unexpected payload")

        # Newer GoTrue versions nest link fields under "properties".
        properties = body.get("properties") or body
        return MagicLink(
            email=email,
            email_otp=properties.get("email_otp"),
            hashed_token=properties.get("hashed_token"),
            action_link=properties.get("action_link"),
        )

    async def verify_otp(self, email: str, token: str) -> tuple[Account, Session]:
        body = await self._request(
            "POST",
            VERIFY_PATH,
            json={"type": MAGIC_LINK_TYPE, "email": email, "token": token},
        )
        if not isinstance(body, Mapping) or not body.get("access_token"):
            raise AccountDirectoryError("verify returned no session")

        try:
            session = Session.model_validate(body)
        except ValidationError as exc:
            raise AccountDirectoryError("verify returned a malformed session") from exc

        if session.user is None:
            raise AccountDirectoryError("verify returned a session without a user")
        return session.user, session

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "Account directory request failed",
                extra={
                    "http_method": method,
                    "directory_path": path,
                    "error_type": type(exc).__name__,
                },
            )
            raise AccountDirectoryError(f"{method} {path} failed: {type(exc).__name__}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Account directory returned an error",
                extra={
                    "http_method": method,
                    "directory_path": path,
                    "status_code": response.status_code,
                    "error": message,
                },
            )
            raise AccountDirectoryError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise AccountDirectoryError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _extract_email(embedded: object) -> str | None:
        # PostgREST embeds to-one relations as an object and to-many as a list.
        if isinstance(embedded, list):
            embedded = embedded[0] if embedded else None
        if isinstance(embedded, Mapping):
            email = embedded.get("email")
            return email if isinstance(email, str) and email else None
        return None


__all__ = ["SupabaseAccountDirectory"]
