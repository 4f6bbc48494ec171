"""Telegram WebApp initData verification.

The signature scheme reproduced here is the one the product's signers have
always used: the HMAC key is the raw SHA-256 digest of the bot token, not the
``HMAC("WebAppData", token)`` key from the public Telegram documentation.
Payloads signed with the documented scheme are rejected.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping
from urllib.parse import parse_qsl, urlencode

from pydantic import ValidationError

from auth_bridge.core.errors import ErrorCode, InitDataError
from auth_bridge.core.logging import get_logger
from auth_bridge.models.telegram_user import TelegramUser, VerifiedInitData

logger = get_logger(__name__)

HASH_KEY = "hash"
USER_KEY = "user"
AUTH_DATE_KEY = "auth_date"

Pairs = list[tuple[str, str]]


def validate_init_data(
    init_data: str,
    bot_token: str,
    *,
    expected_telegram_id: int | None,
    max_age_seconds: int = 0,
    now: float | None = None,
) -> VerifiedInitData:
    """Verify initData and optionally bind it to a claimed Telegram id.

    ``expected_telegram_id`` is required and keyword-only: callers pass the
    claimed id when the payload must belong to it, or ``None`` for an
    authenticity-only check that gives no identity guarantee.

    Raises:
        InitDataError: ``invalid_init_data``, ``telegram_id_mismatch``,
            ``invalid_hash`` or ``init_data_expired``.
    """

    pairs = parse_init_data(init_data)

    received_hash = _first_value(pairs, HASH_KEY)
    raw_user = _first_value(pairs, USER_KEY)
    if not received_hash or not raw_user:
        raise InitDataError(ErrorCode.INVALID_INIT_DATA, "hash or user is missing in initData")

    user_payload: dict[str, Any] | None = None
    if expected_telegram_id is not None:
        user_payload = _load_user_payload(raw_user)
        claimed_id = user_payload.get("id")
        if isinstance(claimed_id, bool) or claimed_id != expected_telegram_id:
            raise InitDataError(
                ErrorCode.TELEGRAM_ID_MISMATCH,
                f"initData belongs to a different user than telegram_id={expected_telegram_id}",
            )

    data_check_string = build_data_check_string(pairs)
    expected_hash = compute_init_data_hash(data_check_string, bot_token)
    if not hmac.compare_digest(expected_hash.encode(), received_hash.encode()):
        raise InitDataError(ErrorCode.INVALID_HASH, "initData signature mismatch")

    auth_date = _parse_auth_date(_first_value(pairs, AUTH_DATE_KEY))
    if max_age_seconds > 0:
        _ensure_fresh(auth_date, max_age_seconds, now)

    # Without binding only the signature matters; an unusable user stays None.
    user = _build_user(user_payload) if user_payload is not None else _try_build_user(raw_user)
    logger.debug(
        "Validated Telegram initData",
        extra={"telegram_id": user.id if user is not None else None},
    )
    return VerifiedInitData(
        pairs=[pair for pair in pairs if pair[0] != HASH_KEY],
        user=user,
        auth_date=auth_date,
        query_id=_first_value(pairs, "query_id"),
    )


def parse_init_data(init_data: str) -> Pairs:
    """Split the URL-encoded payload into decoded pairs, keeping order and duplicates."""
    return parse_qsl(init_data, keep_blank_values=True)


def build_data_check_string(pairs: Iterable[tuple[str, str]]) -> str:
    """Render the sorted ``key=value`` lines that the signature covers.

    Every ``hash`` pair is dropped; the sort is ordinal on the key and stable,
    so duplicate keys keep their original relative order.
    """
    remaining = [(key, value) for key, value in pairs if key != HASH_KEY]
    remaining.sort(key=lambda pair: pair[0])
    return "\n".join(f"{key}={value}" for key, value in remaining)


def derive_secret_key(bot_token: str) -> bytes:
    return hashlib.sha256(bot_token.encode()).digest()


def compute_init_data_hash(data_check_string: str, bot_token: str) -> str:
    """Return the lowercase hex HMAC-SHA256 of the data-check-string."""
    return hmac.new(
        key=derive_secret_key(bot_token),
        msg=data_check_string.encode(),
        digestmod=hashlib.sha256,
    ).hexdigest()


def sign_init_data(fields: Mapping[str, str] | Iterable[tuple[str, str]], bot_token: str) -> str:
    """Build a signed, URL-encoded initData string the way the issuing side does."""
    pairs = list(fields.items()) if isinstance(fields, Mapping) else list(fields)
    pairs = [(key, value) for key, value in pairs if key != HASH_KEY]
    signature = compute_init_data_hash(build_data_check_string(pairs), bot_token)
    return urlencode([*pairs, (HASH_KEY, signature)])


def _first_value(pairs: Pairs, key: str) -> str | None:
    for candidate, value in pairs:
        if candidate == key:
            return value
    return None


def _load_user_payload(raw_user: str) -> dict[str, Any]:
    try:
        payload = json.loads(raw_user)
    except json.JSONDecodeError as exc:
        raise InitDataError(
            ErrorCode.INVALID_INIT_DATA,
            "user payload is not valid JSON",
        ) from exc

    if not isinstance(payload, dict):
        raise InitDataError(ErrorCode.INVALID_INIT_DATA, "user payload must be a JSON object")
    return payload


def _build_user(user_payload: dict[str, Any]) -> TelegramUser:
    try:
        return TelegramUser.model_validate(user_payload)
    except ValidationError as exc:
        raise InitDataError(
            ErrorCode.INVALID_INIT_DATA,
            "telegram user id is missing or malformed",
        ) from exc


def _try_build_user(raw_user: str) -> TelegramUser | None:
    try:
        return TelegramUser.model_validate_json(raw_user)
    except ValidationError:
        return None


def _parse_auth_date(raw_auth_date: str | None) -> datetime | None:
    if raw_auth_date is None:
        return None
    try:
        return datetime.fromtimestamp(int(raw_auth_date), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def _ensure_fresh(auth_date: datetime | None, max_age_seconds: int, now: float | None) -> None:
    if auth_date is None:
        raise InitDataError(ErrorCode.INVALID_INIT_DATA, "auth_date is missing or malformed")

    current = time.time() if now is None else now
    age = current - auth_date.timestamp()
    if age > max_age_seconds:
        raise InitDataError(
            ErrorCode.INIT_DATA_EXPIRED,
            f"initData is {int(age)}s old (limit {max_age_seconds}s)",
        )


__all__ = [
    "build_data_check_string",
    "compute_init_data_hash",
    "derive_secret_key",
    "parse_init_data",
    "sign_init_data",
    "validate_init_data",
]
