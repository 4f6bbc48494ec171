"""Shared helpers for tests."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from pydantic_settings import PydanticBaseSettingsSource

from auth_bridge.core.config import Settings

TEST_BOT_TOKEN = "999999:TEST_TOKEN"
TEST_MANAGER_BOT_TOKEN = "888888:MANAGER_TOKEN"
TEST_SUPABASE_URL = "https://directory.test"
TEST_SERVICE_ROLE_KEY = "service-role-test"
TEST_TELEGRAM_ID = 123456
LINKED_EMAIL = "worker@example.com"


def telegram_user_json(telegram_id: int = TEST_TELEGRAM_ID, **fields: Any) -> str:
    user = {
        "id": telegram_id,
        "first_name": "John",
        "last_name": "Doe",
        "username": "john_doe",
        "language_code": "en",
    }
    user.update(fields)
    return json.dumps(user, separators=(",", ":"))


def sign_fields(fields: Dict[str, str], bot_token: str) -> str:
    """Sign ``fields`` with the SHA256(bot token) key and return the encoded payload."""

    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    secret_key = hashlib.sha256(bot_token.encode()).digest()
    hash_value = hmac.new(
        key=secret_key,
        msg=data_check_string.encode(),
        digestmod=hashlib.sha256,
    ).hexdigest()
    return urlencode({**fields, "hash": hash_value})


def generate_init_data(
    bot_token: str = TEST_BOT_TOKEN,
    overrides: Optional[Dict[str, str]] = None,
    *,
    telegram_id: int = TEST_TELEGRAM_ID,
) -> str:
    """Create a signed initData payload resembling Telegram WebApp data."""

    payload = {
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
        "user": telegram_user_json(telegram_id),
        "auth_date": str(int(time.time())),
        "chat_type": "private",
        "chat_instance": "-3788475317572404878",
    }
    if overrides:
        payload.update(overrides)
    return sign_fields(payload, bot_token)


class NoEnvSettings(Settings):
    """Settings subclass that ignores the process environment and .env files."""

    model_config = Settings.model_config.copy()
    model_config["env_file"] = ()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[Settings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)


def build_settings(**overrides: object) -> Settings:
    payload: dict[str, object] = {
        "APP_ENV": "test",
        "TELEGRAM_BOT_TOKEN": TEST_BOT_TOKEN,
        "PROJECT_URL": TEST_SUPABASE_URL,
        "SERVICE_ROLE_KEY": TEST_SERVICE_ROLE_KEY,
    }
    payload.update(overrides)
    return NoEnvSettings.model_validate({k: v for k, v in payload.items() if v is not None})
