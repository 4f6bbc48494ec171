"""
Configuration module for the Telegram auth bridge.

The Settings object is built once per process from environment variables and
handed to the request handlers through FastAPI dependencies, so tests can
inject fake secrets without touching the environment.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = Field(default="Telegram Auth Bridge", alias="PROJECT_NAME")
    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local",
        alias="APP_ENV",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    telegram_bot_token: SecretStr | None = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    telegram_manager_bot_token: SecretStr | None = Field(
        default=None,
        alias="TELEGRAM_MANAGER_BOT_TOKEN",
        description="Token of the manager bot; preferred over TELEGRAM_BOT_TOKEN for sessions.",
    )

    supabase_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PROJECT_URL", "SUPABASE_URL"),
    )
    supabase_service_role_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("SERVICE_ROLE_KEY", "SUPABASE_SERVICE_ROLE_KEY"),
    )
    account_directory_timeout_seconds: float = Field(
        default=10.0,
        alias="ACCOUNT_DIRECTORY_TIMEOUT_SECONDS",
        description="Per-request timeout for account directory calls.",
    )

    init_data_max_age_seconds: int = Field(
        default=0,
        alias="TELEGRAM_INIT_DATA_MAX_AGE_SECONDS",
        description="Reject initData older than this many seconds (0 disables the check).",
    )
    max_request_bytes: int = Field(
        default=65_536,
        alias="MAX_REQUEST_BYTES",
        description="Upper bound for request bodies in bytes.",
    )

    @field_validator(
        "telegram_bot_token",
        "telegram_manager_bot_token",
        "supabase_service_role_key",
        "supabase_url",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, SecretStr) and not value.get_secret_value().strip():
            return None
        return value

    @field_validator("supabase_url")
    @classmethod
    def _validate_supabase_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        candidate = value.strip().rstrip("/")
        if not candidate.startswith(("http://", "https://")):
            raise ValueError("PROJECT_URL must include the http(s) scheme.")
        return candidate

    @field_validator("account_directory_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("ACCOUNT_DIRECTORY_TIMEOUT_SECONDS must be positive.")
        return value

    @field_validator("init_data_max_age_seconds")
    @classmethod
    def _validate_max_age(cls, value: int) -> int:
        if value < 0:
            raise ValueError("TELEGRAM_INIT_DATA_MAX_AGE_SECONDS must be >= 0.")
        return value

    @field_validator("max_request_bytes")
    @classmethod
    def _validate_request_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("MAX_REQUEST_BYTES must be a positive integer.")
        return value

    @property
    def session_bot_token(self) -> str | None:
        """Return the bot secret used to validate session requests."""
        token = self.telegram_manager_bot_token or self.telegram_bot_token
        return token.get_secret_value() if token else None

    @property
    def verification_bot_token(self) -> str | None:
        """Return the bot secret used by the standalone verification endpoint."""
        return self.telegram_bot_token.get_secret_value() if self.telegram_bot_token else None

    @property
    def account_directory_credentials(self) -> tuple[str, str] | None:
        """Return ``(url, service_role_key)`` or None when either is missing."""
        if not self.supabase_url or self.supabase_service_role_key is None:
            return None
        return self.supabase_url, self.supabase_service_role_key.get_secret_value()


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance so configuration is evaluated once."""
    return Settings()


__all__ = ["Settings", "get_settings"]
