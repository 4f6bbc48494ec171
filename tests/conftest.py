from __future__ import annotations

import os
from typing import AsyncIterator, Final

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

_TEST_ENV_VARS: Final[dict[str, str]] = {
    "APP_ENV": "test",
    "LOG_LEVEL": "DEBUG",
    "TELEGRAM_BOT_TOKEN": "999999:TEST_TOKEN",
}

for key, value in _TEST_ENV_VARS.items():
    os.environ.setdefault(key, value)

from auth_bridge.core.config import Settings  # noqa: E402
from auth_bridge.directory.memory import InMemoryAccountDirectory  # noqa: E402
from auth_bridge.main import create_app  # noqa: E402
from auth_bridge.models.directory import Account  # noqa: E402
from tests.helpers import LINKED_EMAIL, TEST_TELEGRAM_ID, build_settings  # noqa: E402


@pytest.fixture()
def settings() -> Settings:
    return build_settings()


@pytest.fixture()
def directory() -> InMemoryAccountDirectory:
    return InMemoryAccountDirectory()


@pytest.fixture()
def linked_account(directory: InMemoryAccountDirectory) -> Account:
    account = directory.add_account(LINKED_EMAIL, user_metadata={"role": "worker"})
    directory.link_telegram(TEST_TELEGRAM_ID, account.id)
    return account


@pytest.fixture()
def app(settings: Settings, directory: InMemoryAccountDirectory) -> FastAPI:
    return create_app(settings=settings, directory=directory)


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
