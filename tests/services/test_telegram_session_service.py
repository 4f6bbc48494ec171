from __future__ import annotations

import pytest

from auth_bridge.core.errors import (
    AccountDirectoryError,
    BridgeError,
    ConfigurationError,
    ErrorCode,
    InitDataError,
)
from auth_bridge.directory.memory import InMemoryAccountDirectory
from auth_bridge.models.directory import Account, LinkedIdentity, MagicLink, Session
from auth_bridge.services.telegram_session import TelegramSessionService
from tests.helpers import TEST_BOT_TOKEN, TEST_TELEGRAM_ID, generate_init_data


class _FailingLookupDirectory(InMemoryAccountDirectory):
    async def find_linked_identity(self, telegram_id: int) -> LinkedIdentity | None:
        raise AccountDirectoryError("relation telegram_users does not exist", status_code=500)


class _FailingLinkDirectory(InMemoryAccountDirectory):
    async def generate_magic_link(self, email: str) -> MagicLink:
        raise AccountDirectoryError("User not found", status_code=404)


class _OtpLessLinkDirectory(InMemoryAccountDirectory):
    async def generate_magic_link(self, email: str) -> MagicLink:
        return MagicLink(email=email, email_otp=None)


class _FailingVerifyDirectory(InMemoryAccountDirectory):
    async def verify_otp(self, email: str, token: str) -> tuple[Account, Session]:
        raise AccountDirectoryError("Token has expired or is invalid", status_code=403)


def _linked(directory: InMemoryAccountDirectory, email: str | None = "a@example.com") -> Account:
    account = directory.add_account(email)
    directory.link_telegram(TEST_TELEGRAM_ID, account.id)
    return account


def _service(directory: InMemoryAccountDirectory | None, **kwargs: object) -> TelegramSessionService:
    options: dict[str, object] = {"bot_token": TEST_BOT_TOKEN}
    options.update(kwargs)
    return TelegramSessionService(directory=directory, **options)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_issue_session_returns_account_and_tokens() -> None:
    directory = InMemoryAccountDirectory()
    account = _linked(directory)

    result = await _service(directory).issue_session(generate_init_data(), TEST_TELEGRAM_ID)

    assert result.user.id == account.id
    assert result.session.access_token
    assert result.session.refresh_token
    assert len(directory.issued_sessions) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("init_data, telegram_id", [(None, TEST_TELEGRAM_ID), ("", 1), ("x", None)])
async def test_missing_params_checked_before_configuration(
    init_data: str | None,
    telegram_id: int | None,
) -> None:
    service = TelegramSessionService(directory=None, bot_token=None)

    with pytest.raises(BridgeError) as exc:
        await service.issue_session(init_data, telegram_id)

    assert exc.value.code == ErrorCode.MISSING_PARAMS


@pytest.mark.asyncio
async def test_bot_token_checked_before_directory() -> None:
    service = TelegramSessionService(directory=None, bot_token=None)

    with pytest.raises(ConfigurationError) as exc:
        await service.issue_session(generate_init_data(), TEST_TELEGRAM_ID)

    assert exc.value.code == ErrorCode.BOT_TOKEN_NOT_SET


@pytest.mark.asyncio
async def test_unconfigured_directory_is_reported() -> None:
    with pytest.raises(ConfigurationError) as exc:
        await _service(None).issue_session(generate_init_data(), TEST_TELEGRAM_ID)

    assert exc.value.code == ErrorCode.SUPABASE_ENV_NOT_SET


@pytest.mark.asyncio
async def test_mismatched_telegram_id_never_reaches_directory() -> None:
    directory = InMemoryAccountDirectory()
    _linked(directory)

    with pytest.raises(InitDataError) as exc:
        await _service(directory).issue_session(
            generate_init_data(telegram_id=TEST_TELEGRAM_ID + 1),
            TEST_TELEGRAM_ID,
        )

    assert exc.value.code == ErrorCode.TELEGRAM_ID_MISMATCH
    assert directory.issued_sessions == []


@pytest.mark.asyncio
async def test_forged_payload_is_rejected() -> None:
    directory = InMemoryAccountDirectory()
    _linked(directory)

    with pytest.raises(InitDataError) as exc:
        await _service(directory).issue_session(
            generate_init_data("111111:OTHER_BOT"),
            TEST_TELEGRAM_ID,
        )

    assert exc.value.code == ErrorCode.INVALID_HASH
    assert directory.issued_sessions == []


@pytest.mark.asyncio
async def test_expired_payload_is_rejected_when_max_age_enabled() -> None:
    directory = InMemoryAccountDirectory()
    _linked(directory)
    init_data = generate_init_data(overrides={"auth_date": "1700000000"})

    with pytest.raises(InitDataError) as exc:
        await _service(directory, init_data_max_age_seconds=60).issue_session(
            init_data,
            TEST_TELEGRAM_ID,
        )

    assert exc.value.code == ErrorCode.INIT_DATA_EXPIRED


@pytest.mark.asyncio
async def test_unlinked_telegram_user() -> None:
    with pytest.raises(BridgeError) as exc:
        await _service(InMemoryAccountDirectory()).issue_session(
            generate_init_data(),
            TEST_TELEGRAM_ID,
        )

    assert exc.value.code == ErrorCode.TELEGRAM_USER_NOT_FOUND


@pytest.mark.asyncio
async def test_lookup_failure_is_reported_as_not_found() -> None:
    directory = _FailingLookupDirectory()

    with pytest.raises(BridgeError) as exc:
        await _service(directory).issue_session(generate_init_data(), TEST_TELEGRAM_ID)

    assert exc.value.code == ErrorCode.TELEGRAM_USER_NOT_FOUND


@pytest.mark.asyncio
async def test_linked_account_without_email() -> None:
    directory = InMemoryAccountDirectory()
    _linked(directory, email=None)

    with pytest.raises(BridgeError) as exc:
        await _service(directory).issue_session(generate_init_data(), TEST_TELEGRAM_ID)

    assert exc.value.code == ErrorCode.EMAIL_NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.parametrize("directory_cls", [_FailingLinkDirectory, _OtpLessLinkDirectory])
async def test_magic_link_failures(directory_cls: type[InMemoryAccountDirectory]) -> None:
    directory = directory_cls()
    _linked(directory)

    with pytest.raises(BridgeError) as exc:
        await _service(directory).issue_session(generate_init_data(), TEST_TELEGRAM_ID)

    assert exc.value.code == ErrorCode.GENERATE_LINK_FAILED


@pytest.mark.asyncio
async def test_otp_redemption_failure() -> None:
    directory = _FailingVerifyDirectory()
    _linked(directory)

    with pytest.raises(BridgeError) as exc:
        await _service(directory).issue_session(generate_init_data(), TEST_TELEGRAM_ID)

    assert exc.value.code == ErrorCode.VERIFY_OTP_FAILED


@pytest.mark.asyncio
async def test_each_call_issues_a_fresh_session() -> None:
    directory = InMemoryAccountDirectory()
    _linked(directory)
    service = _service(directory)
    init_data = generate_init_data()

    first = await service.issue_session(init_data, TEST_TELEGRAM_ID)
    second = await service.issue_session(init_data, TEST_TELEGRAM_ID)

    assert first.session.access_token != second.session.access_token
    assert len(directory.issued_sessions) == 2
