from __future__ import annotations

import asyncio

import pytest

from auth_bridge.core.errors import AccountDirectoryError
from auth_bridge.directory.memory import InMemoryAccountDirectory


class _Clock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_find_linked_identity_returns_account_email() -> None:
    directory = InMemoryAccountDirectory()
    account = directory.add_account("a@example.com")
    directory.link_telegram(42, account.id)

    identity = await directory.find_linked_identity(42)

    assert identity is not None
    assert identity.user_id == account.id
    assert identity.email == "a@example.com"
    assert await directory.find_linked_identity(43) is None


def test_link_telegram_requires_existing_account() -> None:
    directory = InMemoryAccountDirectory()

    with pytest.raises(KeyError):
        directory.link_telegram(42, "missing")


@pytest.mark.asyncio
async def test_otp_redeems_exactly_once() -> None:
    directory = InMemoryAccountDirectory()
    account = directory.add_account("a@example.com")
    link = await directory.generate_magic_link("a@example.com")
    assert link.email_otp is not None

    user, session = await directory.verify_otp("a@example.com", link.email_otp)

    assert user.id == account.id
    assert session.access_token
    assert session.refresh_token
    with pytest.raises(AccountDirectoryError):
        await directory.verify_otp("a@example.com", link.email_otp)
    assert len(directory.issued_sessions) == 1


@pytest.mark.asyncio
async def test_concurrent_redemptions_issue_one_session() -> None:
    directory = InMemoryAccountDirectory()
    directory.add_account("a@example.com")
    link = await directory.generate_magic_link("a@example.com")
    assert link.email_otp is not None

    results = await asyncio.gather(
        *(directory.verify_otp("a@example.com", link.email_otp) for _ in range(5)),
        return_exceptions=True,
    )

    successes = [result for result in results if not isinstance(result, Exception)]
    failures = [result for result in results if isinstance(result, AccountDirectoryError)]
    assert len(successes) == 1
    assert len(failures) == 4


@pytest.mark.asyncio
async def test_new_link_invalidates_previous_otp() -> None:
    directory = InMemoryAccountDirectory()
    directory.add_account("a@example.com")
    first = await directory.generate_magic_link("a@example.com")
    second = await directory.generate_magic_link("a@example.com")
    assert first.email_otp is not None and second.email_otp is not None

    if first.email_otp != second.email_otp:
        with pytest.raises(AccountDirectoryError):
            await directory.verify_otp("a@example.com", first.email_otp)
    _, session = await directory.verify_otp("a@example.com", second.email_otp)
    assert session.access_token


@pytest.mark.asyncio
async def test_expired_otp_is_rejected() -> None:
    clock = _Clock()
    directory = InMemoryAccountDirectory(otp_ttl_seconds=60, clock=clock)
    directory.add_account("a@example.com")
    link = await directory.generate_magic_link("a@example.com")
    assert link.email_otp is not None

    clock.now += 61

    with pytest.raises(AccountDirectoryError):
        await directory.verify_otp("a@example.com", link.email_otp)


@pytest.mark.asyncio
async def test_generate_link_for_unknown_email_fails() -> None:
    directory = InMemoryAccountDirectory()

    with pytest.raises(AccountDirectoryError) as exc:
        await directory.generate_magic_link("ghost@example.com")

    assert exc.value.status_code == 404
