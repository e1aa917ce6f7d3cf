"""Sample identity entities."""

from datetime import UTC, datetime, timedelta

import pytest

from src.identity_store.core.models import (
    AdapterAccount,
    AdapterSession,
    AdapterUser,
    VerificationToken,
)


@pytest.fixture
def expires_at() -> datetime:
    return datetime(2031, 5, 17, 8, 30, 15, 250000, tzinfo=UTC)


@pytest.fixture
def new_user() -> AdapterUser:
    return AdapterUser(
        email="ada@example.com",
        name="Ada Lovelace",
        image="https://avatars.example.com/ada.png",
        email_verified=datetime(2030, 1, 2, 3, 4, 5, tzinfo=UTC),
        role="admin",
    )


@pytest.fixture
def github_account() -> AdapterAccount:
    return AdapterAccount(
        user_id="placeholder",
        type="oauth",
        provider="github",
        provider_account_id="42",
        access_token="gho_access",
        refresh_token="ghr_refresh",
        expires_at=1_900_000_000,
        token_type="bearer",
        scope="read:user user:email",
    )


@pytest.fixture
def session_factory(expires_at: datetime):
    def make(user_id: str, token: str = "sess-token-1") -> AdapterSession:
        return AdapterSession(session_token=token, user_id=user_id, expires=expires_at)

    return make


@pytest.fixture
def verification_token(expires_at: datetime) -> VerificationToken:
    return VerificationToken(
        identifier="ada@example.com",
        token="b7c1e0f4d2",
        expires=expires_at - timedelta(days=1),
    )
