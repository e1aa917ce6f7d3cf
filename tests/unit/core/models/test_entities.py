"""Tests for the stored entity models."""

from datetime import UTC, datetime

from src.identity_store.core.models import (
    AdapterAccount,
    AdapterSession,
    AdapterUser,
    SessionUpdate,
)


class TestAdapterModels:
    """Test aliasing, extras and dump helpers."""

    def test_accepts_wire_and_python_names(self):
        by_wire = AdapterSession.model_validate(
            {"sessionToken": "t", "userId": "1", "expires": "2030-01-01T00:00:00Z"}
        )
        by_name = AdapterSession(
            session_token="t", user_id="1", expires=datetime(2030, 1, 1, tzinfo=UTC)
        )

        assert by_wire == by_name

    def test_hash_values_use_wire_names_and_drop_none(self):
        account = AdapterAccount(user_id="1", provider="github", provider_account_id="42")

        assert account.to_hash_values() == {
            "userId": "1",
            "type": "oauth",
            "provider": "github",
            "providerAccountId": "42",
        }

    def test_extra_fields_round_trip(self):
        user = AdapterUser.model_validate({"id": "1", "role": "editor"})

        assert user.model_extra == {"role": "editor"}
        assert user.to_hash_values() == {"id": "1", "role": "editor"}

    def test_changed_values_only_include_supplied_fields(self):
        update = SessionUpdate(session_token="t", expires=datetime(2030, 1, 1, tzinfo=UTC))

        assert update.changed_values() == {
            "sessionToken": "t",
            "expires": datetime(2030, 1, 1, tzinfo=UTC),
        }

    def test_account_expires_at_parsed_from_text(self):
        account = AdapterAccount.model_validate(
            {"userId": "1", "provider": "github", "providerAccountId": "42", "expires_at": "1900000000"}
        )
        assert account.expires_at == 1_900_000_000

    def test_text_fields_exclude_timestamps(self):
        user_fields = AdapterUser.text_fields()
        session_fields = AdapterSession.text_fields()

        assert {"id", "email", "name", "image"} <= user_fields
        assert "emailVerified" not in user_fields
        assert {"sessionToken", "userId"} <= session_fields
        assert "expires" not in session_fields
