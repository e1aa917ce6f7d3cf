"""Tests for key prefix configuration and key resolution."""

import pytest
from pydantic import ValidationError

from src.identity_store.core.storage.keys import KeyPrefixConfig, KeyResolver


class TestKeyPrefixConfig:
    """Test prefix defaults, aliases and validation."""

    def test_defaults(self):
        """Defaults reproduce the existing key layout."""
        prefixes = KeyPrefixConfig()

        assert prefixes.base_key_prefix == ""
        assert prefixes.user_key_prefix == "user:"
        assert prefixes.user_by_email_key_prefix == "user:email:"
        assert prefixes.account_key_prefix == "account:"
        assert prefixes.account_by_user_id_prefix == "account:user:"
        assert prefixes.session_key_prefix == "session:"
        assert prefixes.session_by_user_id_prefix == "session:user:"
        assert prefixes.verification_key_prefix == "verification:"

    def test_camel_case_options_merge_over_defaults(self):
        """Unspecified options keep their defaults."""
        prefixes = KeyPrefixConfig.model_validate(
            {"baseKeyPrefix": "app1:", "sessionKeyPrefix": "sess:"}
        )

        assert prefixes.base_key_prefix == "app1:"
        assert prefixes.session_key_prefix == "sess:"
        assert prefixes.user_key_prefix == "user:"

    def test_snake_case_names_accepted(self):
        prefixes = KeyPrefixConfig(user_key_prefix="u:")
        assert prefixes.user_key_prefix == "u:"

    def test_empty_kind_prefix_rejected(self):
        with pytest.raises(ValidationError, match="must not be empty"):
            KeyPrefixConfig(account_key_prefix="")

    def test_colliding_prefixes_rejected(self):
        with pytest.raises(ValidationError, match="collide"):
            KeyPrefixConfig(session_key_prefix="user:")

    def test_empty_base_prefix_allowed(self):
        assert KeyPrefixConfig(base_key_prefix="").base_key_prefix == ""


class TestKeyResolver:
    """Test key derivation."""

    def test_default_keys(self):
        keys = KeyResolver()

        assert keys.user_key("u1") == "user:u1"
        assert keys.user_by_email_key("a@x.com") == "user:email:a@x.com"
        assert keys.account_key("github:42") == "account:github:42"
        assert keys.account_by_user_key("u1") == "account:user:u1"
        assert keys.session_key("tok") == "session:tok"
        assert keys.session_by_user_key("u1") == "session:user:u1"
        assert keys.verification_key("a@x.com") == "verification:a@x.com"

    def test_base_prefix_applies_to_every_kind(self):
        keys = KeyResolver(KeyPrefixConfig(base_key_prefix="tenant:"))

        assert keys.user_key("u1") == "tenant:user:u1"
        assert keys.user_by_email_key("a@x.com") == "tenant:user:email:a@x.com"
        assert keys.account_by_user_key("u1") == "tenant:account:user:u1"
        assert keys.session_by_user_key("u1") == "tenant:session:user:u1"
        assert keys.verification_key("id") == "tenant:verification:id"

    def test_account_id(self):
        """Account ids are <provider>:<providerAccountId>."""
        assert KeyResolver.account_id("github", "42") == "github:42"
