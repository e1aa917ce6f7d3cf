"""Unit tests for the configuration context."""

import pytest

from src.identity_store.runtime.config.config_data import ConfigData, RedisConfig, StoreConfig
from src.identity_store.runtime.context import AppContext, get_config, get_context, with_context


class TestContextManager:
    """Test the context manager functionality."""

    def test_default_context_available(self):
        context = get_context()
        config = get_config()

        assert isinstance(context, AppContext)
        assert isinstance(config, ConfigData)
        assert context.config is config

    def test_override_restored_after_block(self):
        original_config = get_config()

        with with_context(ConfigData(store=StoreConfig(index_mode="set"))):
            assert get_config().store.index_mode == "set"

        assert get_config() is original_config

    def test_partial_override_inherits_other_fields(self):
        original_url = get_config().redis.url
        original_prefixes = get_config().store.key_prefixes

        override = ConfigData()
        override.store.use_transactions = False

        with with_context(override):
            config = get_config()
            assert config.store.use_transactions is False
            assert config.redis.url == original_url
            assert config.store.key_prefixes == original_prefixes

    def test_nested_overrides(self):
        with with_context(ConfigData(redis=RedisConfig(url="redis://one:6379/0"))):
            with with_context(ConfigData(store=StoreConfig(index_mode="set"))):
                config = get_config()
                assert config.redis.url == "redis://one:6379/0"
                assert config.store.index_mode == "set"
            assert get_config().redis.url == "redis://one:6379/0"

    def test_none_override_is_noop(self):
        original_config = get_config()
        with with_context(None):
            assert get_config() is original_config

    def test_rejects_other_types(self):
        with pytest.raises(ValueError, match="ConfigData"):
            with with_context({"store": {"index_mode": "set"}}):
                pass
