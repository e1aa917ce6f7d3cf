import logging

from loguru import logger

from src.identity_store.runtime.config.config_data import ConfigData, LoggingConfig
from src.identity_store.runtime.logging_setup import configure_logging


class TestConfigureLogging:
    """Test loguru sink setup and stdlib interception."""

    def teardown_method(self):
        logger.remove()
        logging.basicConfig(handlers=[], force=True)

    def test_stdlib_records_reach_loguru(self):
        configure_logging(ConfigData(logging=LoggingConfig(level="DEBUG")))
        messages = []
        logger.add(messages.append, format="{message}", level="DEBUG")

        logging.getLogger("identity_store.test").warning("pool exhausted")

        assert any("pool exhausted" in message for message in messages)

    def test_redis_library_noise_filtered(self):
        configure_logging(ConfigData(logging=LoggingConfig(level="DEBUG")))
        messages = []
        logger.add(messages.append, format="{message}", level="DEBUG")

        logging.getLogger("redis.connection").debug("socket opened")

        assert messages == []
