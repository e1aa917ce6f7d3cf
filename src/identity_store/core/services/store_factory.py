"""Wiring between configuration, the Redis client and the entity store."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from redis.asyncio import Redis

from src.identity_store.core.services.redis_service import RedisService
from src.identity_store.core.storage.entity_store import RedisEntityStore
from src.identity_store.runtime.config.config_data import ConfigData, StoreConfig
from src.identity_store.runtime.context import get_config


def build_entity_store(client: Redis, store_config: StoreConfig | None = None) -> RedisEntityStore:
    """Create an entity store bound to ``client`` using the store configuration."""
    store_config = store_config or get_config().store
    return RedisEntityStore(
        client,
        store_config.key_prefixes,
        index_mode=store_config.index_mode,
        use_transactions=store_config.use_transactions,
    )


@asynccontextmanager
async def open_entity_store(config: ConfigData | None = None) -> AsyncIterator[RedisEntityStore]:
    """Open a Redis client, yield a store bound to it, and close it on exit.

    Raises:
        RuntimeError: If Redis is disabled or could not be initialised.
    """
    config = config or get_config()
    service = RedisService(config.redis)
    client = service.get_client()
    if client is None:
        raise RuntimeError("Redis client is not available; check the redis configuration")

    logger.info("Entity store opened (index_mode={})", config.store.index_mode)
    try:
        yield build_entity_store(client, config.store)
    finally:
        await service.close()
