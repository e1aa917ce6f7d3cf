"""Redis connection service for managing Redis client lifecycle and health checks."""

from typing import Any

import redis.asyncio as redis_async
from loguru import logger
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError

from src.identity_store.runtime.config.config_data import RedisConfig
from src.identity_store.runtime.context import get_config


class RedisService:
    """Service for managing Redis connection lifecycle and health checks.

    One client (with its connection pool) is created per process and handed
    to the entity store explicitly; ``close`` releases the pool on shutdown.
    """

    def __init__(self, redis_config: RedisConfig | None = None):
        """Initialize the Redis client from configuration."""
        logger.info("Setting up Redis service")
        config = get_config()
        redis_config = redis_config or config.redis

        self._enabled = redis_config.enabled
        self._client: redis_async.Redis | None = None
        self._url = redis_config.url

        if not self._enabled:
            logger.info("Redis is disabled, service will not connect")
            return

        if not self._url:
            logger.warning("Redis URL not configured, service will not connect")
            self._enabled = False
            return

        logger.info(
            "Initializing Redis client with connection string: {}",
            redis_config.sanitized_connection_string,
        )

        retry = Retry(
            ExponentialBackoff(base=1, cap=redis_config.retry_backoff_cap),
            retries=redis_config.retries,
        )

        try:
            self._client = redis_async.from_url(
                redis_config.connection_string,
                encoding="utf-8",
                decode_responses=redis_config.decode_responses,
                encoding_errors="replace",
                max_connections=redis_config.max_connections,
                socket_timeout=redis_config.socket_timeout,
                socket_connect_timeout=redis_config.socket_connect_timeout,
                socket_keepalive=True,
                health_check_interval=30,
                retry=retry,
                client_name=redis_config.client_name,
            )
        except (RedisError, ValueError) as e:
            logger.error(
                "Failed to initialize Redis client: {}: {}", type(e).__name__, e
            )
            self._enabled = False
            self._client = None
            if config.app.environment == "production":
                raise
            return

        logger.info(
            "Redis client initialized (max_connections={}, socket_timeout={})",
            redis_config.max_connections,
            redis_config.socket_timeout,
        )

    def get_client(self) -> redis_async.Redis | None:
        """Get the Redis async client instance.

        Returns:
            Redis async client if enabled and connected, None otherwise.
        """
        if not self._enabled:
            logger.debug("Redis is disabled, returning None")
            return None

        if not self._client:
            logger.warning("Redis client not initialized, returning None")
            return None

        return self._client

    async def health_check(self) -> bool:
        """Perform a health check on the Redis connection.

        Returns:
            True if Redis is healthy and reachable, False otherwise.
        """
        if not self._enabled or not self._client:
            logger.debug("Redis is unavailable, health check skipped")
            return False

        try:
            await self._client.ping()
            return True
        except RedisError as e:
            logger.error("Redis health check failed: {}: {}", type(e).__name__, e)
            return False

    async def get_info(self) -> dict[str, Any] | None:
        """Get Redis server information for monitoring.

        Returns:
            Dictionary with Redis server info, or None if not available.
        """
        if not self._enabled or not self._client:
            return None

        try:
            info = await self._client.info()
        except RedisError as e:
            logger.error("Failed to get Redis info: {}: {}", type(e).__name__, e)
            return None
        return {
            "version": info.get("redis_version"),
            "uptime_seconds": info.get("uptime_in_seconds"),
            "connected_clients": info.get("connected_clients"),
            "used_memory_human": info.get("used_memory_human"),
        }

    async def close(self) -> None:
        """Close the Redis connection and clean up resources."""
        if self._client:
            try:
                logger.info("Closing Redis connection")
                await self._client.aclose()
                logger.info("Redis connection closed successfully")
            except RedisError as e:
                logger.error("Error closing Redis connection: {}: {}", type(e).__name__, e)
            finally:
                self._client = None

    @property
    def is_enabled(self) -> bool:
        """Check if Redis service is enabled."""
        return self._enabled

    @property
    def url(self) -> str | None:
        """Get the Redis connection URL."""
        return self._url
