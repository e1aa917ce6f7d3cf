"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, Field, computed_field

from src.identity_store.core.storage.keys import KeyPrefixConfig


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=True, description="Enable Redis service")
    url: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    decode_responses: bool = Field(
        default=True, description="Decode Redis responses to strings"
    )
    max_connections: int = Field(
        default=20, description="Maximum connections in the client pool"
    )
    socket_timeout: float = Field(
        default=5.0, description="Socket read/write timeout in seconds"
    )
    socket_connect_timeout: float = Field(
        default=5.0, description="Socket connect timeout in seconds"
    )
    retries: int = Field(
        default=6, description="Client-level retries on connection errors"
    )
    retry_backoff_cap: float = Field(
        default=10.0, description="Upper bound of the exponential backoff in seconds"
    )
    client_name: str = Field(
        default="identity_store", description="CLIENT SETNAME value"
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password:
            if "@" in self.url:
                # URL already has auth info
                return self.url
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url

    @property
    def sanitized_connection_string(self) -> str:
        """Connection string with any password masked, safe for logs."""
        parts = urlsplit(self.connection_string)
        if not parts.password:
            return self.connection_string
        netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
        return urlunsplit(parts._replace(netloc=netloc))


class StoreConfig(BaseModel):
    """Entity store layout and write behaviour."""

    key_prefixes: KeyPrefixConfig = Field(
        default_factory=KeyPrefixConfig, description="Key naming prefixes"
    )
    index_mode: Literal["pointer", "set"] = Field(
        default="pointer",
        description=(
            "How account/session by-user indexes are stored: a single pointer "
            "string (compatible layout) or a set of keys"
        ),
    )
    use_transactions: bool = Field(
        default=True,
        description="Apply multi-key writes through MULTI/EXEC pipelines",
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    store: StoreConfig = Field(
        default_factory=StoreConfig, description="Entity store configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
