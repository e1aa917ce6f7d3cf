"""Core services exports."""

from .redis_service import RedisService
from .store_factory import build_entity_store, open_entity_store

__all__ = [
    "RedisService",
    "build_entity_store",
    "open_entity_store",
]
