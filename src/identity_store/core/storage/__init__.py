"""Redis hash storage for identity entities."""

from .entity_store import RedisEntityStore
from .hash_codec import HashCodec, IsoDateHashCodec
from .keys import KeyPrefixConfig, KeyResolver

__all__ = [
    "HashCodec",
    "IsoDateHashCodec",
    "KeyPrefixConfig",
    "KeyResolver",
    "RedisEntityStore",
]
