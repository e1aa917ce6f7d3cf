"""Shared pytest fixtures for the entity store tests."""

from .entities import *  # noqa: F401,F403
from .fake_redis import *  # noqa: F401,F403
