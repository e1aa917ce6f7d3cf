"""Stored identity entity models."""

from .entities import (
    AdapterAccount,
    AdapterModel,
    AdapterSession,
    AdapterUser,
    SessionAndUser,
    SessionUpdate,
    VerificationToken,
)

__all__ = [
    "AdapterAccount",
    "AdapterModel",
    "AdapterSession",
    "AdapterUser",
    "SessionAndUser",
    "SessionUpdate",
    "VerificationToken",
]
