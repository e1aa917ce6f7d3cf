"""Conversion between entity mappings and flat Redis hashes.

Redis hashes hold strings only. Timestamps are written as ISO-8601 and
recognised again on read by their shape. Callers pass the names of fields
declared as text so those are never sniffed; an undeclared field that happens
to look like an ISO-8601 instant is still read back as a datetime.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Collection, Mapping
from datetime import UTC, datetime
from typing import Any

ISO_DATETIME_RE = re.compile(
    r"\d{4}-[01]\d-[0-3]\dT[0-2]\d:[0-5]\d(?::[0-5]\d(?:\.\d+)?)?"
    r"(?:[+-][0-2]\d:[0-5]\d|Z)"
)


def format_datetime(value: datetime) -> str:
    """Render ``value`` as UTC ISO-8601 with a ``Z`` suffix.

    Millisecond precision is used when it is exact, which matches what
    JavaScript writers produce; otherwise microseconds are kept.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    timespec = "milliseconds" if value.microsecond % 1000 == 0 else "microseconds"
    return value.replace(tzinfo=None).isoformat(timespec=timespec) + "Z"


def parse_datetime(value: str) -> datetime | None:
    """Return the instant ``value`` denotes, or None if it is not one."""
    if not ISO_DATETIME_RE.fullmatch(value):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class HashCodec(ABC):
    """Converts entity mappings to Redis hash fields and back."""

    @abstractmethod
    def encode(self, values: Mapping[str, Any]) -> dict[str, str]:
        """Flatten ``values`` to string fields ready for HSET."""

    @abstractmethod
    def decode(
        self, fields: Mapping[Any, Any] | None, text_fields: Collection[str] = ()
    ) -> dict[str, Any] | None:
        """Rebuild a typed mapping from HGETALL output.

        Args:
            fields: Raw hash fields.
            text_fields: Field names whose values are returned as stored text.

        Returns:
            The decoded mapping, or None when the hash does not exist.
        """


class IsoDateHashCodec(HashCodec):
    """Default codec: ISO-8601 timestamps, everything else as text."""

    def encode(self, values: Mapping[str, Any]) -> dict[str, str]:
        encoded = {}
        for name, value in values.items():
            if value is None:
                continue
            encoded[name] = self._encode_value(value)
        return encoded

    def decode(
        self, fields: Mapping[Any, Any] | None, text_fields: Collection[str] = ()
    ) -> dict[str, Any] | None:
        if not fields:
            return None

        decoded = {}
        for name, value in fields.items():
            if isinstance(name, bytes):
                name = name.decode("utf-8")
            if isinstance(value, bytes):
                value = value.decode("utf-8")
            if name in text_fields:
                decoded[name] = value
                continue
            timestamp = parse_datetime(value)
            decoded[name] = timestamp if timestamp is not None else value
        return decoded

    @staticmethod
    def _encode_value(value: Any) -> str:
        if isinstance(value, datetime):
            return format_datetime(value)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
