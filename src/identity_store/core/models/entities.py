"""Identity entities persisted by the entity store.

Attribute names are snake_case; hash field names (aliases) follow the wire
format of the authentication layer that owns the records.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, get_args

from pydantic import BaseModel, ConfigDict, Field


class AdapterModel(BaseModel):
    """Base for stored entities.

    Unknown fields (e.g. ``role`` on a user) are kept and round-trip through
    storage unchanged.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_hash_values(self) -> dict[str, Any]:
        """All fields keyed by wire name, None values dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def changed_values(self) -> dict[str, Any]:
        """Only the fields the caller supplied, keyed by wire name."""
        return self.model_dump(by_alias=True, exclude_unset=True)

    @classmethod
    def text_fields(cls) -> frozenset[str]:
        """Wire names of the declared fields that never hold a timestamp."""
        names = set()
        for name, field in cls.model_fields.items():
            if field.annotation is datetime or datetime in get_args(field.annotation):
                continue
            names.add(field.alias or name)
        return frozenset(names)


class AdapterUser(AdapterModel):
    """A person known to the authentication layer."""

    id: str | None = Field(default=None, description="Opaque user id")
    email: str | None = Field(default=None, description="Unique email, when present")
    email_verified: datetime | None = Field(
        default=None, alias="emailVerified", description="When the email was verified"
    )
    name: str | None = Field(default=None, description="Display name")
    image: str | None = Field(default=None, description="Avatar URL")


class AdapterAccount(AdapterModel):
    """One third-party provider account linked to a user."""

    id: str | None = Field(
        default=None, description="Derived as <provider>:<providerAccountId>"
    )
    user_id: str = Field(alias="userId", description="Owning user id")
    type: str = Field(default="oauth", description="Account type (oauth, oidc, email)")
    provider: str = Field(description="Provider identifier")
    provider_account_id: str = Field(
        alias="providerAccountId", description="Account id at the provider"
    )
    refresh_token: str | None = None
    access_token: str | None = None
    expires_at: int | None = Field(
        default=None, description="Access token expiry, epoch seconds"
    )
    token_type: str | None = None
    scope: str | None = None
    id_token: str | None = None
    session_state: str | None = None


class AdapterSession(AdapterModel):
    """An active login, addressed by its session token."""

    id: str | None = Field(default=None, description="Equal to the session token")
    session_token: str = Field(alias="sessionToken", description="Opaque session token")
    user_id: str = Field(alias="userId", description="Owning user id")
    expires: datetime = Field(description="Session expiry")


class SessionUpdate(AdapterModel):
    """Partial session update; only the token is required."""

    session_token: str = Field(alias="sessionToken")
    user_id: str | None = Field(default=None, alias="userId")
    expires: datetime | None = None


class VerificationToken(AdapterModel):
    """A pending email verification challenge."""

    identifier: str = Field(description="Target of the challenge, e.g. an email")
    token: str = Field(description="Secret compared on use")
    expires: datetime = Field(description="Challenge expiry")


class SessionAndUser(BaseModel):
    session: AdapterSession
    user: AdapterUser
