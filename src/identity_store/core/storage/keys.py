"""Key naming for the entity store.

Every key is ``<base><kind-prefix><identity>``. The defaults reproduce the
layout already used by existing deployments and must not change.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

_KIND_PREFIX_FIELDS = (
    "user_key_prefix",
    "user_by_email_key_prefix",
    "account_key_prefix",
    "account_by_user_id_prefix",
    "session_key_prefix",
    "session_by_user_id_prefix",
    "verification_key_prefix",
)


class KeyPrefixConfig(BaseModel):
    """Per-kind key prefixes plus a base prefix prepended to all of them.

    Accepts both the snake_case field names and the camelCase option names
    (``baseKeyPrefix``, ``userKeyPrefix``, ...).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    base_key_prefix: str = Field(default="", alias="baseKeyPrefix")
    user_key_prefix: str = Field(default="user:", alias="userKeyPrefix")
    user_by_email_key_prefix: str = Field(
        default="user:email:", alias="userByEmailKeyPrefix"
    )
    account_key_prefix: str = Field(default="account:", alias="accountKeyPrefix")
    account_by_user_id_prefix: str = Field(
        default="account:user:", alias="accountByUserIdPrefix"
    )
    session_key_prefix: str = Field(default="session:", alias="sessionKeyPrefix")
    session_by_user_id_prefix: str = Field(
        default="session:user:", alias="sessionByUserIdPrefix"
    )
    verification_key_prefix: str = Field(
        default="verification:", alias="verificationKeyPrefix"
    )

    @model_validator(mode="after")
    def _check_prefixes(self) -> KeyPrefixConfig:
        prefixes = {name: getattr(self, name) for name in _KIND_PREFIX_FIELDS}

        empty = [name for name, value in prefixes.items() if not value]
        if empty:
            raise ValueError(f"Key prefixes must not be empty: {', '.join(empty)}")

        seen: dict[str, str] = {}
        for name, value in prefixes.items():
            if value in seen:
                raise ValueError(
                    f"Key prefixes {seen[value]} and {name} collide on {value!r}"
                )
            seen[value] = name
        return self


class KeyResolver:
    """Maps (entity kind, identity) to a fully-qualified store key."""

    def __init__(self, prefixes: KeyPrefixConfig | None = None) -> None:
        prefixes = prefixes or KeyPrefixConfig()
        base = prefixes.base_key_prefix
        self.prefixes = prefixes
        self._user = base + prefixes.user_key_prefix
        self._user_by_email = base + prefixes.user_by_email_key_prefix
        self._account = base + prefixes.account_key_prefix
        self._account_by_user = base + prefixes.account_by_user_id_prefix
        self._session = base + prefixes.session_key_prefix
        self._session_by_user = base + prefixes.session_by_user_id_prefix
        self._verification = base + prefixes.verification_key_prefix

    @staticmethod
    def account_id(provider: str, provider_account_id: str) -> str:
        return f"{provider}:{provider_account_id}"

    def user_key(self, user_id: str) -> str:
        return self._user + user_id

    def user_by_email_key(self, email: str) -> str:
        return self._user_by_email + email

    def account_key(self, account_id: str) -> str:
        return self._account + account_id

    def account_by_user_key(self, user_id: str) -> str:
        return self._account_by_user + user_id

    def session_key(self, session_token: str) -> str:
        return self._session + session_token

    def session_by_user_key(self, user_id: str) -> str:
        return self._session_by_user + user_id

    def verification_key(self, identifier: str) -> str:
        return self._verification + identifier
