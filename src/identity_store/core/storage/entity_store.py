"""Redis-backed store for users, accounts, sessions and verification tokens.

Each entity is one hash at a deterministic key. Secondary lookups go through
pointer keys: ``user:email:<email>`` holds a user id, and the by-user indexes
hold account/session keys (one pointer string per user, or a set of keys when
``index_mode="set"``).

Missing entities come back as ``None``; Redis errors propagate unchanged.
"""

from __future__ import annotations

import secrets
import uuid
from collections.abc import Mapping
from typing import Any, Literal, TypeVar

from loguru import logger
from pydantic import BaseModel
from redis.asyncio import Redis

from src.identity_store.core.models import (
    AdapterAccount,
    AdapterModel,
    AdapterSession,
    AdapterUser,
    SessionAndUser,
    SessionUpdate,
    VerificationToken,
)
from src.identity_store.core.storage.hash_codec import HashCodec, IsoDateHashCodec
from src.identity_store.core.storage.keys import KeyPrefixConfig, KeyResolver

M = TypeVar("M", bound=AdapterModel)

IndexMode = Literal["pointer", "set"]


def _coerce(model_class: type[M], value: BaseModel | Mapping[str, Any]) -> M:
    if isinstance(value, model_class):
        return value
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True, exclude_unset=True)
    return model_class.model_validate(value)


def _text(value: Any) -> str | None:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class _WriteBatch:
    """Ordered Redis write commands applied as one unit."""

    def __init__(self) -> None:
        self._commands: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def add(self, command: str, *args: Any, **kwargs: Any) -> _WriteBatch:
        self._commands.append((command, args, kwargs))
        return self

    def __len__(self) -> int:
        return len(self._commands)

    async def apply(self, client: Redis, transaction: bool) -> None:
        if not self._commands:
            return
        if transaction:
            async with client.pipeline(transaction=True) as pipe:
                for command, args, kwargs in self._commands:
                    getattr(pipe, command)(*args, **kwargs)
                await pipe.execute()
            return
        for command, args, kwargs in self._commands:
            await getattr(client, command)(*args, **kwargs)


class RedisEntityStore:
    """Entity store over an injected async Redis client.

    Args:
        client: ``redis.asyncio.Redis`` (or compatible) client, owned by the caller.
        prefixes: Key prefixes; a mapping is shallow-merged over the defaults.
        codec: Hash codec, defaults to ISO-8601 date sniffing.
        index_mode: ``"pointer"`` keeps one account/session key per user
            (compatible with existing data); ``"set"`` keeps all of them.
        use_transactions: Queue multi-key writes on a MULTI/EXEC pipeline.
    """

    def __init__(
        self,
        client: Redis,
        prefixes: KeyPrefixConfig | Mapping[str, str] | None = None,
        *,
        codec: HashCodec | None = None,
        index_mode: IndexMode = "pointer",
        use_transactions: bool = True,
    ) -> None:
        if isinstance(prefixes, Mapping):
            prefixes = KeyPrefixConfig.model_validate(dict(prefixes))
        if index_mode not in ("pointer", "set"):
            raise ValueError(f"Unknown index mode: {index_mode!r}")

        self._client = client
        self._keys = KeyResolver(prefixes)
        self._codec = codec or IsoDateHashCodec()
        self._index_mode = index_mode
        self._use_transactions = use_transactions

    @property
    def keys(self) -> KeyResolver:
        return self._keys

    @property
    def index_mode(self) -> IndexMode:
        return self._index_mode

    # -- low level -------------------------------------------------------

    async def _load(self, key: str, model_class: type[M]) -> dict[str, Any] | None:
        fields = await self._client.hgetall(key)
        return self._codec.decode(fields, model_class.text_fields())

    async def _load_model(self, model_class: type[M], key: str) -> M | None:
        values = await self._load(key, model_class)
        if values is None:
            return None
        return model_class.model_validate(values)

    def _put_hash(
        self,
        batch: _WriteBatch,
        key: str,
        entity: AdapterModel,
        previous: Mapping[str, Any] | None = None,
    ) -> None:
        """Queue a full overwrite of the hash at ``key`` with ``entity``."""
        fields = self._codec.encode(entity.to_hash_values())
        batch.add("hset", key, mapping=fields)
        if previous:
            stale = [name for name in previous if name not in fields]
            if stale:
                batch.add("hdel", key, *stale)

    async def _apply(self, batch: _WriteBatch) -> None:
        await batch.apply(self._client, self._use_transactions)

    async def _index_members(self, index_key: str) -> list[str]:
        if self._index_mode == "set":
            members = await self._client.smembers(index_key)
            return sorted(_text(member) for member in members)
        pointer = _text(await self._client.get(index_key))
        return [pointer] if pointer else []

    async def _index_add(self, batch: _WriteBatch, index_key: str, member_key: str) -> None:
        if self._index_mode == "set":
            batch.add("sadd", index_key, member_key)
            return
        current = _text(await self._client.get(index_key))
        if current and current != member_key:
            logger.warning(
                "Index {} now points at {}; {} is no longer reachable through it",
                index_key,
                member_key,
                current,
            )
        batch.add("set", index_key, member_key)

    async def _index_remove(
        self, batch: _WriteBatch, index_key: str, member_key: str
    ) -> None:
        if self._index_mode == "set":
            batch.add("srem", index_key, member_key)
            return
        # Leave the pointer alone if a later write re-pointed it elsewhere
        current = _text(await self._client.get(index_key))
        if current is None or current == member_key:
            batch.add("delete", index_key)

    async def _release_email(self, batch: _WriteBatch, email: str, user_id: str) -> None:
        email_key = self._keys.user_by_email_key(email)
        owner = _text(await self._client.get(email_key))
        if owner == user_id:
            batch.add("delete", email_key)
        elif owner:
            logger.warning("Email index {} belongs to user {}, left in place", email_key, owner)

    # -- users -----------------------------------------------------------

    async def create_user(self, user: AdapterUser | Mapping[str, Any]) -> AdapterUser:
        """Persist a new user under a freshly generated id."""
        user = _coerce(AdapterUser, user).model_copy(update={"id": str(uuid.uuid4())})

        batch = _WriteBatch()
        self._put_hash(batch, self._keys.user_key(user.id), user)
        if user.email:
            batch.add("set", self._keys.user_by_email_key(user.email), user.id)
        await self._apply(batch)

        logger.debug("Created user {}", user.id)
        return user

    async def get_user(self, user_id: str) -> AdapterUser | None:
        return await self._load_model(AdapterUser, self._keys.user_key(user_id))

    async def get_user_by_email(self, email: str) -> AdapterUser | None:
        user_id = _text(await self._client.get(self._keys.user_by_email_key(email)))
        if not user_id:
            return None
        user = await self.get_user(user_id)
        if user is None:
            logger.warning("Email index points at missing user {}", user_id)
        return user

    async def get_user_by_account(
        self, *, provider: str, provider_account_id: str
    ) -> AdapterUser | None:
        account = await self.get_account(provider, provider_account_id)
        if account is None:
            return None
        user = await self.get_user(account.user_id)
        if user is None:
            logger.warning(
                "Account {} belongs to missing user {}", account.id, account.user_id
            )
        return user

    async def update_user(
        self, user: AdapterUser | Mapping[str, Any]
    ) -> AdapterUser | None:
        """Merge the supplied fields over the stored user.

        Fields not supplied keep their stored values; a field supplied as
        None is removed. Returns None without writing if the user is unknown.
        """
        update = _coerce(AdapterUser, user)
        if not update.id:
            raise ValueError("update_user requires the user id")

        key = self._keys.user_key(update.id)
        previous = await self._load(key, AdapterUser)
        if previous is None:
            logger.debug("Update skipped, user {} not found", update.id)
            return None

        merged = AdapterUser.model_validate({**previous, **update.changed_values()})
        old_email = previous.get("email")

        batch = _WriteBatch()
        self._put_hash(batch, key, merged, previous)
        if old_email and old_email != merged.email:
            await self._release_email(batch, old_email, merged.id)
        if merged.email:
            batch.add("set", self._keys.user_by_email_key(merged.email), merged.id)
        await self._apply(batch)

        logger.debug("Updated user {}", merged.id)
        return merged

    async def delete_user(self, user_id: str) -> None:
        """Delete a user with its email pointer, accounts and sessions."""
        user = await self.get_user(user_id)
        if user is None:
            return

        account_index = self._keys.account_by_user_key(user_id)
        session_index = self._keys.session_by_user_key(user_id)
        account_keys = await self._index_members(account_index)
        session_keys = await self._index_members(session_index)

        batch = _WriteBatch()
        if user.email:
            await self._release_email(batch, user.email, user_id)
        batch.add("delete", account_index, session_index)
        if session_keys:
            batch.add("delete", *session_keys)
        if account_keys:
            batch.add("delete", *account_keys)
        batch.add("delete", self._keys.user_key(user_id))
        await self._apply(batch)

        logger.debug(
            "Deleted user {} with {} account(s) and {} session(s)",
            user_id,
            len(account_keys),
            len(session_keys),
        )

    # -- accounts --------------------------------------------------------

    async def link_account(
        self, account: AdapterAccount | Mapping[str, Any]
    ) -> AdapterAccount:
        """Store a provider account and index it under its user."""
        account = _coerce(AdapterAccount, account)
        account_id = self._keys.account_id(account.provider, account.provider_account_id)
        account = account.model_copy(update={"id": account_id})
        key = self._keys.account_key(account_id)

        batch = _WriteBatch()
        self._put_hash(batch, key, account)
        await self._index_add(batch, self._keys.account_by_user_key(account.user_id), key)
        await self._apply(batch)

        logger.debug("Linked account {} to user {}", account_id, account.user_id)
        return account

    async def get_account(
        self, provider: str, provider_account_id: str
    ) -> AdapterAccount | None:
        return await self.get_account_by_id(
            self._keys.account_id(provider, provider_account_id)
        )

    async def get_account_by_id(self, account_id: str) -> AdapterAccount | None:
        return await self._load_model(AdapterAccount, self._keys.account_key(account_id))

    async def list_accounts_for_user(self, user_id: str) -> list[AdapterAccount]:
        """Accounts reachable through the user's account index."""
        accounts = []
        for key in await self._index_members(self._keys.account_by_user_key(user_id)):
            account = await self._load_model(AdapterAccount, key)
            if account is None:
                logger.warning("Account index of user {} points at missing {}", user_id, key)
                continue
            accounts.append(account)
        return accounts

    async def unlink_account(
        self, provider: str, provider_account_id: str
    ) -> AdapterAccount | None:
        """Remove a provider account; returns the removed account, if any."""
        account_id = self._keys.account_id(provider, provider_account_id)
        key = self._keys.account_key(account_id)
        account = await self._load_model(AdapterAccount, key)
        if account is None:
            return None

        batch = _WriteBatch()
        batch.add("delete", key)
        await self._index_remove(batch, self._keys.account_by_user_key(account.user_id), key)
        await self._apply(batch)

        logger.debug("Unlinked account {} from user {}", account_id, account.user_id)
        return account

    # -- sessions --------------------------------------------------------

    async def create_session(
        self, session: AdapterSession | Mapping[str, Any]
    ) -> AdapterSession:
        """Store a session keyed by its token; token uniqueness is the caller's."""
        session = _coerce(AdapterSession, session)
        session = session.model_copy(update={"id": session.session_token})
        key = self._keys.session_key(session.session_token)

        batch = _WriteBatch()
        self._put_hash(batch, key, session)
        await self._index_add(batch, self._keys.session_by_user_key(session.user_id), key)
        await self._apply(batch)

        logger.debug("Created session for user {}", session.user_id)
        return session

    async def get_session(self, session_token: str) -> AdapterSession | None:
        return await self._load_model(AdapterSession, self._keys.session_key(session_token))

    async def get_session_and_user(self, session_token: str) -> SessionAndUser | None:
        session = await self.get_session(session_token)
        if session is None:
            return None
        user = await self.get_user(session.user_id)
        if user is None:
            logger.warning("Session belongs to missing user {}", session.user_id)
            return None
        return SessionAndUser(session=session, user=user)

    async def list_sessions_for_user(self, user_id: str) -> list[AdapterSession]:
        """Sessions reachable through the user's session index."""
        sessions = []
        for key in await self._index_members(self._keys.session_by_user_key(user_id)):
            session = await self._load_model(AdapterSession, key)
            if session is None:
                logger.warning("Session index of user {} points at a missing session", user_id)
                continue
            sessions.append(session)
        return sessions

    async def update_session(
        self, session: SessionUpdate | AdapterSession | Mapping[str, Any]
    ) -> AdapterSession | None:
        """Merge the supplied fields over the stored session, or None if unknown."""
        update = _coerce(SessionUpdate, session)
        key = self._keys.session_key(update.session_token)
        previous = await self._load(key, AdapterSession)
        if previous is None:
            return None

        merged = AdapterSession.model_validate({**previous, **update.changed_values()})

        batch = _WriteBatch()
        self._put_hash(batch, key, merged, previous)
        old_user_id = previous.get("userId")
        if old_user_id != merged.user_id:
            if old_user_id:
                await self._index_remove(batch, self._keys.session_by_user_key(old_user_id), key)
            await self._index_add(batch, self._keys.session_by_user_key(merged.user_id), key)
        await self._apply(batch)

        logger.debug("Updated session for user {}", merged.user_id)
        return merged

    async def delete_session(self, session_token: str) -> AdapterSession | None:
        """Remove a session; returns the removed session, if any."""
        session = await self.get_session(session_token)
        if session is None:
            return None
        key = self._keys.session_key(session_token)

        batch = _WriteBatch()
        batch.add("delete", key)
        await self._index_remove(batch, self._keys.session_by_user_key(session.user_id), key)
        await self._apply(batch)

        logger.debug("Deleted session for user {}", session.user_id)
        return session

    # -- verification tokens ---------------------------------------------

    async def create_verification_token(
        self, token: VerificationToken | Mapping[str, Any]
    ) -> VerificationToken:
        token = _coerce(VerificationToken, token)
        key = self._keys.verification_key(token.identifier)

        batch = _WriteBatch()
        # Replaces any pending challenge for the same identifier
        batch.add("delete", key)
        self._put_hash(batch, key, token)
        await self._apply(batch)

        logger.debug("Created verification token for {}", key)
        return token

    async def use_verification_token(
        self, identifier: str, token: str
    ) -> VerificationToken | None:
        """Consume a verification token.

        Returns the stored record when ``token`` matches, None otherwise.
        A token can be consumed once; concurrent uses race on the DEL and
        only the caller that removed the key gets the record.
        """
        key = self._keys.verification_key(identifier)
        stored = await self._load_model(VerificationToken, key)
        if stored is None:
            return None
        if not secrets.compare_digest(stored.token.encode(), token.encode()):
            logger.debug("Verification token mismatch for {}", key)
            return None

        if not await self._client.delete(key):
            return None
        logger.debug("Consumed verification token for {}", key)
        return stored

    async def delete_verification_token(self, identifier: str) -> None:
        await self._client.delete(self._keys.verification_key(identifier))
