"""Redis implementation of ISessionCache."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ..models import REVEAL_SECRETS
from ..ports import ISessionCache
from ..session import CachedSession, SessionKey

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from ..config import VaultSettings

logger = logging.getLogger("mfa_vault.redis.sessions")


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


class RedisSessionCache(ISessionCache):
    """Cached sessions stored as JSON under ``<prefix>:session:...`` keys.

    Keys expire together with the credentials they hold. Unlike a read-through
    cache, failures propagate: a session that could not be deleted must not be
    reported as deleted.
    """

    def __init__(
        self,
        redis_client: Redis[Any],
        *,
        prefix: str = "mfa_vault:session",
    ) -> None:
        self._redis = redis_client
        self._prefix = prefix

    @classmethod
    def from_settings(
        cls, redis_client: Redis[Any], settings: VaultSettings
    ) -> RedisSessionCache:
        return cls(redis_client, prefix=settings.session_key_prefix)

    def _key(self, key: SessionKey) -> str:
        return f"{self._prefix}:{key.format()}"

    async def _scan(self, pattern: str) -> list[str]:
        keys: list[str] = []
        cursor: int = 0
        while True:
            cursor, batch = await self._redis.scan(cursor, match=pattern)
            keys.extend(_text(k) for k in batch)
            if cursor == 0:
                break
        return keys

    async def store(self, session: CachedSession) -> None:
        ttl = int((session.expiration - datetime.now(timezone.utc)).total_seconds())
        if ttl <= 0:
            logger.debug("Not caching expired session for %r", session.profile_name)
            return

        payload = session.model_dump_json(context={REVEAL_SECRETS: True})
        await self._redis.setex(self._key(session.key), ttl, payload)

    async def list_sessions(
        self, profile_name: str | None = None
    ) -> list[CachedSession]:
        if profile_name is None:
            pattern = f"{self._prefix}:session:*"
        else:
            pattern = f"{self._prefix}:{SessionKey.profile_pattern(profile_name)}"

        keys = await self._scan(pattern)
        if not keys:
            return []

        sessions: list[CachedSession] = []
        for raw in await self._redis.mget(keys):
            if not raw:
                continue
            sessions.append(CachedSession.model_validate_json(raw))
        return sessions

    async def delete_sessions_for_profile(self, profile_name: str) -> int:
        keys = await self._scan(
            f"{self._prefix}:{SessionKey.profile_pattern(profile_name)}"
        )
        if not keys:
            return 0
        return int(await self._redis.delete(*keys))


__all__: list[str] = ["RedisSessionCache"]
