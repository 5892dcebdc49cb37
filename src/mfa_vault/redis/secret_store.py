"""Redis implementation of IOtpSecretStore."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..models import OtpSecret
from ..ports import IOtpSecretStore

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from ..config import VaultSettings

logger = logging.getLogger("mfa_vault.redis.secrets")


def _text(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


class RedisOtpSecretStore(IOtpSecretStore):
    """Seeds of a software OTP device, base32 encoded under ``<prefix>:<name>``.

    Secrets are stored as-is; protect the Redis instance accordingly
    (ACLs, TLS, encryption at rest).
    """

    def __init__(
        self,
        redis_client: Redis[Any],
        *,
        prefix: str = "mfa_vault:otp",
    ) -> None:
        self._redis = redis_client
        self._prefix = prefix

    @classmethod
    def from_settings(
        cls, redis_client: Redis[Any], settings: VaultSettings
    ) -> RedisOtpSecretStore:
        return cls(redis_client, prefix=settings.secret_key_prefix)

    def _key(self, name: str) -> str:
        return f"{self._prefix}:{name}"

    async def put(self, name: str, secret: bytes) -> None:
        await self._redis.set(self._key(name), OtpSecret(secret).to_base32())

    async def get(self, name: str) -> bytes | None:
        raw = await self._redis.get(self._key(name))
        if not raw:
            return None
        return OtpSecret.from_base32(_text(raw)).value

    async def delete(self, name: str) -> bool:
        return bool(await self._redis.delete(self._key(name)))

    async def names(self) -> list[str]:
        names: list[str] = []
        start = len(self._prefix) + 1
        cursor: int = 0
        while True:
            cursor, keys = await self._redis.scan(cursor, match=f"{self._prefix}:*")
            names.extend(_text(k)[start:] for k in keys)
            if cursor == 0:
                break
        return names


__all__: list[str] = ["RedisOtpSecretStore"]
