"""Cached temporary-credential sessions and their invalidation.

Sessions are keyed by profile name and MFA serial. After a virtual MFA
device is removed, every session cached for the profile is deleted: a
session obtained with a code from the removed device must not be trusted
for the rest of its advertised lifetime. Sessions of other profiles are
left alone.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator

from .exceptions import SessionInvalidationError
from .models import AwsCredentials
from .observability import VaultMetrics
from .ports import ISessionCache

logger = logging.getLogger(__name__)

_KEY_SCHEME = "session"


def _encode(value: str) -> str:
    return base64.urlsafe_b64encode(value.encode("utf-8")).decode("ascii").rstrip("=")


def _decode(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


@dataclass(frozen=True)
class SessionKey:
    """Key of one cached session.

    Formatted as ``session:<b64 profile>:<b64 mfa serial>:<unix expiration>``.
    Encoding the profile keeps matching exact: profile ``dev`` never matches
    the sessions of ``dev-admin``.
    """

    profile_name: str
    mfa_serial: str
    expiration: datetime

    def format(self) -> str:
        return ":".join(
            [
                _KEY_SCHEME,
                _encode(self.profile_name),
                _encode(self.mfa_serial),
                str(int(self.expiration.timestamp())),
            ]
        )

    @classmethod
    def parse(cls, key: str) -> SessionKey:
        """Parse a formatted key.

        Raises:
            ValueError: If ``key`` is not a session key.
        """
        parts = key.split(":")
        if len(parts) != 4 or parts[0] != _KEY_SCHEME:
            raise ValueError(f"Not a session key: {key!r}")
        try:
            return cls(
                profile_name=_decode(parts[1]),
                mfa_serial=_decode(parts[2]),
                expiration=datetime.fromtimestamp(int(parts[3]), tz=timezone.utc),
            )
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise ValueError(f"Not a session key: {key!r}") from e

    @staticmethod
    def profile_pattern(profile_name: str) -> str:
        """Glob matching every key of ``profile_name``."""
        return f"{_KEY_SCHEME}:{_encode(profile_name)}:*"


class CachedSession(BaseModel):
    """A cached set of temporary credentials."""

    model_config = ConfigDict(frozen=True)

    profile_name: str
    mfa_serial: str = ""
    expiration: datetime
    credentials: AwsCredentials

    @field_validator("expiration")
    @classmethod
    def _expiration_in_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are taken as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def key(self) -> SessionKey:
        return SessionKey(self.profile_name, self.mfa_serial, self.expiration)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expiration


class InMemorySessionCache(ISessionCache):
    """In-memory session cache for TESTING ONLY.

    ⚠️ WARNING: Credentials are held in plain process memory.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, CachedSession] = {}

    async def store(self, session: CachedSession) -> None:
        self._sessions[session.key.format()] = session

    async def list_sessions(
        self, profile_name: str | None = None
    ) -> list[CachedSession]:
        return [
            s
            for s in self._sessions.values()
            if profile_name is None or s.profile_name == profile_name
        ]

    async def delete_sessions_for_profile(self, profile_name: str) -> int:
        keys = [
            key
            for key, session in self._sessions.items()
            if session.profile_name == profile_name
        ]
        for key in keys:
            del self._sessions[key]
        return len(keys)


class SessionCacheInvalidator:
    """Deletes cached sessions of a profile after its MFA device is removed."""

    def __init__(self, cache: ISessionCache) -> None:
        self._cache = cache

    async def invalidate_profile_sessions(self, profile_name: str) -> int:
        """Delete every cached session keyed by ``profile_name``.

        Returns:
            Number of sessions removed. More than one is an anomaly that is
            logged, not raised.

        Raises:
            SessionInvalidationError: If the cache cannot be updated.
        """
        with VaultMetrics.operation("invalidate_sessions"):
            try:
                count = await self._cache.delete_sessions_for_profile(profile_name)
            except Exception as e:
                raise SessionInvalidationError(
                    f"Unable to delete cached sessions for {profile_name!r}",
                    profile_name=profile_name,
                ) from e

        if count == 1:
            logger.info("Deleted session for %r", profile_name)
        elif count > 1:
            logger.warning("Deleted %d sessions for %r", count, profile_name)
        else:
            logger.debug("No cached session for %r", profile_name)
        return count


__all__: list[str] = [
    "SessionKey",
    "CachedSession",
    "InMemorySessionCache",
    "SessionCacheInvalidator",
]
