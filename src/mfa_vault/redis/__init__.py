"""Redis-backed session cache and OTP secret store."""

from __future__ import annotations

from .secret_store import RedisOtpSecretStore
from .session_cache import RedisSessionCache

__all__ = [
    "RedisOtpSecretStore",
    "RedisSessionCache",
]
