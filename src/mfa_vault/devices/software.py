"""Software OTP device.

Derives RFC 6238 codes with pyotp from seeds held in an IOtpSecretStore.
Backed by ``RedisOtpSecretStore`` it persists secrets durably; with
``InMemoryOtpSecretStore`` it is a test double for a hardware token.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pyotp

from ..exceptions import (
    DeviceCommunicationError,
    DeviceNotFoundError,
    DeviceStorageError,
)
from ..models import OtpSecret
from ..ports import IOtpSecretStore, OtpDevice

if TYPE_CHECKING:
    from datetime import datetime

    from ..config import VaultSettings

logger = logging.getLogger(__name__)

# IAM virtual devices only accept 30-second codes
OTP_PERIOD = 30


def validate_entry_name(name: str) -> None:
    """Check ``name`` is shaped like a display identity (``issuer:account``).

    Raises:
        DeviceStorageError: If the issuer or the account part is empty.
    """
    issuer, sep, account = name.partition(":")
    if not sep or not issuer or not account:
        raise DeviceStorageError(
            f"OTP entry name {name!r} must have the form 'issuer:account'"
        )


class InMemoryOtpSecretStore(IOtpSecretStore):
    """In-memory secret store for TESTING ONLY.

    ⚠️ WARNING: Secrets are stored in plain text in memory.
    Do NOT use in production!
    """

    def __init__(self) -> None:
        self._secrets: dict[str, bytes] = {}

    async def put(self, name: str, secret: bytes) -> None:
        self._secrets[name] = secret

    async def get(self, name: str) -> bytes | None:
        return self._secrets.get(name)

    async def delete(self, name: str) -> bool:
        return self._secrets.pop(name, None) is not None

    async def names(self) -> list[str]:
        return list(self._secrets)


class SoftwareOtpDevice(OtpDevice):
    """OTP device computing codes in software.

    Example:
        ```python
        device = SoftwareOtpDevice(RedisOtpSecretStore(redis_client))
        await device.add("aws:arn:aws:iam::111111111111:mfa/alice", secret)
        code = await device.get_otp(datetime.now(timezone.utc), name)
        ```
    """

    def __init__(
        self,
        store: IOtpSecretStore,
        *,
        digits: int = 6,
        max_entries: int | None = None,
        label: str = "software",
    ) -> None:
        """Initialize the device.

        Args:
            store: Where seeds are persisted.
            digits: Code length.
            max_entries: Capacity; None for unlimited.
            label: Diagnostic name.
        """
        self._store = store
        self.digits = digits
        self.max_entries = max_entries
        self._label = label
        self.touch_required = False

    @classmethod
    def from_settings(
        cls, store: IOtpSecretStore, settings: VaultSettings, **kwargs: Any
    ) -> SoftwareOtpDevice:
        """Create a device using the code length of ``settings``."""
        return cls(store, digits=settings.otp_digits, **kwargs)

    def label(self) -> str:
        return self._label

    def require_touch(self, required: bool) -> None:
        # Nothing to touch on a software token.
        self.touch_required = required

    async def add(self, name: str, secret: OtpSecret) -> None:
        validate_entry_name(name)
        try:
            names = await self._store.names()
            if (
                self.max_entries is not None
                and name not in names
                and len(names) >= self.max_entries
            ):
                raise DeviceStorageError(
                    f"{self._label} is full ({self.max_entries} entries)"
                )
            await self._store.put(name, secret.value)
        except DeviceStorageError:
            raise
        except Exception as e:
            raise DeviceCommunicationError(
                f"Unable to store {name!r} on {self._label}"
            ) from e
        logger.debug("Stored OTP entry %r on %s", name, self._label)

    async def get_otp(self, at: datetime, name: str) -> str:
        try:
            seed = await self._store.get(name)
        except Exception as e:
            raise DeviceCommunicationError(
                f"Unable to read {name!r} from {self._label}"
            ) from e
        if seed is None:
            raise DeviceNotFoundError(name, self._label)

        totp = pyotp.TOTP(
            OtpSecret(seed).to_base32(),
            digits=self.digits,
            interval=OTP_PERIOD,
        )
        return totp.at(at)

    async def delete(self, name: str) -> None:
        try:
            existed = await self._store.delete(name)
        except Exception as e:
            raise DeviceCommunicationError(
                f"Unable to delete {name!r} from {self._label}"
            ) from e
        if not existed:
            raise DeviceNotFoundError(name, self._label)


__all__: list[str] = [
    "OTP_PERIOD",
    "InMemoryOtpSecretStore",
    "SoftwareOtpDevice",
    "validate_entry_name",
]
