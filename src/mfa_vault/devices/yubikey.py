"""YubiKey OTP device backed by the OATH application.

Requires yubikey-manager (``pip install mfa-vault[yubikey]``).

Entries are stored as TOTP credentials whose issuer and account name are the
display identity split at the first colon, so the Yubico Authenticator app
shows them as::

    --------------------------------------------
    |  aws                                     |
    |  123456 (after touch, if required)       |
    |  arn:aws:iam::111111111111:mfa/alice     |
    --------------------------------------------
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from ..exceptions import (
    DeviceCommunicationError,
    DeviceError,
    DeviceNotFoundError,
    DeviceStorageError,
)
from ..ports import OtpDevice
from .software import OTP_PERIOD, validate_entry_name

if TYPE_CHECKING:
    from collections.abc import Callable, Generator
    from datetime import datetime

    from ..config import VaultSettings
    from ..models import OtpSecret

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SW_NO_SPACE = 0x6A84


def _get_yubikit() -> Any:
    """Lazy import yubikit."""
    try:
        import yubikit.oath

        return yubikit
    except ImportError as e:
        raise ImportError(
            "yubikey-manager is required for YubiKey support. "
            "Install with: pip install mfa-vault[yubikey]"
        ) from e


@contextmanager
def open_oath_session(serial: int | None = None) -> Generator[Any, None, None]:
    """Open an OATH session on a connected YubiKey.

    Args:
        serial: Serial number of the key to use. Required when more than one
            key is connected.

    Raises:
        DeviceCommunicationError: No matching key, or more than one.
    """
    _get_yubikit()
    from ykman.device import list_all_devices
    from yubikit.core.smartcard import SmartCardConnection
    from yubikit.oath import OathSession

    devices = [
        (device, info)
        for device, info in list_all_devices()
        if serial is None or info.serial == serial
    ]
    if not devices:
        which = f" with serial {serial}" if serial is not None else ""
        raise DeviceCommunicationError(f"No YubiKey{which} connected")
    if len(devices) > 1:
        raise DeviceCommunicationError(
            "More than one YubiKey connected, select one by serial number"
        )

    device, _ = devices[0]
    with device.open_connection(SmartCardConnection) as connection:
        session = OathSession(connection)
        if session.locked:
            raise DeviceCommunicationError(
                "YubiKey OATH application is password protected"
            )
        yield session


class YubikeyOtpDevice(OtpDevice):
    """OTP device storing TOTP credentials on a YubiKey."""

    def __init__(
        self,
        *,
        serial: int | None = None,
        digits: int = 6,
        session_opener: Callable[[], Any] | None = None,
    ) -> None:
        """Initialize the device.

        Args:
            serial: Serial number of the key; None uses the only connected key.
            digits: Code length.
            session_opener: Context manager factory yielding an OATH session.
        """
        self.serial = serial
        self.digits = digits
        self.touch_required = False
        self._session_opener = session_opener or (lambda: open_oath_session(serial))

    @classmethod
    def from_settings(
        cls, settings: VaultSettings, *, serial: int | None = None
    ) -> YubikeyOtpDevice:
        """Create a device using the code length of ``settings``."""
        return cls(serial=serial, digits=settings.otp_digits)

    def label(self) -> str:
        if self.serial is None:
            return "YubiKey"
        return f"YubiKey {self.serial}"

    def require_touch(self, required: bool) -> None:
        self.touch_required = required

    def _run(self, operation: Callable[[Any], T]) -> T:
        try:
            with self._session_opener() as session:
                return operation(session)
        except DeviceError:
            raise
        except Exception as e:
            # ApduError carries the status word in ``sw``
            if getattr(e, "sw", None) == _SW_NO_SPACE:
                raise DeviceStorageError(f"{self.label()} has no space left") from e
            raise DeviceCommunicationError(f"{self.label()} operation failed") from e

    @staticmethod
    def _find(session: Any, name: str) -> Any:
        # Match on issuer and account; the raw id embeds the period
        # when it differs from 30 seconds.
        issuer, _, account = name.partition(":")
        for credential in session.list_credentials():
            if (credential.issuer or "") == issuer and credential.name == account:
                return credential
        return None

    async def add(self, name: str, secret: OtpSecret) -> None:
        validate_entry_name(name)
        _get_yubikit()
        from yubikit.oath import HASH_ALGORITHM, OATH_TYPE, CredentialData

        issuer, _, account = name.partition(":")
        data = CredentialData(
            name=account,
            oath_type=OATH_TYPE.TOTP,
            hash_algorithm=HASH_ALGORITHM.SHA1,
            secret=secret.value,
            digits=self.digits,
            period=OTP_PERIOD,
            issuer=issuer,
        )
        touch = self.touch_required

        def put(session: Any) -> None:
            session.put_credential(data, touch)

        await asyncio.to_thread(self._run, put)
        logger.debug("Stored OTP entry %r on %s (touch=%s)", name, self.label(), touch)

    async def get_otp(self, at: datetime, name: str) -> str:
        timestamp = int(at.timestamp())

        def calculate(session: Any) -> str:
            credential = self._find(session, name)
            if credential is None:
                raise DeviceNotFoundError(name, self.label())
            if credential.touch_required:
                logger.info("Touch %s to generate a code", self.label())
            return str(session.calculate_code(credential, timestamp).value)

        return await asyncio.to_thread(self._run, calculate)

    async def delete(self, name: str) -> None:
        def remove(session: Any) -> None:
            credential = self._find(session, name)
            if credential is None:
                raise DeviceNotFoundError(name, self.label())
            session.delete_credential(credential.id)

        await asyncio.to_thread(self._run, remove)


__all__: list[str] = [
    "YubikeyOtpDevice",
    "open_oath_session",
]
