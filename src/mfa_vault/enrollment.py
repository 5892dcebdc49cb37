"""Virtual MFA device enrollment.

Enrollment is a two step remote handshake around a local device step::

    create (IAM) -> add seed (device) -> two codes (device) -> enable (IAM)

IAM requires two codes from consecutive 30-second windows, proving the
device holds the seed and keeps correct time. A failure after ``create``
leaves the remote device created but not enabled. Nothing is rolled back;
``TeardownProtocol`` removes such a pending device.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from .arn import Arn, to_display_identity
from .config import VaultSettings
from .exceptions import (
    DeviceEnrollmentError,
    RemoteProvisioningError,
    SecretDecodingError,
)
from .models import EnrollmentResult, OtpSecret
from .observability import VaultMetrics, VaultTracing

if TYPE_CHECKING:
    from collections.abc import Callable

    from .ports import IIamDeviceApi, OtpDevice

logger = logging.getLogger(__name__)

# IAM accepts codes from consecutive windows of this fixed length only.
OTP_STEP = timedelta(seconds=30)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EnrollmentProtocol:
    """Creates and enables a virtual MFA device whose seed lives on an OtpDevice.

    Example:
        ```python
        protocol = EnrollmentProtocol(remote.iam, YubikeyOtpDevice())
        result = await protocol.enroll("alice")
        print(result.provisioning_uri())  # scan into a backup authenticator
        ```
    """

    def __init__(
        self,
        iam: IIamDeviceApi,
        device: OtpDevice,
        *,
        settings: VaultSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._iam = iam
        self._device = device
        self._settings = settings or VaultSettings()
        self._clock = clock

    async def enroll(self, user_name: str) -> EnrollmentResult:
        """Create a virtual MFA device for ``user_name`` and enable it.

        Returns:
            EnrollmentResult with the device ARN and the seed, so the caller
            can also enroll a backup authenticator app. The hardware-backed
            flow has no recovery path of its own.

        Raises:
            RemoteProvisioningError: Creating or enabling the device failed.
            SecretDecodingError: The seed returned by IAM is not base32.
            MalformedIdentifierError: IAM returned an unparseable serial.
            DeviceEnrollmentError: The OTP device rejected the seed or could
                not derive codes.
        """
        with VaultMetrics.operation("enroll"), VaultTracing.span(
            "enroll", attributes={"mfa.user_name": user_name}
        ):
            serial, secret = await self._create(user_name)
            device_arn = Arn.parse(serial)
            name = to_display_identity(device_arn, self._settings.issuer_label)

            await self._add_to_device(name, secret, serial)
            code1, code2 = await self._derive_codes(name)
            logger.info(
                "Enabling virtual MFA device %s with codes %s and %s",
                serial,
                code1,
                code2,
            )
            await self._enable(serial, user_name, code1, code2)

        logger.info("Virtual MFA device %s enabled for %s", serial, user_name)
        return EnrollmentResult(
            device_arn=device_arn,
            display_identity=name,
            user_name=user_name,
            secret=secret,
            uri_issuer=self._settings.uri_issuer,
        )

    async def _create(self, user_name: str) -> tuple[str, OtpSecret]:
        try:
            created = await self._iam.create_virtual_device(user_name)
        except Exception as e:
            raise RemoteProvisioningError(
                f"Error creating virtual MFA device for IAM user {user_name!r}",
                operation="create",
                identifier=user_name,
            ) from e

        try:
            secret = OtpSecret.from_base32(created.base32_seed)
        except SecretDecodingError as e:
            raise SecretDecodingError(
                f"Error decoding seed of virtual MFA device {created.serial_number}"
            ) from e
        return created.serial_number, secret

    async def _add_to_device(self, name: str, secret: OtpSecret, serial: str) -> None:
        try:
            await self._device.add(name, secret)
        except Exception as e:
            logger.warning(
                "Virtual MFA device %s was created but not enabled; "
                "remove it before enrolling again",
                serial,
            )
            raise DeviceEnrollmentError(
                f"Error adding {name!r} to {self._device.label()}",
                name=name,
                device_label=self._device.label(),
            ) from e

    async def _derive_codes(self, name: str) -> tuple[str, str]:
        now = self._clock()
        codes: list[str] = []
        for ordinal, at in (("first", now), ("second", now + OTP_STEP)):
            try:
                codes.append(await self._device.get_otp(at, name))
            except Exception as e:
                raise DeviceEnrollmentError(
                    f"Error getting {ordinal} OTP for {name!r}",
                    name=name,
                    device_label=self._device.label(),
                ) from e
        return codes[0], codes[1]

    async def _enable(
        self, serial: str, user_name: str, code1: str, code2: str
    ) -> None:
        try:
            await self._iam.enable_device(serial, user_name, code1, code2)
        except Exception as e:
            raise RemoteProvisioningError(
                f"Error enabling {self._device.label()} as virtual MFA device "
                f"{serial} for {user_name!r}",
                operation="enable",
                identifier=serial,
            ) from e


__all__: list[str] = ["EnrollmentProtocol"]
