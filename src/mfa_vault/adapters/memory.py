"""In-memory IAM and STS fakes for TESTING ONLY.

``InMemoryIamDeviceApi`` behaves like the virtual MFA part of IAM closely
enough to run the enrollment and teardown protocols end to end: it issues
random seeds, checks the two enablement codes with pyotp and reports
``NoSuchEntity`` for missing devices.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pyotp

from ..exceptions import NoSuchEntityError, RemoteApiError
from ..ports import CreatedVirtualDevice, IIamDeviceApi, ISecurityTokenApi

if TYPE_CHECKING:
    from collections.abc import Callable

_STEP = timedelta(seconds=30)


@dataclass
class VirtualDeviceRecord:
    """State of one fake virtual MFA device."""

    serial_number: str
    seed: str = field(repr=False)
    user_name: str | None = None

    @property
    def enabled(self) -> bool:
        return self.user_name is not None


class InMemoryIamDeviceApi(IIamDeviceApi):
    """Fake IAM virtual MFA API.

    Attributes:
        devices: Devices by serial number.
        calls: ``(operation, args)`` tuples in call order.
    """

    def __init__(
        self,
        *,
        account_id: str = "111111111111",
        partition: str = "aws",
        seed_factory: Callable[[], str] = pyotp.random_base32,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.account_id = account_id
        self.partition = partition
        self.devices: dict[str, VirtualDeviceRecord] = {}
        self.calls: list[tuple[str, tuple[str, ...]]] = []
        self._seed_factory = seed_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._failures: dict[str, Exception] = {}

    def fail_next(self, operation: str, error: Exception) -> None:
        """Make the next call of ``operation`` raise ``error``."""
        self._failures[operation] = error

    def _record(self, operation: str, *args: str) -> None:
        self.calls.append((operation, args))
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    def _get(self, serial_number: str, operation: str) -> VirtualDeviceRecord:
        device = self.devices.get(serial_number)
        if device is None:
            raise NoSuchEntityError(
                f"MFA device with serial number {serial_number} does not exist.",
                operation=operation,
            )
        return device

    async def create_virtual_device(self, name: str) -> CreatedVirtualDevice:
        self._record("create_virtual_device", name)
        serial = f"arn:{self.partition}:iam::{self.account_id}:mfa/{name}"
        if serial in self.devices:
            raise RemoteApiError(
                f"MFADevice entity at the same path and name already exists: {name}",
                code="EntityAlreadyExists",
                operation="CreateVirtualMFADevice",
            )
        seed = self._seed_factory()
        self.devices[serial] = VirtualDeviceRecord(serial_number=serial, seed=seed)
        return CreatedVirtualDevice(serial_number=serial, base32_seed=seed)

    async def enable_device(
        self,
        serial_number: str,
        user_name: str,
        code1: str,
        code2: str,
    ) -> None:
        self._record("enable_device", serial_number, user_name, code1, code2)
        device = self._get(serial_number, "EnableMFADevice")
        if device.enabled:
            raise RemoteApiError(
                "MFA device is already in use",
                code="EntityAlreadyExists",
                operation="EnableMFADevice",
            )

        totp = pyotp.TOTP(device.seed)
        now = self._clock()
        accepted = any(
            totp.at(now + offset * _STEP) == code1
            and totp.at(now + (offset + 1) * _STEP) == code2
            for offset in (-1, 0, 1)
        )
        if not accepted:
            raise RemoteApiError(
                "Authentication code for the MFA device is not valid.",
                code="InvalidAuthenticationCode",
                operation="EnableMFADevice",
            )
        device.user_name = user_name

    async def deactivate_device(self, serial_number: str, user_name: str) -> None:
        self._record("deactivate_device", serial_number, user_name)
        device = self._get(serial_number, "DeactivateMFADevice")
        if device.user_name != user_name:
            raise NoSuchEntityError(
                f"MFA device {serial_number} is not enabled for {user_name}.",
                operation="DeactivateMFADevice",
            )
        device.user_name = None

    async def delete_virtual_device(self, serial_number: str) -> None:
        self._record("delete_virtual_device", serial_number)
        device = self._get(serial_number, "DeleteVirtualMFADevice")
        if device.enabled:
            raise RemoteApiError(
                "MFA device must be deactivated before deletion.",
                code="DeleteConflict",
                operation="DeleteVirtualMFADevice",
            )
        del self.devices[serial_number]


class InMemorySecurityTokenApi(ISecurityTokenApi):
    """Fake STS returning a fixed caller identity."""

    def __init__(self, caller_arn: str) -> None:
        self.caller_arn = caller_arn
        self.calls = 0

    async def get_caller_identity(self) -> str:
        self.calls += 1
        return self.caller_arn


__all__: list[str] = [
    "VirtualDeviceRecord",
    "InMemoryIamDeviceApi",
    "InMemorySecurityTokenApi",
]
