"""Shared test constants and doubles."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from mfa_vault.devices import InMemoryOtpSecretStore, SoftwareOtpDevice

if TYPE_CHECKING:
    from mfa_vault.models import OtpSecret

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 10, tzinfo=timezone.utc)
ACCOUNT_ID = "111111111111"
USER_ARN = f"arn:aws:iam::{ACCOUNT_ID}:user/alice"
DEVICE_ARN = f"arn:aws:iam::{ACCOUNT_ID}:mfa/alice"
DISPLAY_IDENTITY = f"aws:{DEVICE_ARN}"
SEED = "JBSWY3DPEHPK3PXP"


def fixed_clock() -> datetime:
    return FIXED_NOW


class RecordingDevice(SoftwareOtpDevice):
    """Software device remembering every call made to it."""

    def __init__(self, **kwargs) -> None:
        self.store = InMemoryOtpSecretStore()
        super().__init__(self.store, **kwargs)
        self.added: list[tuple[str, OtpSecret]] = []
        self.otp_times: list[datetime] = []
        self.deleted: list[str] = []

    async def add(self, name: str, secret: OtpSecret) -> None:
        self.added.append((name, secret))
        await super().add(name, secret)

    async def get_otp(self, at: datetime, name: str) -> str:
        self.otp_times.append(at)
        return await super().get_otp(at, name)

    async def delete(self, name: str) -> None:
        self.deleted.append(name)
        await super().delete(name)
