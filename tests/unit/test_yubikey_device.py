"""Tests for the YubiKey OTP device with a fake OATH session."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import pytest
from support import DISPLAY_IDENTITY, FIXED_NOW, SEED

from mfa_vault.config import VaultSettings
from mfa_vault.devices import YubikeyOtpDevice
from mfa_vault.exceptions import (
    DeviceCommunicationError,
    DeviceNotFoundError,
    DeviceStorageError,
)
from mfa_vault.models import OtpSecret

pytest.importorskip("yubikit")


@dataclass
class FakeCredential:
    id: bytes
    issuer: str | None
    name: str
    touch_required: bool = False


@dataclass
class FakeCode:
    value: str


class ApduError(Exception):
    def __init__(self, sw: int) -> None:
        super().__init__(f"APDU error: SW=0x{sw:04x}")
        self.sw = sw


class FakeOathSession:
    """Records calls the way an OathSession would receive them."""

    def __init__(self) -> None:
        self.credentials: dict[bytes, Any] = {}
        self.calculated: list[tuple[bytes, int]] = []
        self.put_error: Exception | None = None

    def put_credential(self, data: Any, touch_required: bool = False) -> None:
        if self.put_error is not None:
            raise self.put_error
        credential_id = data.get_id()
        self.credentials[credential_id] = (data, touch_required)

    def list_credentials(self) -> list[FakeCredential]:
        return [
            FakeCredential(
                id=cid, issuer=data.issuer, name=data.name, touch_required=touch
            )
            for cid, (data, touch) in self.credentials.items()
        ]

    def calculate_code(self, credential: FakeCredential, timestamp: int) -> FakeCode:
        self.calculated.append((credential.id, timestamp))
        return FakeCode("123456")

    def delete_credential(self, credential_id: bytes) -> None:
        del self.credentials[credential_id]


@pytest.fixture
def oath() -> FakeOathSession:
    return FakeOathSession()


@pytest.fixture
def yubikey(oath) -> YubikeyOtpDevice:
    @contextmanager
    def opener():
        yield oath

    return YubikeyOtpDevice(serial=12345678, session_opener=opener)


class TestYubikeyOtpDevice:
    """Test YubikeyOtpDevice."""

    def test_label(self, yubikey) -> None:
        """Test the label includes the serial number."""
        assert yubikey.label() == "YubiKey 12345678"
        assert YubikeyOtpDevice().label() == "YubiKey"

    @pytest.mark.asyncio
    async def test_add_splits_issuer_and_account(self, yubikey, oath) -> None:
        """Test the credential is stored as TOTP with issuer 'aws'."""
        yubikey.require_touch(True)
        await yubikey.add(DISPLAY_IDENTITY, OtpSecret.from_base32(SEED))

        ((data, touch),) = oath.credentials.values()
        assert data.issuer == "aws"
        assert data.name == "arn:aws:iam::111111111111:mfa/alice"
        assert data.period == 30
        assert data.digits == 6
        assert touch is True

    @pytest.mark.asyncio
    async def test_get_otp_uses_timestamp(self, yubikey, oath) -> None:
        """Test codes are calculated for the requested time."""
        await yubikey.add(DISPLAY_IDENTITY, OtpSecret.from_base32(SEED))

        code = await yubikey.get_otp(FIXED_NOW, DISPLAY_IDENTITY)

        assert code == "123456"
        assert oath.calculated == [
            (DISPLAY_IDENTITY.encode(), int(FIXED_NOW.timestamp()))
        ]

    @pytest.mark.asyncio
    async def test_get_missing(self, yubikey) -> None:
        """Test a missing credential raises DeviceNotFoundError."""
        with pytest.raises(DeviceNotFoundError):
            await yubikey.get_otp(FIXED_NOW, DISPLAY_IDENTITY)

    @pytest.mark.asyncio
    async def test_delete(self, yubikey, oath) -> None:
        """Test delete removes the credential and reports absence afterwards."""
        await yubikey.add(DISPLAY_IDENTITY, OtpSecret.from_base32(SEED))
        await yubikey.delete(DISPLAY_IDENTITY)

        assert oath.credentials == {}
        with pytest.raises(DeviceNotFoundError):
            await yubikey.delete(DISPLAY_IDENTITY)

    @pytest.mark.asyncio
    async def test_no_space(self, yubikey, oath) -> None:
        """Test the no-space status word maps to DeviceStorageError."""
        oath.put_error = ApduError(0x6A84)

        with pytest.raises(DeviceStorageError):
            await yubikey.add(DISPLAY_IDENTITY, OtpSecret.from_base32(SEED))

    @pytest.mark.asyncio
    async def test_io_error(self, yubikey, oath) -> None:
        """Test other failures map to DeviceCommunicationError."""
        oath.put_error = OSError("removed")

        with pytest.raises(DeviceCommunicationError):
            await yubikey.add(DISPLAY_IDENTITY, OtpSecret.from_base32(SEED))

    def test_from_settings(self) -> None:
        """Test code length follows VaultSettings."""
        device = YubikeyOtpDevice.from_settings(VaultSettings(otp_digits=8), serial=1)
        assert (device.digits, device.serial) == (8, 1)

    @pytest.mark.asyncio
    async def test_finds_non_default_period(self, yubikey, oath) -> None:
        """Test lookup matches issuer and account even when the id is prefixed.

        Credentials with a period other than 30 seconds get ids like
        ``60/aws:arn:...``; they must still be found and removed.
        """
        from yubikit.oath import HASH_ALGORITHM, OATH_TYPE, CredentialData

        issuer, _, account = DISPLAY_IDENTITY.partition(":")
        data = CredentialData(
            name=account,
            oath_type=OATH_TYPE.TOTP,
            hash_algorithm=HASH_ALGORITHM.SHA1,
            secret=OtpSecret.from_base32(SEED).value,
            period=60,
            issuer=issuer,
        )
        oath.put_credential(data)
        assert list(oath.credentials) == [b"60/" + DISPLAY_IDENTITY.encode()]

        assert await yubikey.get_otp(FIXED_NOW, DISPLAY_IDENTITY) == "123456"
        await yubikey.delete(DISPLAY_IDENTITY)

        assert oath.credentials == {}

    @pytest.mark.asyncio
    async def test_other_issuer_not_matched(self, yubikey, oath) -> None:
        """Test an entry with the same account under another issuer is ignored."""
        account = DISPLAY_IDENTITY.partition(":")[2]
        await yubikey.add(f"corp:{account}", OtpSecret.from_base32(SEED))

        with pytest.raises(DeviceNotFoundError):
            await yubikey.get_otp(FIXED_NOW, DISPLAY_IDENTITY)
