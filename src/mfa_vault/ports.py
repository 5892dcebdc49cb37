"""Ports (protocols) for the collaborators of the MFA protocols.

These protocols define the interfaces the enrollment, teardown and session
invalidation logic depend on. All ports use @runtime_checkable for
isinstance checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from .models import AwsCredentials, OtpSecret
    from .session import CachedSession


# ═══════════════════════════════════════════════════════════════
# OTP DEVICE PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class OtpDevice(Protocol):
    """Capability interface of a device that stores OTP secrets.

    Implementations:
        - YubikeyOtpDevice (hardware token, OATH application)
        - SoftwareOtpDevice (pyotp, secrets in an IOtpSecretStore)
    """

    async def add(self, name: str, secret: OtpSecret) -> None:
        """Register ``secret`` under ``name``.

        Args:
            name: Display identity (``issuer:account``).
            secret: Binary OTP seed.

        Raises:
            DeviceStorageError: Device is full or rejects the name.
            DeviceCommunicationError: I/O failure talking to the device.
        """
        ...

    async def get_otp(self, at: datetime, name: str) -> str:
        """Derive the TOTP code for the 30-second window containing ``at``.

        Raises:
            DeviceNotFoundError: ``name`` is unknown.
            DeviceCommunicationError: I/O failure talking to the device.
        """
        ...

    async def delete(self, name: str) -> None:
        """Remove the entry stored under ``name``.

        Raises:
            DeviceNotFoundError: ``name`` is unknown.
            DeviceCommunicationError: I/O failure talking to the device.
        """
        ...

    def label(self) -> str:
        """Human readable identifier of the backend, for diagnostics."""
        ...

    def require_touch(self, required: bool) -> None:
        """Require physical confirmation for code derivation, if supported."""
        ...


@runtime_checkable
class IOtpSecretStore(Protocol):
    """Durable storage for the seeds held by a software OTP device."""

    async def put(self, name: str, secret: bytes) -> None:
        """Store ``secret`` under ``name``, replacing any previous value."""
        ...

    async def get(self, name: str) -> bytes | None:
        """Return the secret stored under ``name`` or None."""
        ...

    async def delete(self, name: str) -> bool:
        """Delete ``name``; return True if it existed."""
        ...

    async def names(self) -> list[str]:
        """Return all stored names."""
        ...


# ═══════════════════════════════════════════════════════════════
# REMOTE API PORTS
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CreatedVirtualDevice:
    """Result of CreateVirtualMFADevice.

    Attributes:
        serial_number: Device ARN issued by IAM.
        base32_seed: Base32 encoded OTP seed.
    """

    serial_number: str
    base32_seed: str | bytes = field(repr=False)


@runtime_checkable
class IIamDeviceApi(Protocol):
    """Virtual MFA device operations of the identity and access management API.

    Implementations raise ``NoSuchEntityError`` when the target does not
    exist and ``RemoteApiError`` for every other failure.
    """

    async def create_virtual_device(self, name: str) -> CreatedVirtualDevice:
        """Create a virtual MFA device named ``name``."""
        ...

    async def enable_device(
        self,
        serial_number: str,
        user_name: str,
        code1: str,
        code2: str,
    ) -> None:
        """Bind the device to ``user_name`` using two consecutive codes."""
        ...

    async def deactivate_device(self, serial_number: str, user_name: str) -> None:
        """Unbind the device from ``user_name``."""
        ...

    async def delete_virtual_device(self, serial_number: str) -> None:
        """Delete the (deactivated) virtual MFA device."""
        ...


@runtime_checkable
class ISecurityTokenApi(Protocol):
    """Security token service operations."""

    async def get_caller_identity(self) -> str:
        """Return the ARN of the principal making the call."""
        ...


# ═══════════════════════════════════════════════════════════════
# SESSION CACHE PORT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class ISessionCache(Protocol):
    """Secure store of cached temporary-credential sessions."""

    async def store(self, session: CachedSession) -> None:
        """Cache ``session`` under its profile."""
        ...

    async def list_sessions(
        self, profile_name: str | None = None
    ) -> list[CachedSession]:
        """List cached sessions, optionally only those of ``profile_name``."""
        ...

    async def delete_sessions_for_profile(self, profile_name: str) -> int:
        """Delete every session cached for ``profile_name``.

        Returns:
            Number of sessions removed.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# CREDENTIAL PORTS
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class ICredentialProvider(Protocol):
    """Supplies long-lived master credentials."""

    async def retrieve(self) -> AwsCredentials:
        """Return credentials.

        Raises:
            CredentialsError: If no credentials are available.
        """
        ...


@runtime_checkable
class ICredentialStore(Protocol):
    """Secure store of master credentials keyed by profile name."""

    async def get(self, profile_name: str) -> AwsCredentials | None:
        """Return the credentials stored for ``profile_name`` or None."""
        ...

    async def set(self, profile_name: str, credentials: AwsCredentials) -> None:
        """Store credentials for ``profile_name``."""
        ...


__all__: list[str] = [
    "OtpDevice",
    "IOtpSecretStore",
    "CreatedVirtualDevice",
    "IIamDeviceApi",
    "ISecurityTokenApi",
    "ISessionCache",
    "ICredentialProvider",
    "ICredentialStore",
]
