"""Exceptions for mfa-vault.

All errors inherit from MfaVaultError. Protocol steps wrap the underlying
cause with ``raise ... from e`` so the full chain reaches the caller.
"""

from __future__ import annotations

# ═══════════════════════════════════════════════════════════════
# BASE ERROR
# ═══════════════════════════════════════════════════════════════


class MfaVaultError(Exception):
    """Root exception for the entire mfa-vault toolkit."""


# ═══════════════════════════════════════════════════════════════
# IDENTIFIER / SECRET ERRORS
# ═══════════════════════════════════════════════════════════════


class MalformedIdentifierError(MfaVaultError, ValueError):
    """Raised when a string is not a well-formed canonical identifier.

    Examples:
        - Text does not start with ``arn:``
        - An ARN is missing its partition, service or resource
        - A user-identity ARN was expected but a role or device ARN was given
    """

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Malformed identifier {identifier!r}: {reason}")


class SecretDecodingError(MfaVaultError):
    """Raised when a base32 OTP seed cannot be decoded.

    The message never contains the seed itself.
    """


# ═══════════════════════════════════════════════════════════════
# CONFIGURATION / CREDENTIAL ERRORS
# ═══════════════════════════════════════════════════════════════


class ConfigurationError(MfaVaultError):
    """Raised when the local AWS configuration cannot be read."""


class ProfileNotFoundError(ConfigurationError):
    """Raised when a named profile is absent from the AWS config file."""

    def __init__(self, profile_name: str) -> None:
        self.profile_name = profile_name
        super().__init__(f"Profile with name {profile_name!r} not found")


class CredentialsError(MfaVaultError):
    """Raised when master credentials cannot be retrieved."""


# ═══════════════════════════════════════════════════════════════
# REMOTE API ERRORS
# ═══════════════════════════════════════════════════════════════


class RemoteApiError(MfaVaultError):
    """Raised by remote adapters when an IAM/STS call fails.

    Attributes:
        code: Remote error code (e.g. ``EntityAlreadyExists``).
        operation: Name of the remote operation that failed.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "Unknown",
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.operation = operation


class NoSuchEntityError(RemoteApiError):
    """Raised when the remote system reports the entity does not exist."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message, code="NoSuchEntity", operation=operation)


class RemoteProvisioningError(MfaVaultError):
    """Raised when creating or enabling a virtual MFA device fails remotely.

    Attributes:
        operation: The protocol step (``create`` or ``enable``).
        identifier: User name or device ARN the step targeted.
    """

    def __init__(self, message: str, *, operation: str, identifier: str) -> None:
        super().__init__(message)
        self.operation = operation
        self.identifier = identifier


class RemoteTeardownError(MfaVaultError):
    """Raised when a remote teardown step fails for a reason other than absence."""

    def __init__(self, message: str, *, operation: str, identifier: str) -> None:
        super().__init__(message)
        self.operation = operation
        self.identifier = identifier


# ═══════════════════════════════════════════════════════════════
# OTP DEVICE ERRORS
# ═══════════════════════════════════════════════════════════════


class DeviceError(MfaVaultError):
    """Base class for errors raised by OTP device backends."""


class DeviceStorageError(DeviceError):
    """Raised when a device cannot accept an entry (capacity or bad name)."""


class DeviceNotFoundError(DeviceError):
    """Raised when a named entry does not exist on the device."""

    def __init__(self, name: str, device_label: str | None = None) -> None:
        self.name = name
        self.device_label = device_label
        where = f" on {device_label}" if device_label else ""
        super().__init__(f"No OTP entry named {name!r}{where}")


class DeviceCommunicationError(DeviceError):
    """Raised on I/O failure with the physical or software token."""


class DeviceEnrollmentError(MfaVaultError):
    """Raised when the device step of an enrollment fails.

    The remote device is left created but not enabled.
    """

    def __init__(self, message: str, *, name: str, device_label: str) -> None:
        super().__init__(message)
        self.name = name
        self.device_label = device_label


class DeviceTeardownError(MfaVaultError):
    """Raised when the local entry cannot be removed after remote teardown.

    Remote teardown already succeeded; device state must be reconciled
    manually.
    """

    def __init__(self, message: str, *, name: str, device_label: str) -> None:
        super().__init__(message)
        self.name = name
        self.device_label = device_label


# ═══════════════════════════════════════════════════════════════
# SESSION CACHE ERRORS
# ═══════════════════════════════════════════════════════════════


class SessionInvalidationError(MfaVaultError):
    """Raised when cached sessions for a profile cannot be deleted."""

    def __init__(self, message: str, *, profile_name: str) -> None:
        super().__init__(message)
        self.profile_name = profile_name


__all__: list[str] = [
    "MfaVaultError",
    "MalformedIdentifierError",
    "SecretDecodingError",
    "ConfigurationError",
    "ProfileNotFoundError",
    "CredentialsError",
    "RemoteApiError",
    "NoSuchEntityError",
    "RemoteProvisioningError",
    "RemoteTeardownError",
    "DeviceError",
    "DeviceStorageError",
    "DeviceNotFoundError",
    "DeviceCommunicationError",
    "DeviceEnrollmentError",
    "DeviceTeardownError",
    "SessionInvalidationError",
]
