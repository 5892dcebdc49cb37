"""mfa-vault: hardware-backed virtual MFA devices for AWS IAM users.

Enrolls a virtual MFA device whose seed lives on an OTP device (YubiKey or
software token), tears it down idempotently and invalidates the cached
sessions that depended on it.
"""

from .arn import (
    Arn,
    from_display_identity,
    to_device_form,
    to_display_identity,
    to_user_form,
    user_name_from_identity,
)
from .config import AwsConfigFile, ProfileSection, VaultSettings
from .credentials import (
    EnvironmentCredentialProvider,
    InMemoryCredentialStore,
    StaticCredentialProvider,
    StoredCredentialProvider,
)
from .enrollment import EnrollmentProtocol
from .exceptions import (
    ConfigurationError,
    CredentialsError,
    DeviceCommunicationError,
    DeviceEnrollmentError,
    DeviceError,
    DeviceNotFoundError,
    DeviceStorageError,
    DeviceTeardownError,
    MalformedIdentifierError,
    MfaVaultError,
    NoSuchEntityError,
    ProfileNotFoundError,
    RemoteApiError,
    RemoteProvisioningError,
    RemoteTeardownError,
    SecretDecodingError,
    SessionInvalidationError,
)
from .models import AwsCredentials, EnrollmentResult, OtpSecret
from .orchestrator import RegistrationOrchestrator
from .ports import (
    CreatedVirtualDevice,
    ICredentialProvider,
    ICredentialStore,
    IIamDeviceApi,
    IOtpSecretStore,
    ISecurityTokenApi,
    ISessionCache,
    OtpDevice,
)
from .session import (
    CachedSession,
    InMemorySessionCache,
    SessionCacheInvalidator,
    SessionKey,
)
from .teardown import TeardownProtocol

__version__ = "0.1.0"

__all__: list[str] = [
    # Identity codec
    "Arn",
    "to_device_form",
    "to_user_form",
    "to_display_identity",
    "from_display_identity",
    "user_name_from_identity",
    # Configuration
    "VaultSettings",
    "ProfileSection",
    "AwsConfigFile",
    # Models
    "OtpSecret",
    "EnrollmentResult",
    "AwsCredentials",
    "CachedSession",
    "SessionKey",
    # Ports
    "OtpDevice",
    "IOtpSecretStore",
    "CreatedVirtualDevice",
    "IIamDeviceApi",
    "ISecurityTokenApi",
    "ISessionCache",
    "ICredentialProvider",
    "ICredentialStore",
    # Protocols and use cases
    "EnrollmentProtocol",
    "TeardownProtocol",
    "SessionCacheInvalidator",
    "RegistrationOrchestrator",
    # Credentials
    "StaticCredentialProvider",
    "EnvironmentCredentialProvider",
    "StoredCredentialProvider",
    "InMemoryCredentialStore",
    "InMemorySessionCache",
    # Exceptions
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
