"""OTP device backends.

- SoftwareOtpDevice: pyotp codes, seeds in an IOtpSecretStore
- YubikeyOtpDevice: TOTP credentials on a YubiKey (optional extra)
"""

from .software import InMemoryOtpSecretStore, SoftwareOtpDevice
from .yubikey import YubikeyOtpDevice

__all__: list[str] = [
    "InMemoryOtpSecretStore",
    "SoftwareOtpDevice",
    "YubikeyOtpDevice",
]
