"""Value types shared by the enrollment and teardown protocols."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pyotp
from pydantic import (
    BaseModel,
    ConfigDict,
    FieldSerializationInfo,
    SecretStr,
    field_serializer,
)

from .exceptions import SecretDecodingError

if TYPE_CHECKING:
    from .arn import Arn

_MASK = "*" * 16
_VISIBLE_KEY_CHARS = 4

# Serialization context flag that writes secret values in JSON dumps.
REVEAL_SECRETS = "reveal_secrets"


@dataclass(frozen=True)
class OtpSecret:
    """Binary OTP seed.

    The value never appears in ``repr`` or ``str`` so it cannot leak
    through logging or tracebacks.
    """

    value: bytes = field(repr=False)

    @classmethod
    def from_base32(cls, encoded: str | bytes) -> OtpSecret:
        """Decode a base32 seed as returned by CreateVirtualMFADevice.

        Missing ``=`` padding is tolerated.

        Raises:
            SecretDecodingError: If ``encoded`` is empty or not valid base32.
        """
        if isinstance(encoded, bytes):
            try:
                encoded = encoded.decode("ascii")
            except UnicodeDecodeError as e:
                raise SecretDecodingError("OTP seed is not ASCII") from e

        text = encoded.strip().upper()
        if not text:
            raise SecretDecodingError("OTP seed is empty")
        text += "=" * (-len(text) % 8)

        try:
            return cls(base64.b32decode(text))
        except (binascii.Error, ValueError) as e:
            raise SecretDecodingError("OTP seed is not valid base32") from e

    def to_base32(self) -> str:
        """Re-encode the seed as unpadded base32 for provisioning URIs."""
        return base64.b32encode(self.value).decode("ascii").rstrip("=")

    def __str__(self) -> str:
        return "OtpSecret(****)"


@dataclass(frozen=True)
class EnrollmentResult:
    """Outcome of a successful enrollment.

    Attributes:
        device_arn: Canonical identifier of the enabled virtual MFA device.
        display_identity: ``issuer:arn`` name stored on the OTP device.
        user_name: IAM user the device was enabled for.
        secret: Seed, surfaced only so the caller can render a QR code for a
            backup authenticator app.
        uri_issuer: Default ``issuer`` parameter of the provisioning URI.
    """

    device_arn: Arn
    display_identity: str
    user_name: str
    secret: OtpSecret = field(repr=False)
    uri_issuer: str = "Amazon"

    def provisioning_uri(self, issuer: str | None = None) -> str:
        """Build the ``otpauth://`` URI used for QR enrollment.

        The label is ``issuer:display identity`` with both parts escaped.
        """
        return pyotp.TOTP(self.secret.to_base32()).provisioning_uri(
            name=self.display_identity,
            issuer_name=issuer or self.uri_issuer,
        )


class AwsCredentials(BaseModel):
    """Static AWS credentials used to open a remote session.

    JSON dumps mask the secret values unless the serialization context sets
    ``REVEAL_SECRETS``, which only secure stores should do::

        credentials.model_dump_json(context={REVEAL_SECRETS: True})
    """

    model_config = ConfigDict(frozen=True)

    access_key_id: str
    secret_access_key: SecretStr
    session_token: SecretStr | None = None

    @property
    def masked_access_key_id(self) -> str:
        """Access key id with everything but the last four characters hidden."""
        return f"{_MASK}{self.access_key_id[-_VISIBLE_KEY_CHARS:]}"

    @field_serializer("secret_access_key", "session_token", when_used="json")
    def _dump_secret(
        self, value: SecretStr | None, info: FieldSerializationInfo
    ) -> str | None:
        if value is None:
            return None
        if info.context and info.context.get(REVEAL_SECRETS):
            return value.get_secret_value()
        return str(value)

    def reveal(self) -> dict[str, str | None]:
        """Plain dictionary including the secret values, for secure stores."""
        return self.model_dump(mode="json", context={REVEAL_SECRETS: True})

    def botocore_kwargs(self) -> dict[str, str]:
        """Keyword arguments accepted by ``AioSession.create_client``."""
        kwargs = {
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key.get_secret_value(),
        }
        if self.session_token is not None:
            kwargs["aws_session_token"] = self.session_token.get_secret_value()
        return kwargs


__all__: list[str] = [
    "REVEAL_SECRETS",
    "OtpSecret",
    "EnrollmentResult",
    "AwsCredentials",
]
