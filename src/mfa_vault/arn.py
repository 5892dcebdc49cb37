"""Canonical identifier (ARN) parsing and the device/display identity codec.

A caller identity ``arn:aws:iam::111111111111:user/alice`` and the virtual
MFA device bound to it ``arn:aws:iam::111111111111:mfa/alice`` differ only in
the resource type segment. The display identity shown in authenticator apps
is the device ARN prefixed with an issuer label::

    aws:arn:aws:iam::111111111111:mfa/alice

Authenticator apps split that string at the first colon into issuer and
account name.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .exceptions import MalformedIdentifierError

ARN_PREFIX = "arn"
DEFAULT_ISSUER_LABEL = "aws"
USER_RESOURCE_TYPE = "user"
DEVICE_RESOURCE_TYPE = "mfa"

_ARN_FIELD_COUNT = 6


@dataclass(frozen=True)
class Arn:
    """Parsed Amazon Resource Name.

    Attributes:
        partition: ``aws``, ``aws-cn``, ``aws-us-gov``...
        service: Service namespace (``iam``, ``sts``).
        region: Region, empty for global services such as IAM.
        account_id: Twelve digit account id, may be empty for some services.
        resource: Resource part, e.g. ``user/alice`` or ``mfa/alice``.
    """

    partition: str
    service: str
    region: str
    account_id: str
    resource: str

    @classmethod
    def parse(cls, text: str) -> Arn:
        """Parse ``text`` into an Arn.

        Raises:
            MalformedIdentifierError: If ``text`` is not a well-formed ARN.
        """
        if not isinstance(text, str):
            raise MalformedIdentifierError(repr(text), "identifier must be a string")

        parts = text.split(":", _ARN_FIELD_COUNT - 1)
        if len(parts) != _ARN_FIELD_COUNT:
            raise MalformedIdentifierError(text, "not enough sections")
        prefix, partition, service, region, account_id, resource = parts
        if prefix != ARN_PREFIX:
            raise MalformedIdentifierError(text, "invalid prefix")
        if not partition:
            raise MalformedIdentifierError(text, "missing partition")
        if not service:
            raise MalformedIdentifierError(text, "missing service")
        if not resource:
            raise MalformedIdentifierError(text, "missing resource")

        return cls(
            partition=partition,
            service=service,
            region=region,
            account_id=account_id,
            resource=resource,
        )

    @property
    def resource_type(self) -> str:
        """Resource type segment before the first ``/`` (``user``, ``mfa``)."""
        return self.resource.split("/", 1)[0]

    @property
    def resource_path(self) -> str:
        """Resource after the type segment (``alice`` or ``division/alice``)."""
        _, _, path = self.resource.partition("/")
        return path

    def __str__(self) -> str:
        return ":".join(
            [
                ARN_PREFIX,
                self.partition,
                self.service,
                self.region,
                self.account_id,
                self.resource,
            ]
        )


def _coerce(identifier: Arn | str) -> Arn:
    if isinstance(identifier, Arn):
        return identifier
    return Arn.parse(identifier)


def _swap_resource_type(arn: Arn, expected: str, target: str) -> Arn:
    if arn.service != "iam":
        raise MalformedIdentifierError(str(arn), "not an IAM identifier")
    if arn.resource_type != expected or not arn.resource_path:
        raise MalformedIdentifierError(
            str(arn), f"expected a {expected}/<name> resource"
        )
    return replace(arn, resource=f"{target}/{arn.resource_path}")


def to_device_form(user_identifier: Arn | str) -> Arn:
    """Convert a user-identity ARN to the ARN of its virtual MFA device."""
    return _swap_resource_type(
        _coerce(user_identifier), USER_RESOURCE_TYPE, DEVICE_RESOURCE_TYPE
    )


def to_user_form(device_identifier: Arn | str) -> Arn:
    """Convert a virtual MFA device ARN back to its user-identity ARN."""
    return _swap_resource_type(
        _coerce(device_identifier), DEVICE_RESOURCE_TYPE, USER_RESOURCE_TYPE
    )


def to_display_identity(
    device_identifier: Arn | str,
    issuer_label: str = DEFAULT_ISSUER_LABEL,
) -> str:
    """Build the ``<issuer>:<device arn>`` string shown in authenticator apps."""
    return f"{issuer_label}:{_coerce(device_identifier)}"


def from_display_identity(
    display_identity: str,
    issuer_label: str = DEFAULT_ISSUER_LABEL,
) -> Arn:
    """Recover the device ARN from a display identity."""
    issuer, sep, rest = display_identity.partition(":")
    if not sep or issuer != issuer_label:
        raise MalformedIdentifierError(
            display_identity, f"expected the {issuer_label!r} issuer label"
        )
    return Arn.parse(rest)


def user_name_from_identity(user_identifier: Arn | str) -> str:
    """Return the IAM user name (last path element) of a user-identity ARN."""
    arn = _coerce(user_identifier)
    if arn.resource_type != USER_RESOURCE_TYPE or not arn.resource_path:
        raise MalformedIdentifierError(str(arn), "expected a user/<name> resource")
    return arn.resource_path.rsplit("/", 1)[-1]


__all__: list[str] = [
    "Arn",
    "DEFAULT_ISSUER_LABEL",
    "to_device_form",
    "to_user_form",
    "to_display_identity",
    "from_display_identity",
    "user_name_from_identity",
]
