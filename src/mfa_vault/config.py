"""Settings and AWS shared config file access."""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import ConfigurationError, ProfileNotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

_ENV_PREFIX = "MFA_VAULT_"


@dataclass(frozen=True)
class VaultSettings:
    """Settings shared by the protocols and adapters.

    Attributes:
        issuer_label: Prefix of the display identity stored on the device.
        uri_issuer: ``issuer`` parameter of the enrollment URI.
        default_region: Region used when a profile does not name one.
        otp_digits: Number of digits of derived codes.
        session_key_prefix: Redis key prefix of cached sessions.
        secret_key_prefix: Redis key prefix of software device secrets.
    """

    issuer_label: str = "aws"
    uri_issuer: str = "Amazon"
    default_region: str = "us-east-1"
    otp_digits: int = 6
    session_key_prefix: str = "mfa_vault:session"
    secret_key_prefix: str = "mfa_vault:otp"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> VaultSettings:
        """Build settings from ``MFA_VAULT_*`` environment variables.

        ``AWS_REGION`` and ``AWS_DEFAULT_REGION`` are honoured for the
        default region when ``MFA_VAULT_DEFAULT_REGION`` is unset.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str, default: object) -> str:
            return str(env.get(f"{_ENV_PREFIX}{name}", default))

        region = (
            env.get(f"{_ENV_PREFIX}DEFAULT_REGION")
            or env.get("AWS_REGION")
            or env.get("AWS_DEFAULT_REGION")
            or defaults.default_region
        )
        try:
            return cls(
                issuer_label=get("ISSUER_LABEL", defaults.issuer_label),
                uri_issuer=get("URI_ISSUER", defaults.uri_issuer),
                default_region=region,
                otp_digits=int(get("OTP_DIGITS", defaults.otp_digits)),
                session_key_prefix=get(
                    "SESSION_KEY_PREFIX", defaults.session_key_prefix
                ),
                secret_key_prefix=get("SECRET_KEY_PREFIX", defaults.secret_key_prefix),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid {_ENV_PREFIX}* setting: {e}") from e


@dataclass(frozen=True)
class ProfileSection:
    """One profile of the AWS shared config file."""

    name: str
    region: str | None = None
    mfa_serial: str | None = None
    source_profile: str | None = None
    role_arn: str | None = None
    options: dict[str, str] = field(default_factory=dict, compare=False)


def default_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return ``$AWS_CONFIG_FILE`` or ``~/.aws/config``."""
    env = os.environ if environ is None else environ
    configured = env.get("AWS_CONFIG_FILE")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".aws" / "config"


class AwsConfigFile:
    """Read-only view of the AWS shared config file.

    Sections are ``[default]`` and ``[profile <name>]``. A missing file is
    treated as empty.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else default_config_path()
        self._sections: dict[str, ProfileSection] | None = None

    def _load(self) -> dict[str, ProfileSection]:
        if self._sections is not None:
            return self._sections

        parser = configparser.ConfigParser(interpolation=None)
        if self.path.exists():
            try:
                parser.read(self.path)
            except configparser.Error as e:
                raise ConfigurationError(f"Unable to parse {self.path}: {e}") from e
            logger.debug("Loaded AWS config from %s", self.path)
        else:
            logger.debug("AWS config file not found: %s", self.path)

        sections: dict[str, ProfileSection] = {}
        for section_name in parser.sections():
            if section_name == "default":
                name = "default"
            elif section_name.startswith("profile "):
                name = section_name[len("profile ") :].strip()
            else:
                continue
            options = dict(parser.items(section_name))
            sections[name] = ProfileSection(
                name=name,
                region=options.get("region"),
                mfa_serial=options.get("mfa_serial"),
                source_profile=options.get("source_profile"),
                role_arn=options.get("role_arn"),
                options=options,
            )

        self._sections = sections
        return sections

    def profile_names(self) -> list[str]:
        """Return the names of all profiles in the file."""
        return sorted(self._load())

    def profile_section(self, name: str) -> ProfileSection:
        """Return the section of profile ``name``.

        Raises:
            ProfileNotFoundError: If the profile is not defined.
        """
        section = self._load().get(name)
        if section is None:
            raise ProfileNotFoundError(name)
        return section


__all__: list[str] = [
    "VaultSettings",
    "ProfileSection",
    "AwsConfigFile",
    "default_config_path",
]
