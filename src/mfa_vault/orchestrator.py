"""Registration use cases: enrolling and removing a hardware-backed MFA device.

Composes the enrollment protocol for ``register`` and the teardown protocol
plus session cache invalidation for ``deregister``. Every collaborator is
passed in explicitly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from .arn import user_name_from_identity
from .config import VaultSettings
from .enrollment import EnrollmentProtocol, utc_now
from .exceptions import MalformedIdentifierError, RemoteProvisioningError
from .observability import VaultTracing
from .session import SessionCacheInvalidator
from .teardown import TeardownProtocol

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractAsyncContextManager
    from datetime import datetime

    from .aws.session import AwsRemote
    from .config import ProfileSection
    from .models import AwsCredentials, EnrollmentResult
    from .ports import ICredentialProvider, ISessionCache, OtpDevice

logger = logging.getLogger(__name__)


class ProfileSource(Protocol):
    """Anything that resolves a profile name to its config section."""

    def profile_section(self, name: str) -> ProfileSection: ...


class RegistrationOrchestrator:
    """Top level use cases for adding and removing a hardware MFA device.

    Example:
        ```python
        orchestrator = RegistrationOrchestrator(
            config=AwsConfigFile(),
            credential_provider_factory=lambda profile: StoredCredentialProvider(
                store, profile
            ),
            remote_factory=AwsSessionFactory(),
            device_factory=YubikeyOtpDevice,
            session_cache=RedisSessionCache(redis_client),
        )
        result = await orchestrator.register("jonsmith", "jonsmith")
        ```
    """

    def __init__(
        self,
        *,
        config: ProfileSource,
        credential_provider_factory: Callable[[str], ICredentialProvider],
        remote_factory: Callable[
            [AwsCredentials, str], AbstractAsyncContextManager[AwsRemote]
        ],
        device_factory: Callable[[], OtpDevice],
        session_cache: ISessionCache,
        settings: VaultSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._config = config
        self._credential_provider_factory = credential_provider_factory
        self._remote_factory = remote_factory
        self._device_factory = device_factory
        self._invalidator = SessionCacheInvalidator(session_cache)
        self._settings = settings or VaultSettings()
        self._clock = clock

    def _region(self, profile: ProfileSection) -> str:
        return profile.region or self._settings.default_region

    async def register(
        self,
        profile_name: str,
        user_name: str,
        require_touch: bool = False,
    ) -> EnrollmentResult:
        """Enroll a new virtual MFA device for ``user_name`` on the OTP device.

        Master credentials come from the credential provider of
        ``profile_name``. The returned result carries the seed so the caller
        can show a QR code for a backup authenticator app.
        """
        profile = self._config.profile_section(profile_name)
        credentials = await self._credential_provider_factory(profile.name).retrieve()

        with VaultTracing.span(
            "register",
            attributes={"mfa.profile": profile.name, "mfa.user_name": user_name},
        ):
            region = self._region(profile)
            async with self._remote_factory(credentials, region) as remote:
                try:
                    caller = await remote.sts.get_caller_identity()
                except Exception as e:
                    raise RemoteProvisioningError(
                        "Unable to resolve the current caller identity",
                        operation="get_caller_identity",
                        identifier=profile.name,
                    ) from e
                logger.info(
                    "Found access key %s for user %s",
                    credentials.masked_access_key_id,
                    _describe_caller(caller),
                )

                device = self._device_factory()
                device.require_touch(require_touch)
                logger.info(
                    "Adding %s to user %s using profile %s",
                    device.label(),
                    user_name,
                    profile.name,
                )
                protocol = EnrollmentProtocol(
                    remote.iam, device, settings=self._settings, clock=self._clock
                )
                result = await protocol.enroll(user_name)

        logger.info("success: %s", result.device_arn)
        return result

    async def deregister(
        self,
        profile_name: str,
        user_name: str,
        credentials: AwsCredentials,
    ) -> int:
        """Remove the virtual MFA device of ``user_name`` and its cached sessions.

        ``credentials`` are the ones the removal runs under, typically the
        temporary session exported to the environment.

        Returns:
            Number of cached sessions deleted for ``profile_name``.
        """
        profile = self._config.profile_section(profile_name)
        logger.info(
            "Removing MFA device for user %s using profile %s (access key %s)",
            user_name,
            profile.name,
            credentials.masked_access_key_id,
        )

        with VaultTracing.span(
            "deregister",
            attributes={"mfa.profile": profile.name, "mfa.user_name": user_name},
        ):
            region = self._region(profile)
            async with self._remote_factory(credentials, region) as remote:
                protocol = TeardownProtocol(
                    remote.iam,
                    remote.sts,
                    self._device_factory(),
                    settings=self._settings,
                )
                await protocol.teardown(user_name)

            # Sessions obtained with codes from the removed device must go.
            # Other profiles keep theirs.
            return await self._invalidator.invalidate_profile_sessions(profile.name)


def _describe_caller(caller: Any) -> str:
    try:
        return user_name_from_identity(caller)
    except MalformedIdentifierError:
        return str(caller)


__all__: list[str] = [
    "ProfileSource",
    "RegistrationOrchestrator",
]
