"""Virtual MFA device teardown.

Deactivate, then delete remotely, then remove the local device entry.
IAM refuses to delete an active device, so deactivation comes first. The
local seed goes last: while remote removal may still fail, keeping the
seed allows a retry.

Every step tolerates absence, so teardown succeeds when enrollment never
completed or a previous teardown already ran.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .arn import to_device_form, to_display_identity
from .config import VaultSettings
from .exceptions import (
    DeviceNotFoundError,
    DeviceTeardownError,
    NoSuchEntityError,
    RemoteTeardownError,
)
from .observability import VaultMetrics, VaultTracing

if TYPE_CHECKING:
    from .arn import Arn
    from .ports import IIamDeviceApi, ISecurityTokenApi, OtpDevice

logger = logging.getLogger(__name__)


class TeardownProtocol:
    """Removes the virtual MFA device of the calling IAM user."""

    def __init__(
        self,
        iam: IIamDeviceApi,
        sts: ISecurityTokenApi,
        device: OtpDevice,
        *,
        settings: VaultSettings | None = None,
    ) -> None:
        self._iam = iam
        self._sts = sts
        self._device = device
        self._settings = settings or VaultSettings()

    async def teardown(self, user_name: str) -> Arn:
        """Deactivate and delete the caller's virtual MFA device.

        The device ARN is derived from the live caller identity, not from a
        stored value.

        Returns:
            ARN of the device that was removed (or was already absent).

        Raises:
            RemoteTeardownError: A remote call failed for a reason other than
                the device not existing.
            MalformedIdentifierError: The caller is not an IAM user.
            DeviceTeardownError: Remote teardown succeeded but the local entry
                could not be removed.
        """
        with VaultMetrics.operation("teardown"), VaultTracing.span(
            "teardown", attributes={"mfa.user_name": user_name}
        ):
            try:
                caller = await self._sts.get_caller_identity()
            except Exception as e:
                raise RemoteTeardownError(
                    "Failed to determine serial number for device deletion",
                    operation="get_caller_identity",
                    identifier=user_name,
                ) from e

            device_arn = to_device_form(caller)
            serial = str(device_arn)

            await self._deactivate(serial, user_name)
            await self._delete(serial)
            await self._remove_from_device(
                to_display_identity(device_arn, self._settings.issuer_label)
            )

        logger.info("Virtual MFA device %s removed for %s", serial, user_name)
        return device_arn

    async def _deactivate(self, serial: str, user_name: str) -> None:
        try:
            await self._iam.deactivate_device(serial, user_name)
        except NoSuchEntityError:
            logger.debug("Virtual MFA device %s already deactivated", serial)
        except Exception as e:
            raise RemoteTeardownError(
                f"Failed to deactivate virtual MFA device with serial {serial!r}",
                operation="deactivate",
                identifier=serial,
            ) from e

    async def _delete(self, serial: str) -> None:
        try:
            await self._iam.delete_virtual_device(serial)
        except NoSuchEntityError:
            logger.debug("Virtual MFA device %s already deleted", serial)
        except Exception as e:
            raise RemoteTeardownError(
                f"Failed to delete virtual MFA device with serial {serial!r}",
                operation="delete",
                identifier=serial,
            ) from e

    async def _remove_from_device(self, name: str) -> None:
        try:
            await self._device.delete(name)
        except DeviceNotFoundError:
            logger.info("%r not present on %s", name, self._device.label())
        except Exception as e:
            raise DeviceTeardownError(
                f"Failed to remove {name!r} from {self._device.label()}",
                name=name,
                device_label=self._device.label(),
            ) from e


__all__: list[str] = ["TeardownProtocol"]
