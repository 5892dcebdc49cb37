"""IAM and STS adapters over aiobotocore clients."""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import NoSuchEntityError, RemoteApiError
from ..ports import CreatedVirtualDevice, IIamDeviceApi, ISecurityTokenApi

logger = logging.getLogger("mfa_vault.aws")

NO_SUCH_ENTITY = "NoSuchEntity"


def translate_client_error(e: Exception, operation: str) -> RemoteApiError:
    """Map a botocore ClientError (or any exception) to a RemoteApiError.

    The error code is read from ``e.response["Error"]["Code"]`` so callers
    can distinguish ``NoSuchEntity`` from every other failure.
    """
    err = (getattr(e, "response", {}) or {}).get("Error", {})
    code = str(err.get("Code") or "Unknown")
    message = str(err.get("Message") or e)
    if code == NO_SUCH_ENTITY:
        return NoSuchEntityError(message, operation=operation)
    return RemoteApiError(message, code=code, operation=operation)


class AwsIamDeviceApi(IIamDeviceApi):
    """IIamDeviceApi implemented with an aiobotocore ``iam`` client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def create_virtual_device(self, name: str) -> CreatedVirtualDevice:
        try:
            out = await self._client.create_virtual_mfa_device(
                VirtualMFADeviceName=name
            )
        except Exception as e:
            raise translate_client_error(e, "CreateVirtualMFADevice") from e
        device = out["VirtualMFADevice"]
        return CreatedVirtualDevice(
            serial_number=str(device["SerialNumber"]),
            base32_seed=device["Base32StringSeed"],
        )

    async def enable_device(
        self,
        serial_number: str,
        user_name: str,
        code1: str,
        code2: str,
    ) -> None:
        try:
            await self._client.enable_mfa_device(
                UserName=user_name,
                SerialNumber=serial_number,
                AuthenticationCode1=code1,
                AuthenticationCode2=code2,
            )
        except Exception as e:
            raise translate_client_error(e, "EnableMFADevice") from e

    async def deactivate_device(self, serial_number: str, user_name: str) -> None:
        try:
            await self._client.deactivate_mfa_device(
                UserName=user_name,
                SerialNumber=serial_number,
            )
        except Exception as e:
            raise translate_client_error(e, "DeactivateMFADevice") from e

    async def delete_virtual_device(self, serial_number: str) -> None:
        try:
            await self._client.delete_virtual_mfa_device(SerialNumber=serial_number)
        except Exception as e:
            raise translate_client_error(e, "DeleteVirtualMFADevice") from e


class AwsSecurityTokenApi(ISecurityTokenApi):
    """ISecurityTokenApi implemented with an aiobotocore ``sts`` client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def get_caller_identity(self) -> str:
        try:
            out = await self._client.get_caller_identity()
        except Exception as e:
            raise translate_client_error(e, "GetCallerIdentity") from e
        return str(out["Arn"])


__all__: list[str] = [
    "AwsIamDeviceApi",
    "AwsSecurityTokenApi",
    "translate_client_error",
]
