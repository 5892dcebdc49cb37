"""Opening IAM/STS clients from static credentials."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from aiobotocore.session import AioSession

from .clients import AwsIamDeviceApi, AwsSecurityTokenApi

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ..models import AwsCredentials
    from ..ports import IIamDeviceApi, ISecurityTokenApi

logger = logging.getLogger("mfa_vault.aws")


@dataclass(frozen=True)
class AwsRemote:
    """The remote APIs one protocol run talks to."""

    iam: IIamDeviceApi
    sts: ISecurityTokenApi


class AwsSessionFactory:
    """Creates aiobotocore clients bound to a set of credentials.

    Example:
        ```python
        factory = AwsSessionFactory()
        async with factory.open(credentials, "eu-west-1") as remote:
            arn = await remote.sts.get_caller_identity()
        ```
    """

    def __init__(
        self,
        *,
        session: AioSession | None = None,
        **client_kwargs: Any,
    ) -> None:
        """Configure optional session and extra client kwargs (e.g. ``config``)."""
        self._session = session or AioSession()
        self._client_kwargs = client_kwargs

    @asynccontextmanager
    async def open(
        self,
        credentials: AwsCredentials,
        region: str,
    ) -> AsyncIterator[AwsRemote]:
        """Yield IAM and STS adapters; clients are closed on exit."""
        logger.debug(
            "Opening AWS session in %s with access key %s",
            region,
            credentials.masked_access_key_id,
        )
        async with AsyncExitStack() as stack:
            clients = {}
            for service in ("iam", "sts"):
                clients[service] = await stack.enter_async_context(
                    self._session.create_client(
                        service,
                        region_name=region,
                        **credentials.botocore_kwargs(),
                        **self._client_kwargs,
                    )
                )
            yield AwsRemote(
                iam=AwsIamDeviceApi(clients["iam"]),
                sts=AwsSecurityTokenApi(clients["sts"]),
            )

    __call__ = open


__all__: list[str] = [
    "AwsRemote",
    "AwsSessionFactory",
]
