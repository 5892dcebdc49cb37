"""Master credential providers."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from pydantic import SecretStr

from .exceptions import CredentialsError
from .models import AwsCredentials
from .ports import ICredentialProvider, ICredentialStore

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)


class StaticCredentialProvider(ICredentialProvider):
    """Returns the credentials it was created with."""

    def __init__(self, credentials: AwsCredentials) -> None:
        self._credentials = credentials

    async def retrieve(self) -> AwsCredentials:
        return self._credentials


class EnvironmentCredentialProvider(ICredentialProvider):
    """Reads ``AWS_ACCESS_KEY_ID``/``AWS_SECRET_ACCESS_KEY`` from the environment.

    ``AWS_SESSION_TOKEN`` (or the legacy ``AWS_SECURITY_TOKEN``) is picked up
    when present, as it is for the temporary session a removal runs under.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    async def retrieve(self) -> AwsCredentials:
        env = os.environ if self._environ is None else self._environ
        access_key_id = env.get("AWS_ACCESS_KEY_ID") or env.get("AWS_ACCESS_KEY")
        secret_access_key = env.get("AWS_SECRET_ACCESS_KEY") or env.get(
            "AWS_SECRET_KEY"
        )
        if not access_key_id or not secret_access_key:
            raise CredentialsError("Unable to get credentials from environment")

        token = env.get("AWS_SESSION_TOKEN") or env.get("AWS_SECURITY_TOKEN")
        return AwsCredentials(
            access_key_id=access_key_id,
            secret_access_key=SecretStr(secret_access_key),
            session_token=SecretStr(token) if token else None,
        )


class StoredCredentialProvider(ICredentialProvider):
    """Reads the master credentials of one profile from a credential store."""

    def __init__(self, store: ICredentialStore, profile_name: str) -> None:
        self._store = store
        self.profile_name = profile_name

    async def retrieve(self) -> AwsCredentials:
        try:
            credentials = await self._store.get(self.profile_name)
        except CredentialsError:
            raise
        except Exception as e:
            raise CredentialsError(
                f"Unable to read credentials for {self.profile_name!r}"
            ) from e
        if credentials is None:
            raise CredentialsError(f"No credentials stored for {self.profile_name!r}")
        logger.debug(
            "Found access key %s for profile %r",
            credentials.masked_access_key_id,
            self.profile_name,
        )
        return credentials


class InMemoryCredentialStore(ICredentialStore):
    """In-memory credential store for TESTING ONLY."""

    def __init__(self) -> None:
        self._credentials: dict[str, AwsCredentials] = {}

    async def get(self, profile_name: str) -> AwsCredentials | None:
        return self._credentials.get(profile_name)

    async def set(self, profile_name: str, credentials: AwsCredentials) -> None:
        self._credentials[profile_name] = credentials


__all__: list[str] = [
    "StaticCredentialProvider",
    "EnvironmentCredentialProvider",
    "StoredCredentialProvider",
    "InMemoryCredentialStore",
]
