"""AWS adapters (aiobotocore)."""

from __future__ import annotations

from .clients import AwsIamDeviceApi, AwsSecurityTokenApi, translate_client_error
from .session import AwsRemote, AwsSessionFactory

__all__ = [
    "AwsIamDeviceApi",
    "AwsRemote",
    "AwsSecurityTokenApi",
    "AwsSessionFactory",
    "translate_client_error",
]
