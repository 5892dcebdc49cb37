"""In-memory adapters for testing."""

from .memory import InMemoryIamDeviceApi, InMemorySecurityTokenApi, VirtualDeviceRecord

__all__ = [
    "InMemoryIamDeviceApi",
    "InMemorySecurityTokenApi",
    "VirtualDeviceRecord",
]
