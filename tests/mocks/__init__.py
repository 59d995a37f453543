"""Test doubles for toolrelay."""

from .fake_client import FakeClientFactory, FakeProtocolClient, NoShutdownClient

__all__ = ["FakeClientFactory", "FakeProtocolClient", "NoShutdownClient"]
