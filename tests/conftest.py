"""
Shared pytest fixtures for Syncauth tests.

This module provides common fixtures including:
- FakeClock: controllable time source injected into every component
- FlakyStore: in-memory store that can be told to fail reads or writes
- Redis mocks for adapter tests
- An assembled AuthService wired to the fake clock and store
"""

import json
import os
import sys
from typing import Optional, Set
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from syncauth.config.provider import AuthConfig
from syncauth.modules.auth import AuthFactory
from syncauth.modules.storage import MemoryKeyValueStore, StoreError

TEST_SECRET = "test-secret-key-that-is-at-least-32-bytes-long"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "correct-pw"
TOKEN_LIFETIME = 4 * 60 * 60


# =============================================================================
# Time and Store Infrastructure
# =============================================================================

class FakeClock:
    """Manually advanced time source (unix seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyStore(MemoryKeyValueStore):
    """
    MemoryKeyValueStore with switchable failures.

    Usage:
        store.fail_reads.add("revoked:")   # every read of revoked:* raises
        store.fail_writes = True           # every put/delete raises
    """

    def __init__(self, clock):
        super().__init__(clock=clock)
        self.fail_reads: Set[str] = set()
        self.fail_writes = False
        self.reads = 0

    async def get(self, key: str) -> Optional[str]:
        self.reads += 1
        if any(key.startswith(prefix) for prefix in self.fail_reads):
            raise StoreError("store unavailable")
        return await super().get(key)

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        if self.fail_writes:
            raise StoreError("store unavailable")
        await super().put(key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        if self.fail_writes:
            raise StoreError("store unavailable")
        await super().delete(key)


@pytest.fixture
def clock():
    """Fake wall clock shared by every component under test."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """In-memory durable store bound to the fake clock."""
    return FlakyStore(clock)


@pytest.fixture
def auth_config():
    """Auth configuration with the admin as primary account."""
    return AuthConfig(
        jwt_secret=TEST_SECRET,
        primary_username=ADMIN_USERNAME,
        primary_password=ADMIN_PASSWORD,
        admin_username=ADMIN_USERNAME,
        token_lifetime=TOKEN_LIFETIME,
        version_cache_ttl=300,
        revocation_cache_size=100,
    )


@pytest.fixture
def auth_service(auth_config, store, clock):
    """AuthService wired to the fake store and clock."""
    return AuthFactory.build_from_config(auth_config, store, clock=clock)


@pytest.fixture
def make_replica(auth_config, store, clock):
    """
    Build another process's AuthService sharing the same store.

    Each replica has its own cold local caches.
    """
    def _make(**kwargs):
        return AuthFactory.build_from_config(auth_config, store, clock=clock, **kwargs)
    return _make


@pytest.fixture
def add_user(store):
    """Write a credential record straight into the store."""
    async def _add(username: str, password: str) -> None:
        await MemoryKeyValueStore.put(
            store, f"auth:{username}", json.dumps({"username": username, "password": password})
        )
    return _add


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================

@pytest.fixture
def mock_redis():
    """Create a mock async Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.delete = AsyncMock(return_value=1)
    redis.aclose = AsyncMock()

    keys = []

    async def scan_iter(match=None, count=None):
        for key in keys:
            yield key

    redis.scan_iter = MagicMock(side_effect=scan_iter)
    redis._keys = keys  # Expose for test setup
    return redis


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring infrastructure"
    )
