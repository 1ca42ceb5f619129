"""
Key-value store adapters.

Every adapter exposes the same four async operations: get, put (with an
optional TTL), delete and list-by-prefix. Reads may lag writes made by
other replicas; nothing in the auth core assumes read-your-writes across
processes.
"""

import logging
import re
import time
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


class StoreError(Exception):
    """Raised when the durable store cannot complete an operation."""


class KeyValueStore(Protocol):
    """Protocol for durable key-value stores."""

    async def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if absent or expired."""
        ...

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Write value under key, expiring after ttl_seconds when given."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is not an error."""
        ...

    async def list(self, prefix: str) -> List[str]:
        """Return all live keys starting with prefix."""
        ...


def _key_kind(key: str) -> str:
    # Keys embed bearer tokens; only the namespace goes into error messages.
    return key.split(":", 1)[0]


class RedisKeyValueStore:
    """KeyValueStore backed by an async Redis client."""

    def __init__(self, redis_client, scan_count: int = 500):
        """
        Initialize the adapter.

        Args:
            redis_client: Async Redis client (redis.asyncio)
            scan_count: COUNT hint passed to SCAN when listing keys
        """
        self.redis = redis_client
        self.scan_count = scan_count

    @staticmethod
    def _decode(value):
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.redis.get(key)
        except RedisError as e:
            raise StoreError(f"Failed to read {_key_kind(key)} key: {e}") from e

        if value is None:
            return None
        return self._decode(value)

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            if ttl_seconds:
                await self.redis.set(key, value, ex=int(ttl_seconds))
            else:
                await self.redis.set(key, value)
        except RedisError as e:
            raise StoreError(f"Failed to write {_key_kind(key)} key: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise StoreError(f"Failed to delete {_key_kind(key)} key: {e}") from e

    async def list(self, prefix: str) -> List[str]:
        pattern = _GLOB_SPECIAL.sub(r"\\\1", prefix) + "*"
        keys = []
        try:
            async for key in self.redis.scan_iter(match=pattern, count=self.scan_count):
                keys.append(self._decode(key))
        except RedisError as e:
            raise StoreError(f"Failed to list {_key_kind(prefix)} keys: {e}") from e
        return keys


class MemoryKeyValueStore:
    """
    In-process KeyValueStore for development and tests.

    Entries carry an absolute expiry computed from the injected clock and
    are purged lazily when touched.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._clock = clock

    def _live_value(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live_value(key)

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._data[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list(self, prefix: str) -> List[str]:
        return sorted(
            key
            for key in list(self._data)
            if key.startswith(prefix) and self._live_value(key) is not None
        )

    def ttl(self, key: str) -> Optional[float]:
        """Seconds until key expires, or None if it has no expiry or is absent."""
        if self._live_value(key) is None:
            return None
        expires_at = self._data[key][1]
        return None if expires_at is None else expires_at - self._clock()
