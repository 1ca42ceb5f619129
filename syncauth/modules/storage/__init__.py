"""
Storage Module - Black Box Interface

Purpose: Abstract all data persistence
Interface: StorageModule.connect(), KeyValueStore get/put/delete/list
Hidden: Redis specifics, connection pooling, key scanning

Can be replaced with any storage backend without affecting other modules.
"""

import logging
import os
from typing import Optional

import redis.asyncio as redis

from .store import KeyValueStore, MemoryKeyValueStore, RedisKeyValueStore, StoreError

logger = logging.getLogger(__name__)


class StorageModule:
    """Black box storage abstraction."""

    def __init__(
        self,
        connection_url: Optional[str] = None,
        password: Optional[str] = None,
        backend: str = "redis",
    ):
        """Initialize storage with connection URL."""
        self.url = connection_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.password = password
        self.backend = backend
        self._client = None
        self._store: Optional[KeyValueStore] = None

    async def connect(self) -> KeyValueStore:
        """Get storage connection."""
        if self._store is None:
            if self.backend == "memory":
                logger.warning("Using in-memory store; state is lost on restart")
                self._store = MemoryKeyValueStore()
            else:
                # Password passed separately to avoid URL encoding issues
                self._client = redis.from_url(
                    self.url,
                    password=self.password,
                    encoding="utf-8",
                    decode_responses=True,
                )
                self._store = RedisKeyValueStore(self._client)
        return self._store

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
        self._store = None


__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "StorageModule",
    "StoreError",
]
