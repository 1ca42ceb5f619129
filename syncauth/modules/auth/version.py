"""
Global auth version.

A single integer counter stored at ``auth:global_version``. Tokens embed
the version current when they were issued; any token carrying a lower
version than the current one is invalid. Bumping the counter logs every
device out.
"""

import logging
import time

from ..storage import KeyValueStore
from .cache import TTLCache
from .interfaces import Clock

logger = logging.getLogger(__name__)

GLOBAL_VERSION_KEY = "auth:global_version"
DEFAULT_VERSION = "0"


class GlobalVersionManager:
    """Reads and bumps the global auth version, with a local read cache."""

    def __init__(self, store: KeyValueStore, cache_ttl: float = 300, clock: Clock = time.monotonic):
        """
        Initialize version manager.

        Args:
            store: Durable key-value store
            cache_ttl: Seconds a locally cached version may be served
            clock: Time source for cache ageing
        """
        self.store = store
        self.cache: TTLCache[str] = TTLCache(self._read_store, ttl=cache_ttl, clock=clock)

    async def _read_store(self) -> str:
        value = await self.store.get(GLOBAL_VERSION_KEY)
        if value is None:
            return DEFAULT_VERSION
        return str(int(value))

    async def current(self) -> str:
        """
        Get the current version, served from the local cache when fresh.

        Raises:
            StoreError: If the cache is stale and the store cannot be read
        """
        return await self.cache.get()

    async def bump(self) -> str:
        """
        Increment the global version.

        Always reads the stored value rather than the cache. Two processes
        bumping at the same moment may both write the same new value; that
        still invalidates every earlier token.

        Returns:
            The new version

        Raises:
            StoreError: If the store cannot be read or written
        """
        stored = await self._read_store()
        new_version = str(int(stored) + 1)

        await self.store.put(GLOBAL_VERSION_KEY, new_version)
        self.cache.set(new_version)

        logger.warning(f"Global auth version bumped from {stored} to {new_version}")
        return new_version
