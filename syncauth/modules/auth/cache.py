"""
Process-local caches used by the auth core.

Both caches are accelerators only. Entries are per process, may be stale
for up to their TTL, and are rebuilt from the durable store on a miss.
Clocks are injected so expiry can be driven from tests.
"""

import time
from collections import OrderedDict
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .interfaces import Clock

T = TypeVar("T")


class TTLCache(Generic[T]):
    """
    Single-value cache holding (value, fetched_at, ttl).

    get() serves the cached value while it is younger than ttl and otherwise
    awaits the fetch function and stores its result. Fetch errors propagate
    and leave the previous entry untouched.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        ttl: float,
        clock: Clock = time.monotonic,
    ):
        self._fetch = fetch
        self.ttl = ttl
        self._clock = clock
        self._value: Optional[T] = None
        self._fetched_at: Optional[float] = None

    def is_fresh(self) -> bool:
        if self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self.ttl

    async def get(self) -> T:
        if self.is_fresh():
            return self._value
        value = await self._fetch()
        self.set(value)
        return value

    def set(self, value: T) -> None:
        self._value = value
        self._fetched_at = self._clock()

    def invalidate(self) -> None:
        self._value = None
        self._fetched_at = None


class ExpiringKeySet:
    """
    Bounded set of keys, each remembered until its own expiry time.

    Used for positive revocation results only. When full, the oldest entry
    is dropped; losing an entry only costs a store read.
    """

    def __init__(self, max_size: int = 10000, clock: Clock = time.time):
        self.max_size = max_size
        self._clock = clock
        self._entries: "OrderedDict[str, float]" = OrderedDict()

    def __contains__(self, key: str) -> bool:
        expires_at = self._entries.get(key)
        if expires_at is None:
            return False
        if expires_at <= self._clock():
            del self._entries[key]
            return False
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, key: str, expires_at: float) -> None:
        if self.max_size <= 0:
            return
        self._entries[key] = expires_at
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)
