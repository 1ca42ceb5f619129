"""
Unit tests for the global auth version manager.
"""

import pytest

from syncauth.modules.auth.version import GLOBAL_VERSION_KEY, GlobalVersionManager
from syncauth.modules.storage import MemoryKeyValueStore, StoreError


@pytest.fixture
def versions(store, clock):
    return GlobalVersionManager(store, cache_ttl=300, clock=clock)


@pytest.mark.asyncio
async def test_default_version(versions):
    """Test an unwritten version reads as "0"."""
    assert await versions.current() == "0"


@pytest.mark.asyncio
async def test_current_is_cached(versions, store, clock):
    """Test the store is read once per cache window."""
    assert await versions.current() == "0"

    await MemoryKeyValueStore.put(store, GLOBAL_VERSION_KEY, "4")
    assert await versions.current() == "0"

    clock.advance(300)
    assert await versions.current() == "4"


@pytest.mark.asyncio
async def test_bump_reads_store_not_cache(versions, store):
    """Test bump increments the stored value even when the cache is stale."""
    assert await versions.current() == "0"
    await MemoryKeyValueStore.put(store, GLOBAL_VERSION_KEY, "2")

    assert await versions.bump() == "3"
    assert await store.get(GLOBAL_VERSION_KEY) == "3"
    assert await versions.current() == "3"


@pytest.mark.asyncio
async def test_bump_from_default(versions, store):
    assert await versions.bump() == "1"
    assert await versions.bump() == "2"
    assert await store.get(GLOBAL_VERSION_KEY) == "2"


@pytest.mark.asyncio
async def test_bump_write_failure_propagates(versions, store):
    """Test a failed bump raises and does not move the cached version."""
    store.fail_writes = True

    with pytest.raises(StoreError):
        await versions.bump()

    store.fail_writes = False
    assert await versions.current() == "0"


@pytest.mark.asyncio
async def test_current_read_failure_propagates(versions, store):
    store.fail_reads.add(GLOBAL_VERSION_KEY)

    with pytest.raises(StoreError):
        await versions.current()
