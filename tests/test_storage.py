"""
Unit tests for the key-value store adapters.
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import FakeClock
from syncauth.modules.storage import (
    MemoryKeyValueStore,
    RedisKeyValueStore,
    StorageModule,
    StoreError,
)


@pytest.fixture
def redis_store(mock_redis):
    return RedisKeyValueStore(mock_redis)


@pytest.mark.asyncio
async def test_redis_get_decodes_bytes(redis_store, mock_redis):
    """Test bytes responses are decoded to str."""
    mock_redis.get.return_value = b"42"

    assert await redis_store.get("auth:global_version") == "42"
    mock_redis.get.assert_called_once_with("auth:global_version")


@pytest.mark.asyncio
async def test_redis_get_missing(redis_store, mock_redis):
    """Test a missing key reads as None."""
    mock_redis.get.return_value = None

    assert await redis_store.get("session:abc") is None


@pytest.mark.asyncio
async def test_redis_put_with_ttl(redis_store, mock_redis):
    """Test TTL is passed as EX seconds."""
    await redis_store.put("revoked:abc", "1700000000", ttl_seconds=120)

    mock_redis.set.assert_called_once_with("revoked:abc", "1700000000", ex=120)


@pytest.mark.asyncio
async def test_redis_put_without_ttl(redis_store, mock_redis):
    """Test values without TTL are written persistently."""
    await redis_store.put("auth:global_version", "3")

    mock_redis.set.assert_called_once_with("auth:global_version", "3")


@pytest.mark.asyncio
async def test_redis_delete(redis_store, mock_redis):
    await redis_store.delete("session:abc")

    mock_redis.delete.assert_called_once_with("session:abc")


@pytest.mark.asyncio
async def test_redis_list_scans_prefix(redis_store, mock_redis):
    """Test listing uses SCAN with a prefix pattern."""
    mock_redis._keys.extend([b"session:one", "session:two"])

    keys = await redis_store.list("session:")

    assert keys == ["session:one", "session:two"]
    mock_redis.scan_iter.assert_called_once_with(match="session:*", count=500)


@pytest.mark.asyncio
async def test_redis_list_escapes_glob_characters(redis_store, mock_redis):
    """Test glob characters in the prefix are matched literally."""
    await redis_store.list("auth:we*rd")

    mock_redis.scan_iter.assert_called_once_with(match="auth:we\\*rd*", count=500)


@pytest.mark.asyncio
async def test_redis_errors_become_store_errors(redis_store, mock_redis):
    """Test Redis failures surface as StoreError."""
    mock_redis.get.side_effect = RedisConnectionError("connection refused")
    mock_redis.set.side_effect = RedisConnectionError("connection refused")

    with pytest.raises(StoreError):
        await redis_store.get("revoked:abc")
    with pytest.raises(StoreError):
        await redis_store.put("revoked:abc", "1", ttl_seconds=10)


@pytest.mark.asyncio
async def test_redis_error_message_hides_token():
    """Test store errors name the key namespace, not the token."""
    redis = AsyncMock()
    redis.get.side_effect = RedisConnectionError("down")
    store = RedisKeyValueStore(redis)

    with pytest.raises(StoreError) as exc_info:
        await store.get("revoked:secret-token-value")

    assert "secret-token-value" not in str(exc_info.value)
    assert "revoked" in str(exc_info.value)


@pytest.mark.asyncio
async def test_memory_store_ttl_expiry():
    """Test entries vanish once their TTL has elapsed."""
    clock = FakeClock()
    store = MemoryKeyValueStore(clock=clock)

    await store.put("session:abc", "{}", ttl_seconds=60)
    await store.put("auth:global_version", "1")

    clock.advance(59)
    assert await store.get("session:abc") == "{}"
    assert store.ttl("session:abc") == pytest.approx(1)

    clock.advance(1)
    assert await store.get("session:abc") is None
    assert await store.get("auth:global_version") == "1"
    assert store.ttl("auth:global_version") is None


@pytest.mark.asyncio
async def test_memory_store_list_and_delete():
    """Test prefix listing skips expired and deleted keys."""
    clock = FakeClock()
    store = MemoryKeyValueStore(clock=clock)

    await store.put("session:a", "1", ttl_seconds=10)
    await store.put("session:b", "2", ttl_seconds=100)
    await store.put("session:c", "3")
    await store.put("revoked:a", "4")

    await store.delete("session:c")
    await store.delete("session:missing")
    clock.advance(50)

    assert await store.list("session:") == ["session:b"]


@pytest.mark.asyncio
async def test_storage_module_memory_backend():
    """Test the memory backend needs no Redis connection."""
    storage = StorageModule(backend="memory")

    store = await storage.connect()

    assert isinstance(store, MemoryKeyValueStore)
    assert await storage.connect() is store

    await storage.disconnect()
