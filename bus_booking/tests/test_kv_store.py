"""
Tests for the OTP key-value stores.
"""

from datetime import timedelta

import pytest

from bus_booking.app.core.config import settings
from bus_booking.app.core.time_utils import utcnow
from bus_booking.app.services import kv_store
from bus_booking.app.services.kv_store import InMemoryKeyValueStore, RedisKeyValueStore, build_store


@pytest.mark.asyncio
async def test_memory_store_put_get_delete():
    store = InMemoryKeyValueStore()
    await store.put("k", "v", 60)
    assert await store.get("k") == "v"

    await store.delete("k")
    assert await store.get("k") is None
    # Deleting a missing key is a no-op
    await store.delete("k")


@pytest.mark.asyncio
async def test_memory_store_drops_expired_entries(mocker):
    store = InMemoryKeyValueStore()
    await store.put("k", "v", 10)

    later = utcnow() + timedelta(seconds=11)
    mocker.patch.object(kv_store, "utcnow", return_value=later)
    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_redis_store_prefixes_keys_and_sets_ttl(mock_redis):
    store = RedisKeyValueStore(mock_redis)
    await store.put("+919876543210", "payload", 420)

    assert mock_redis.store["otp:+919876543210"] == "payload"
    assert mock_redis.ttls["otp:+919876543210"] == 420
    assert await store.get("+919876543210") == "payload"

    await store.delete("+919876543210")
    assert await store.get("+919876543210") is None


@pytest.mark.asyncio
async def test_redis_store_decodes_bytes(mock_redis):
    store = RedisKeyValueStore(mock_redis)
    mock_redis.store["otp:x"] = b"raw"
    assert await store.get("x") == "raw"


def test_build_store_defaults_to_memory():
    assert isinstance(build_store(), InMemoryKeyValueStore)


def test_build_store_redis_backend(mocker, mock_redis):
    mocker.patch.object(settings, "otp_store_backend", "redis")
    mocker.patch("bus_booking.app.core.redis_client.get_redis_client", return_value=mock_redis)

    store = build_store()
    assert isinstance(store, RedisKeyValueStore)
