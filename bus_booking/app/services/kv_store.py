"""
Key-value stores for short-lived data (pending OTP entries).

Values are strings; callers serialise structured data themselves.
The in-memory store is process-local and lost on restart. The Redis store
shares entries across workers.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional, Protocol, Tuple

from bus_booking.app.core.config import settings
from bus_booking.app.core.time_utils import utcnow


class KeyValueStore(Protocol):
    async def put(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Expiring dict. Expired entries are dropped lazily on read."""

    def __init__(self):
        self._store: Dict[str, Tuple[str, datetime]] = {}

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = (value, utcnow() + timedelta(seconds=ttl_seconds))

    async def get(self, key: str) -> Optional[str]:
        entry = self._store.get(key)
        if not entry:
            return None

        value, expires_at = entry
        if utcnow() > expires_at:
            del self._store[key]
            return None

        return value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def clear(self) -> None:
        self._store.clear()


class RedisKeyValueStore:
    """Redis-backed store; keys are namespaced with ``prefix``."""

    def __init__(self, client, prefix: str = "otp:"):
        self._client = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._client.set(self._key(key), value, ex=ttl_seconds)

    async def get(self, key: str) -> Optional[str]:
        value = await self._client.get(self._key(key))
        if isinstance(value, bytes):
            value = value.decode()
        return value

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))


def build_store() -> KeyValueStore:
    """Store selected by ``OTP_STORE_BACKEND``."""
    if settings.otp_store_backend == "redis":
        from bus_booking.app.core.redis_client import get_redis_client
        return RedisKeyValueStore(get_redis_client())
    return InMemoryKeyValueStore()
