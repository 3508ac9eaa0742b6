# backend/agrimetrics/core/cache.py

"""
Cache gateway: JSON values under string keys with a per-entry TTL.

Two backends share the same async interface:
- MemoryCache: in-process store guarded by a lock (default)
- RedisCache: redis.asyncio client, used when REDIS_URL is configured

Cache failures are logged and treated as a miss; they never fail a request.
"""

import json
import time
from threading import Lock
from typing import Any, Dict, Optional, Protocol, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from agrimetrics.core.config import settings
from agrimetrics.core.logger import get_logger

logger = get_logger("cache")


class CacheGateway(Protocol):
    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: int) -> None:
        ...


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


class MemoryCache:
    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._lock = Lock()
        # key -> (expires_at, serialized value)
        self._store: Dict[str, Tuple[float, str]] = {}

    async def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if expires_at <= self._clock():
                del self._store[key]
                return None
        return json.loads(payload)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        payload = _dumps(value)
        with self._lock:
            now = self._clock()
            # expired entries are purged on every write
            self._store = {k: entry for k, entry in self._store.items() if entry[0] > now}
            self._store[key] = (now + ttl, payload)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


class RedisCache:
    def __init__(self, client: Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> Optional[Any]:
        try:
            v = await self.client.get(key)
        except RedisError as e:
            logger.warning("cache get error", extra={"cache_key": key, "error": str(e)})
            return None
        if v is None:
            return None
        return json.loads(v)

    async def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self.client.setex(key, int(ttl), _dumps(value))
        except RedisError as e:
            logger.warning("cache set error", extra={"cache_key": key, "error": str(e)})


_cache: Optional[CacheGateway] = None


def get_cache() -> CacheGateway:
    """Process-wide cache gateway chosen from settings."""
    global _cache
    if _cache is None:
        if settings.REDIS_URL:
            logger.info("Using Redis analytics cache")
            _cache = RedisCache.from_url(settings.REDIS_URL)
        else:
            logger.info("REDIS_URL not configured, using in-process analytics cache")
            _cache = MemoryCache()
    return _cache
