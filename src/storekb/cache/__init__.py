"""Key/value cache stores with per-key TTL used by the scanner."""

from __future__ import annotations

import copy
import json
import logging
import time
from threading import Lock
from typing import Any, Dict, Optional, Protocol, Tuple

from redis import Redis
from redis.exceptions import RedisError

from storekb.config import settings

logger = logging.getLogger(__name__)

MISS = object()
"""Sentinel returned by ``CacheStore.get`` when a key is absent or expired."""


class CacheStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any, ttl: int) -> None: ...

    def delete(self, key: str) -> bool: ...

    def flush(self) -> bool: ...


class InMemoryCacheStore:
    """Process-local cache guarded by a lock.

    Values are deep-copied on the way in and out so cached state is never
    shared with callers. A TTL of 0 keeps the entry until flushed.
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._entries: Dict[str, Tuple[Optional[float], Any]] = {}
        self._lock = Lock()
        self._clock = clock

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISS
            expires_at, value = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[key]
                return MISS
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: int) -> None:
        expires_at = self._clock() + ttl if ttl > 0 else None
        with self._lock:
            self._entries[key] = (expires_at, copy.deepcopy(value))

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def flush(self) -> bool:
        with self._lock:
            self._entries.clear()
        return True

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheStore:
    """Redis-backed cache storing JSON values under a key prefix."""

    def __init__(self, client: Optional[Redis] = None, prefix: Optional[str] = None) -> None:
        self._client = client
        self.prefix = prefix or settings.cache_prefix

    @property
    def client(self) -> Redis:
        if self._client is None:
            self._client = Redis.from_url(settings.redis_url)
        return self._client

    def _namespaced(self, key: str) -> str:
        if key.startswith(f"{self.prefix}:"):
            return key
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Any:
        try:
            raw = self.client.get(self._namespaced(key))
        except RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return MISS
        if raw is None:
            return MISS
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache entry %s", key)
            return MISS

    def set(self, key: str, value: Any, ttl: int) -> None:
        """Best-effort write; an unreachable Redis only costs the cache entry."""
        payload = json.dumps(value, default=str)
        name = self._namespaced(key)
        try:
            if ttl > 0:
                self.client.setex(name, ttl, payload)
            else:
                self.client.set(name, payload)
        except RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    def delete(self, key: str) -> bool:
        try:
            return bool(self.client.delete(self._namespaced(key)))
        except RedisError as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc)
            return False

    def flush(self) -> bool:
        try:
            keys = list(self.client.scan_iter(match=f"{self.prefix}:*"))
            if keys:
                self.client.delete(*keys)
        except RedisError as exc:
            logger.warning("Cache flush failed under %s: %s", self.prefix, exc)
            return False
        logger.debug("Flushed %s cache key(s) under %s", len(keys), self.prefix)
        return True


def build_cache_store(backend: Optional[str] = None, prefix: Optional[str] = None) -> CacheStore:
    """Create the cache store selected by ``backend`` or the settings."""
    backend = backend or settings.cache_backend
    if backend == "redis":
        return RedisCacheStore(prefix=prefix)
    if backend == "memory":
        return InMemoryCacheStore()
    raise ValueError(f"Unknown cache backend: {backend}")


__all__ = [
    "MISS",
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "build_cache_store",
]
