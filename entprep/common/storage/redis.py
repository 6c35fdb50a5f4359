"""
Redis Store Backend Module

This module implements a Redis-backed key-value store, for deployments where
several processes share the same local data source.
"""

from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from entprep.common.logger import app_logger
from entprep.common.storage.base import KeyValueStore

# Module logger
logger = app_logger.getChild("storage.redis")


class RedisKeyValueStore(KeyValueStore):
    """
    Redis key-value store implementation.

    Features:
    - Key prefixing so several apps can share one database
    - Failures reported as absence/False instead of raising
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        url: str = "redis://localhost:6379/0",
        key_prefix: str = "",
        name: str = "redis"
    ):
        """
        Initialize the Redis store.

        Args:
            redis_client: Optional existing asyncio Redis client to use
            url: Redis URL used when no client is given
            key_prefix: Prefix for all Redis keys
            name: Name for this store backend (default: "redis")
        """
        self._key_prefix = key_prefix
        self._name = name
        self._redis = redis_client or redis.Redis.from_url(url, decode_responses=True)

        # Statistics counters
        self._hits = 0
        self._misses = 0
        self._errors = 0

    @property
    def name(self) -> str:
        return self._name

    def _build_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._redis.get(self._build_key(key))
        except RedisError as e:
            self._errors += 1
            logger.error(f"Redis error in get: {e}")
            return None

        if value is None:
            self._misses += 1
            return None
        self._hits += 1
        if isinstance(value, bytes):
            try:
                return value.decode('utf-8')
            except UnicodeDecodeError as e:
                logger.error(f"Undecodable value under {key}: {e}")
                return None
        return value

    async def set(self, key: str, value: str) -> bool:
        try:
            await self._redis.set(self._build_key(key), value)
            return True
        except RedisError as e:
            self._errors += 1
            logger.error(f"Redis error in set: {e}")
            return False

    async def remove(self, key: str) -> bool:
        try:
            await self._redis.delete(self._build_key(key))
            return True
        except RedisError as e:
            self._errors += 1
            logger.error(f"Redis error in remove: {e}")
            return False

    async def close(self) -> None:
        await self._redis.aclose()

    async def get_stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        return {
            'backend': 'redis',
            'key_prefix': self._key_prefix,
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': self._hits / total if total > 0 else 0,
            'errors': self._errors
        }
