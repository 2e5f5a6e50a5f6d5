"""
@file cache.py
@brief In-process caches and the Redis response cache
@details
Two cache layers live here:
- MemoryCache / ForecastCache: process-lifetime key-value maps owned by the
  provider clients. No eviction; keys are coarse so growth stays bounded in
  practice. Safe under concurrent read/insert (last write wins).
- RedisCache: shared response cache used by API endpoints through the
  cache_response decorator. Redis is optional; every operation degrades to
  a miss when it is not connected.

@author RainSafe Project
@date 2026-10-19
"""

import json
import logging
import threading
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

import redis.asyncio as redis

from app.core.config import settings
from app.models.route import Coordinate, WeatherSample

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class MemoryCache(Generic[K, V]):
    """
    @brief Lock-protected dictionary with get/put semantics
    """

    def __init__(self):
        self._data: Dict[K, V] = {}
        self._lock = threading.Lock()

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: K, value: V) -> None:
        with self._lock:
            self._data[key] = value

    def __contains__(self, key: K) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class ForecastCache(MemoryCache[str, WeatherSample]):
    """
    @brief Point+hour forecast memo

    @details
    Keys coalesce nearby queries: latitude and longitude are rounded to two
    decimals (~1 km) and only the hour of the target time is kept. This makes
    the cache an approximation, not exact-coordinate memoization.
    """

    @staticmethod
    def key(point: Coordinate, target_time: datetime) -> str:
        return f"{point.latitude:.2f},{point.longitude:.2f},{target_time.hour}"


class RedisCache:
    """
    @brief Singleton wrapper for Async Redis client
    """
    _instance: Optional['RedisCache'] = None
    client: Optional[redis.Redis] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(RedisCache, cls).__new__(cls)
        return cls._instance

    async def connect(self, redis_url: Optional[str] = None):
        """
        @brief Initialize Redis connection pool
        @details
        Connects using REDIS_URL. A failed connection leaves the cache
        disabled rather than failing startup.
        """
        redis_url = redis_url or settings.redis_url
        try:
            self.client = redis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            await self.client.ping()
            logger.info(f"Connected to Redis at {redis_url}")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.client = None

    async def close(self):
        if self.client:
            await self.client.close()
            logger.info("Redis connection closed")

    async def get(self, key: str) -> Optional[Any]:
        if not self.client:
            return None
        try:
            value = await self.client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.warning(f"Redis get error for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 3600):
        if not self.client:
            return
        try:
            await self.client.setex(key, ttl, json.dumps(value))
        except Exception as e:
            logger.warning(f"Redis set error for {key}: {e}")


# Global instance
cache = RedisCache()


def cache_response(ttl: int = 3600, key_prefix: str = ""):
    """
    @brief Decorator for caching async endpoint results in Redis
    @details
    The key is built from keyword arguments only; injected dependencies
    (names starting with "service" or equal to "request") are skipped.
    The decorated function must return JSON-serializable data.
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            parts = [
                f"{k}={v}" for k, v in sorted(kwargs.items())
                if not k.startswith("service") and k != "request"
            ]
            cache_key = f"{key_prefix}:{func.__name__}:{':'.join(parts)}"

            cached_val = await cache.get(cache_key)
            if cached_val is not None:
                logger.debug(f"Cache hit for {cache_key}")
                return cached_val

            result = await func(*args, **kwargs)
            await cache.set(cache_key, result, ttl)
            return result
        return wrapper
    return decorator
