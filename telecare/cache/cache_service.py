from typing import Optional, Any
import logging
from redis import asyncio as aioredis
from telecare.core.config import settings
import json

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self):
        self.redis_url = settings.REDIS_URL
        self.redis: Optional[aioredis.Redis] = None

    @property
    def enabled(self) -> bool:
        return settings.CACHE_ENABLED

    async def connect(self):
        if not self.redis:
            try:
                self.redis = aioredis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
                logger.info("Connected to Redis cache.")
            except Exception as e:
                logger.error(f"Failed to connect to Redis: {e}")

    async def get(self, key: str) -> Optional[str]:
        if not self.enabled:
            return None
        if not self.redis:
            await self.connect()
        try:
            return await self.redis.get(key)
        except Exception as e:
            logger.error(f"Redis get error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 3600):
        if not self.enabled:
            return
        if not self.redis:
            await self.connect()
        try:
            # Callers pass strings; use set_json for structured values
            await self.redis.set(key, value, ex=ttl)
        except Exception as e:
            logger.error(f"Redis set error for key {key}: {e}")

    async def get_json(self, key: str) -> Optional[Any]:
        cached = await self.get(key)
        if cached is None:
            return None
        try:
            return json.loads(cached)
        except ValueError:
            logger.warning(f"Discarding non-JSON cache entry for key {key}")
            return None

    async def set_json(self, key: str, value: Any, ttl: int = 3600):
        await self.set(key, json.dumps(value, default=str), ttl=ttl)

    async def delete_pattern(self, pattern: str):
        if not self.enabled:
            return
        if not self.redis:
            await self.connect()
        try:
            keys = await self.redis.keys(pattern)
            if keys:
                await self.redis.delete(*keys)
        except Exception as e:
            logger.error(f"Redis delete_pattern error for {pattern}: {e}")

    async def close(self):
        if self.redis:
            await self.redis.aclose()
            self.redis = None


# Singleton instance
redis_cache = RedisCache()
