from __future__ import annotations

from jobboard.cache.base import Cache
from jobboard.cache.memory import MemoryCache
from jobboard.config import Settings


def build_cache(settings: Settings) -> Cache:
    if settings.cache_backend == "redis":
        from jobboard.cache.redis_cache import RedisCache

        return RedisCache.from_url(settings.redis_url)
    return MemoryCache()


__all__ = ["Cache", "MemoryCache", "build_cache"]
