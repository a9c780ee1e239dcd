from __future__ import annotations

import redis

from jobboard.cache.base import Cache
from jobboard.errors import CacheError


GENERATION_PREFIX = "generation:"


class RedisCache(Cache):
    name = "redis"

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float = 2.0) -> "RedisCache":
        client = redis.Redis.from_url(url, socket_timeout=socket_timeout, socket_connect_timeout=socket_timeout)
        return cls(client)

    def get_bytes(self, key: str) -> bytes | None:
        try:
            return self._client.get(key)
        except redis.RedisError as exc:
            raise CacheError(f"redis GET failed for key {key!r}: {exc}") from exc

    def set_bytes(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            self._client.set(key, value, ex=ttl_seconds)
        except redis.RedisError as exc:
            raise CacheError(f"redis SET failed for key {key!r}: {exc}") from exc

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            self._client.delete(*keys)
        except redis.RedisError as exc:
            raise CacheError(f"redis DEL failed for keys {keys!r}: {exc}") from exc

    def generation(self, namespace: str) -> int:
        try:
            raw = self._client.get(GENERATION_PREFIX + namespace)
        except redis.RedisError as exc:
            raise CacheError(f"redis GET failed for generation of {namespace!r}: {exc}") from exc
        try:
            return int(raw) if raw is not None else 0
        except ValueError as exc:
            raise CacheError(f"corrupt generation for {namespace!r}: {raw!r}") from exc

    def bump_generation(self, namespace: str) -> int:
        # Generation counters carry no TTL: resetting one to 0 could resurrect live entries.
        try:
            return int(self._client.incr(GENERATION_PREFIX + namespace))
        except redis.RedisError as exc:
            raise CacheError(f"redis INCR failed for generation of {namespace!r}: {exc}") from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False
