from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest
import redis

from jobboard.cache.keys import (
    APPLICANTS_LIST,
    JOBS_LIST,
    build_cache_key,
    job_detail_namespace,
    versioned_key,
)
from jobboard.cache.memory import MemoryCache
from jobboard.cache.redis_cache import RedisCache
from jobboard.errors import CacheError
from jobboard.schemas.job import JobRead
from jobboard.schemas.pagination import Page


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_keys_are_order_independent_and_normalized() -> None:
    a = build_cache_key(JOBS_LIST, title="  Python ", company_name="ACME", page=1, page_size=10)
    b = build_cache_key(JOBS_LIST, page_size=10, page=1, company_name="acme", title="python")
    assert a == b
    assert a.startswith(JOBS_LIST + ":")


def test_keys_drop_empty_filters() -> None:
    assert build_cache_key(JOBS_LIST, title=None, company_name="", page=2, page_size=5) == (
        "jobs:list:page=2&page_size=5"
    )
    assert build_cache_key(JOBS_LIST) == JOBS_LIST


def test_keys_escape_separator_characters() -> None:
    # A title holding '&' must not be confused with an extra parameter.
    tricky = build_cache_key(JOBS_LIST, title="r&d=page#3", page=1)
    plain = build_cache_key(JOBS_LIST, title="r", page=1)
    assert "&d=" not in tricky
    assert "#" not in tricky
    assert tricky != plain


def test_posted_after_is_normalized_to_utc() -> None:
    utc = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    shifted = utc.astimezone(timezone(timedelta(hours=9)))
    naive = datetime(2024, 5, 1, 12, 0)

    keys = {build_cache_key(JOBS_LIST, posted_after=value, page=1, page_size=10) for value in (utc, shifted, naive)}
    assert len(keys) == 1


def test_versioned_keys_differ_per_generation() -> None:
    assert versioned_key(JOBS_LIST, 0, page=1) != versioned_key(JOBS_LIST, 1, page=1)
    assert versioned_key(job_detail_namespace(7), 2) == "jobs:detail:id=7#2"
    assert not versioned_key(APPLICANTS_LIST, 0, page=1).startswith(JOBS_LIST)


def test_memory_cache_round_trips_models() -> None:
    cache = MemoryCache()
    page = Page[JobRead](
        data=[
            JobRead(id=1, title="t", description="d", company_name="c", total_applications=3),
        ],
        total=1,
        page=1,
        page_size=10,
        total_pages=1,
    )
    cache.set("jobs:list:page=1#0", page, ttl_seconds=60)

    assert cache.get("jobs:list:page=1#0", Page[JobRead]) == page
    assert cache.get("missing", Page[JobRead]) is None


def test_memory_cache_expires_entries() -> None:
    clock = FakeClock()
    cache = MemoryCache(clock=clock)
    cache.set_bytes("k", b"v", ttl_seconds=300)

    clock.now += 299
    assert cache.get_bytes("k") == b"v"
    clock.now += 1
    assert cache.get_bytes("k") is None
    assert len(cache) == 0


def test_memory_cache_sweeps_expired_entries_on_write() -> None:
    clock = FakeClock()
    cache = MemoryCache(clock=clock, purge_interval_seconds=30)
    for i in range(1000):
        cache.set_bytes(f"jobs:list:title=q{i}#0", b"page", ttl_seconds=1)

    clock.now += 60
    cache.set_bytes("jobs:list:page=1#0", b"page", ttl_seconds=300)

    assert list(cache._entries) == ["jobs:list:page=1#0"]


def test_memory_cache_is_bounded() -> None:
    clock = FakeClock()
    cache = MemoryCache(clock=clock, max_entries=50, purge_interval_seconds=3600)
    for i in range(500):
        clock.now += 0.001
        cache.set_bytes(f"k{i}", b"v", ttl_seconds=300)

    assert len(cache._entries) <= 50
    # Entries closest to expiry go first, so the newest write survives.
    assert cache.get_bytes("k499") == b"v"
    assert cache.get_bytes("k0") is None


def test_memory_cache_generations() -> None:
    cache = MemoryCache()
    assert cache.generation(JOBS_LIST) == 0
    assert cache.bump_generation(JOBS_LIST) == 1
    assert cache.bump_generation(JOBS_LIST) == 2
    assert cache.generation(JOBS_LIST) == 2
    assert cache.generation(APPLICANTS_LIST) == 0


def test_memory_cache_generation_bumps_are_not_lost() -> None:
    cache = MemoryCache()
    threads = [threading.Thread(target=lambda: [cache.bump_generation(JOBS_LIST) for _ in range(100)]) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert cache.generation(JOBS_LIST) == 800


def test_memory_cache_delete() -> None:
    cache = MemoryCache()
    cache.set_bytes("a", b"1", 60)
    cache.set_bytes("b", b"2", 60)

    cache.delete("a", "never-set")

    assert cache.get_bytes("a") is None
    assert cache.get_bytes("b") == b"2"


def test_undecodable_entry_is_a_cache_error() -> None:
    cache = MemoryCache()
    cache.set_bytes("k", b"{not json", 60)
    with pytest.raises(CacheError):
        cache.get("k", Page[JobRead])


def test_ttl_must_be_positive() -> None:
    with pytest.raises(ValueError):
        MemoryCache().set("k", Page[JobRead](total=0, page=1, page_size=1, total_pages=1), 0)


class _FakeRedis:
    def __init__(self, fail: bool = False) -> None:
        self.store: dict[str, tuple[bytes, int | None]] = {}
        self.fail = fail

    def _check(self) -> None:
        if self.fail:
            raise redis.ConnectionError("connection refused")

    def get(self, key):
        self._check()
        entry = self.store.get(key)
        return entry[0] if entry else None

    def set(self, key, value, ex=None):
        self._check()
        self.store[key] = (value, ex)

    def delete(self, *keys):
        self._check()
        return sum(1 for k in keys if self.store.pop(k, None) is not None)

    def incr(self, key):
        self._check()
        value = int(self.store.get(key, (b"0", None))[0]) + 1
        self.store[key] = (str(value).encode(), None)
        return value

    def ping(self):
        self._check()
        return True


def test_redis_cache_uses_expiry_and_incr_generations() -> None:
    client = _FakeRedis()
    cache = RedisCache(client)

    cache.set_bytes("jobs:list:page=1#0", b"a", 300)
    assert client.store["jobs:list:page=1#0"] == (b"a", 300)
    assert cache.get_bytes("jobs:list:page=1#0") == b"a"

    assert cache.generation(JOBS_LIST) == 0
    assert cache.bump_generation(JOBS_LIST) == 1
    assert cache.generation(JOBS_LIST) == 1
    # Counters never expire.
    assert client.store["generation:jobs:list"] == (b"1", None)
    assert cache.ping() is True


def test_redis_failures_raise_cache_error() -> None:
    cache = RedisCache(_FakeRedis(fail=True))

    with pytest.raises(CacheError):
        cache.get_bytes("k")
    with pytest.raises(CacheError):
        cache.set_bytes("k", b"v", 10)
    with pytest.raises(CacheError):
        cache.generation(JOBS_LIST)
    with pytest.raises(CacheError):
        cache.bump_generation(JOBS_LIST)
    assert cache.ping() is False
