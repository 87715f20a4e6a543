"""Tests for the Redis-backed cache using an in-test fake client."""
from __future__ import annotations

from typing import Dict, Optional, Set, Tuple

import pytest
import redis

from itinerary_engine.cache import RedisCache, create_cache_service


class FakeRedis:
    """Minimal in-memory stand-in for the redis.Redis commands the cache uses."""

    def __init__(self, clock) -> None:
        self.clock = clock
        self.values: Dict[str, Tuple[str, Optional[float]]] = {}
        self.sets: Dict[str, Set[str]] = {}

    def _alive(self, key: str) -> bool:
        entry = self.values.get(key)
        if entry is None:
            return False
        if entry[1] is not None and self.clock() >= entry[1]:
            del self.values[key]
            return False
        return True

    def ping(self) -> bool:
        return True

    def set(self, key, value, ex=None):
        self.values[key] = (value, self.clock() + ex if ex else None)
        return True

    def get(self, key):
        return self.values[key][0] if self._alive(key) else None

    def exists(self, key):
        return 1 if self._alive(key) else 0

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += int(self.values.pop(key, None) is not None)
            removed += int(self.sets.pop(key, None) is not None)
        return removed

    def sadd(self, key, *members):
        self.sets.setdefault(key, set()).update(members)

    def srem(self, key, *members):
        self.sets.get(key, set()).difference_update(members)

    def smembers(self, key):
        return set(self.sets.get(key, set()))

    def scard(self, key):
        return len(self.sets.get(key, set()))


class BrokenRedis:
    """Every command fails as if the server were down."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise redis.ConnectionError("connection refused")
        return fail


@pytest.fixture
def fake(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def cache(fake) -> RedisCache:
    return RedisCache(fake, default_ttl=60, key_prefix="test:")


def test_roundtrip_within_ttl(cache, fake):
    cache.set("k", {"scores": [1, 2]})

    assert cache.get("k") == {"scores": [1, 2]}
    assert "test:k" in fake.values
    assert cache.get_stats().total_hits == 1


def test_expired_entry_is_a_miss(cache, clock):
    cache.set("k", "v")
    clock.advance(61)

    assert cache.get("k") is None
    assert cache.get_stats().total_misses == 1


def test_has_and_size(cache):
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.has("a")
    assert not cache.has("z")
    assert cache.get_stats().cache_size == 2


def test_cleanup_prunes_index(cache, clock):
    cache.set("short", 1, ttl=5)
    cache.set("long", 2, ttl=500)
    clock.advance(10)

    assert cache.cleanup() == 1
    assert cache.size() == 1


def test_size_excludes_entries_redis_expired(cache, fake, clock):
    cache.set("a", 1)
    cache.set("b", 2)
    clock.advance(120)

    assert cache.get_stats().cache_size == 0
    assert fake.smembers("test:index") == set()


def test_undecodable_payload_is_a_miss(cache, fake):
    fake.set("test:corrupt", "{not json")
    fake.sadd("test:index", "corrupt")

    assert cache.get("corrupt") is None
    stats = cache.get_stats()
    assert stats.total_misses == 1
    assert stats.total_hits == 0


def test_clear_removes_entries_and_index(cache, fake):
    cache.set("a", 1)
    cache.get("a")
    cache.clear()

    assert fake.values == {}
    assert cache.size() == 0
    assert cache.get_stats().total_hits == 0


def test_delete(cache):
    cache.set("a", 1)

    assert cache.delete("a")
    assert not cache.has("a")


def test_cache_info_reports_health(cache):
    info = cache.get_cache_info()

    assert info["backend"] == "redis"
    assert info["healthy"] is True


def test_redis_errors_degrade_to_miss():
    cache = RedisCache(BrokenRedis(), default_ttl=60)

    cache.set("k", "v")
    assert cache.get("k") is None
    assert not cache.has("k")
    assert cache.cleanup() == 0
    cache.clear()

    stats = cache.get_stats()
    assert stats.cache_size == 0
    assert cache.get_cache_info()["healthy"] is False


def test_factory_uses_given_client(fake):
    service = create_cache_service("redis", client=fake, default_ttl=30, key_prefix="x:")

    assert isinstance(service, RedisCache)
    assert service.backend == "redis"
    assert service.default_ttl == 30
