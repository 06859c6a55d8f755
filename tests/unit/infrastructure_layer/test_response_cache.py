"""
Unit Tests for the Response Cache

Tests TTL expiry, lazy eviction, sweeping and key construction.
"""

import pytest

from chainrpc.core.exceptions import CacheKeyError
from chainrpc.infrastructure.cache.response_cache import ResponseCache, build_cache_key
from tests.test_fixtures import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResponseCache(max_size=1000, clock=clock)


@pytest.mark.unit
class TestCacheKey:
    def test_key_has_operation_prefix(self):
        assert build_cache_key("getBlockNumber", []) == "getBlockNumber:[]"

    def test_dict_key_order_is_irrelevant(self):
        first = build_cache_key("getBalance", [{"address": "0xabc", "block": "latest"}])
        second = build_cache_key("getBalance", [{"block": "latest", "address": "0xabc"}])
        assert first == second

    def test_big_integers_serialized_exactly(self):
        huge = 2**255 + 1
        key = build_cache_key("readContract", [{"args": [huge]}])
        assert str(huge) in key

    def test_integers_become_decimal_strings(self):
        assert build_cache_key("getBlock", [{"block": 10}]) == 'getBlock:[{"block":"10"}]'

    def test_bytes_rendered_as_hex(self):
        assert '"0x0102"' in build_cache_key("readContract", [b"\x01\x02"])

    def test_different_params_different_keys(self):
        assert build_cache_key("getBalance", [{"address": "0x1"}]) != build_cache_key(
            "getBalance", [{"address": "0x2"}]
        )

    def test_unserializable_value_raises(self):
        with pytest.raises(CacheKeyError):
            build_cache_key("getLogs", [{"filter": object()}])

    def test_cache_builds_fallback_key(self, cache):
        marker = object()
        key = cache.build_key("getLogs", [marker])

        assert key == f"getLogs:{marker}"


@pytest.mark.unit
class TestCacheExpiry:
    def test_hit_within_ttl(self, cache, clock):
        cache.set("k", 42, ttl=5)
        clock.advance(4.9)

        assert cache.get("k") == 42

    def test_entry_still_valid_at_exact_ttl(self, cache, clock):
        cache.set("k", 42, ttl=5)
        clock.advance(5)

        assert cache.get("k") == 42

    def test_miss_after_ttl_removes_entry(self, cache, clock):
        cache.set("k", 42, ttl=5)
        clock.advance(5.01)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_default_returned_on_miss(self, cache):
        sentinel = object()
        assert cache.get("missing", sentinel) is sentinel

    def test_cached_none_distinguishable_from_miss(self, cache):
        sentinel = object()
        cache.set("tx", None, ttl=5)

        assert cache.get("tx", sentinel) is None

    def test_set_replaces_and_refreshes(self, cache, clock):
        cache.set("k", 1, ttl=5)
        clock.advance(4)
        cache.set("k", 2, ttl=5)
        clock.advance(4)

        assert cache.get("k") == 2

    def test_contains_respects_expiry(self, cache, clock):
        cache.set("k", 1, ttl=1)
        assert "k" in cache
        clock.advance(2)
        assert "k" not in cache


@pytest.mark.unit
class TestCacheSweep:
    def test_sweep_triggered_above_max_size(self, clock):
        cache = ResponseCache(max_size=3, clock=clock)
        cache.set("old-1", 1, ttl=1)
        cache.set("old-2", 2, ttl=1)
        cache.set("fresh", 3, ttl=100)
        clock.advance(2)

        cache.set("new", 4, ttl=100)

        assert len(cache) == 2
        assert cache.get("fresh") == 3
        assert cache.get("new") == 4

    def test_no_eviction_of_live_entries(self, clock):
        cache = ResponseCache(max_size=2, clock=clock)
        for i in range(4):
            cache.set(f"k{i}", i, ttl=100)

        assert len(cache) == 4

    def test_clear(self, cache):
        cache.set("a", 1, ttl=5)
        cache.set("b", 2, ttl=5)
        cache.clear()

        assert len(cache) == 0

    def test_stats_track_hits_and_misses(self, cache):
        cache.set("a", 1, ttl=5)
        cache.get("a")
        cache.get("b")

        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
