"""Unit tests for the behavioral cache."""

import asyncio

import pytest

from token_risk.config import CacheSettings
from token_risk.errors import CacheUnavailableError, ConfigurationError
from token_risk.services.cache_service import (
    DEFAULT_TTLS,
    BehavioralCache,
    BehavioralDataClass,
    CacheBackend,
    CacheEntry,
    InMemoryCacheBackend,
)

HOLDERS = BehavioralDataClass.HOLDER_HISTORY
LIQUIDITY = BehavioralDataClass.LIQUIDITY_HISTORY
WALLETS = BehavioralDataClass.WALLET_PROFILE

ADDRESS = "0xAbC0000000000000000000000000000000000001"


class UnavailableBackend(CacheBackend):
    """Backend whose store can never be reached."""

    def get(self, key):
        raise CacheUnavailableError("store down", backend="test")

    def set(self, key, entry):
        raise CacheUnavailableError("store down", backend="test")

    def delete(self, key):
        raise CacheUnavailableError("store down", backend="test")

    def keys(self):
        raise CacheUnavailableError("store down", backend="test")

    def clear(self):
        raise CacheUnavailableError("store down", backend="test")


class TestCacheEntry:
    """Test suite for CacheEntry."""

    def test_expiry_boundary(self):
        entry = CacheEntry({"current": 1}, ttl=10, cached_at=100)
        assert entry.expires_at == 110
        assert not entry.is_expired(109.9)
        assert entry.is_expired(110)


class TestBehavioralCache:
    """Test suite for BehavioralCache."""

    def test_set_and_get(self, cache):
        cache.set("ethereum", ADDRESS, HOLDERS, {"current": 10})
        assert cache.get("ethereum", ADDRESS, HOLDERS) == {"current": 10}

    def test_miss(self, cache):
        assert cache.get("ethereum", ADDRESS, HOLDERS) is None

    def test_keys_are_case_normalized(self, cache):
        cache.set("Ethereum", ADDRESS, HOLDERS, 1)
        assert cache.get("ethereum", ADDRESS.lower(), HOLDERS) == 1
        assert BehavioralCache.make_key("ETH", " 0xAB ", HOLDERS) == "0xab:eth:holder_history"

    def test_data_classes_are_separate(self, cache):
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        assert cache.get("ethereum", ADDRESS, LIQUIDITY) is None

    def test_entry_expires_after_ttl(self, cache, fake_clock):
        cache.set("ethereum", ADDRESS, LIQUIDITY, 1)
        fake_clock.advance(DEFAULT_TTLS[LIQUIDITY] - 1)
        assert cache.get("ethereum", ADDRESS, LIQUIDITY) == 1
        fake_clock.advance(1)
        assert cache.get("ethereum", ADDRESS, LIQUIDITY) is None

    def test_per_class_ttls(self, cache, fake_clock):
        cache.set("ethereum", ADDRESS, LIQUIDITY, 1)
        cache.set("ethereum", ADDRESS, WALLETS, 2)
        fake_clock.advance(400)
        assert cache.get("ethereum", ADDRESS, LIQUIDITY) is None
        assert cache.get("ethereum", ADDRESS, WALLETS) == 2

    def test_explicit_ttl(self, cache, fake_clock):
        cache.set("ethereum", ADDRESS, WALLETS, 2, ttl=5)
        fake_clock.advance(5)
        assert not cache.has("ethereum", ADDRESS, WALLETS)

    def test_zero_ttl_is_not_replaced_by_default(self, cache):
        cache.set("ethereum", ADDRESS, WALLETS, 2, ttl=0)
        assert not cache.has("ethereum", ADDRESS, WALLETS)

    def test_ttl_overrides(self, fake_clock):
        cache = BehavioralCache(
            settings=CacheSettings(TTL_OVERRIDES={"holder_history": 30}),
            clock=fake_clock,
        )
        assert cache.ttl_for(HOLDERS) == 30
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        fake_clock.advance(31)
        assert cache.get("ethereum", ADDRESS, HOLDERS) is None

    def test_unknown_ttl_override_rejected(self):
        with pytest.raises(ConfigurationError):
            BehavioralCache(settings=CacheSettings(TTL_OVERRIDES={"moon_phase": 30}))

    def test_invalidate_one_class(self, cache):
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        cache.set("ethereum", ADDRESS, LIQUIDITY, 2)
        assert cache.invalidate("ethereum", ADDRESS, HOLDERS) == 1
        assert cache.get("ethereum", ADDRESS, HOLDERS) is None
        assert cache.get("ethereum", ADDRESS, LIQUIDITY) == 2

    def test_invalidate_token(self, cache):
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        cache.set("ethereum", ADDRESS, LIQUIDITY, 2)
        cache.set("bsc", ADDRESS, HOLDERS, 3)
        assert cache.invalidate("ethereum", ADDRESS) == 2
        assert cache.get("bsc", ADDRESS, HOLDERS) == 3

    def test_cleanup_removes_only_expired(self, cache, fake_clock):
        cache.set("ethereum", ADDRESS, LIQUIDITY, 1)
        cache.set("ethereum", ADDRESS, WALLETS, 2)
        fake_clock.advance(600)
        assert cache.cleanup() == 1
        assert cache.get_stats()["size"] == 1

    def test_has_does_not_count(self, cache):
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        assert cache.has("ethereum", ADDRESS, HOLDERS)
        stats = cache.get_stats()
        assert stats["hits"] == 0 and stats["misses"] == 0

    def test_cached_tokens(self, cache):
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        cache.set("ethereum", ADDRESS, LIQUIDITY, 1)
        cache.set("solana", "So1aNa", HOLDERS, 1)
        assert cache.cached_tokens() == [
            ("ethereum", ADDRESS.lower()),
            ("solana", "so1ana"),
        ]

    def test_stats(self, cache):
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        cache.get("ethereum", ADDRESS, HOLDERS)
        cache.get("ethereum", ADDRESS, LIQUIDITY)
        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["ttls"]["wallet_profile"] == 900

    def test_clear_resets_stats(self, cache):
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        cache.get("ethereum", ADDRESS, HOLDERS)
        cache.clear()
        stats = cache.get_stats()
        assert (stats["size"], stats["hits"], stats["misses"]) == (0, 0, 0)

    def test_unavailable_backend_is_a_miss(self):
        cache = BehavioralCache(backend=UnavailableBackend())
        cache.set("ethereum", ADDRESS, HOLDERS, 1)
        assert cache.get("ethereum", ADDRESS, HOLDERS) is None
        assert cache.invalidate("ethereum", ADDRESS) == 0
        assert cache.cleanup() == 0
        assert cache.cached_tokens() == []


class TestInMemoryBackend:
    """Test suite for the sharded backend."""

    def test_entries_spread_over_shards(self):
        backend = InMemoryCacheBackend(shards=4)
        for i in range(40):
            backend.set(f"key-{i}", CacheEntry(i, 10, 0))
        assert len(backend) == 40
        assert sorted(backend.keys()) == sorted(f"key-{i}" for i in range(40))
        assert sum(1 for shard in backend._shards if shard) > 1

    def test_delete(self):
        backend = InMemoryCacheBackend(shards=2)
        backend.set("a", CacheEntry(1, 10, 0))
        assert backend.delete("a")
        assert not backend.delete("a")

    def test_invalid_shard_count(self):
        with pytest.raises(ConfigurationError):
            InMemoryCacheBackend(shards=0)


class TestGetOrFetch:
    """Test suite for BehavioralCache.get_or_fetch."""

    @pytest.mark.asyncio
    async def test_fetches_and_stores(self, cache):
        calls = []

        async def fetcher():
            calls.append(1)
            return {"current": 100}

        first = await cache.get_or_fetch("ethereum", ADDRESS, HOLDERS, fetcher)
        second = await cache.get_or_fetch("ethereum", ADDRESS, HOLDERS, fetcher)
        assert first == second == {"current": 100}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_a_miss(self, cache):
        async def slow():
            await asyncio.sleep(1)
            return {"current": 1}

        result = await cache.get_or_fetch("ethereum", ADDRESS, HOLDERS, slow, timeout=0.01)
        assert result is None
        assert not cache.has("ethereum", ADDRESS, HOLDERS)

    @pytest.mark.asyncio
    async def test_none_is_not_stored(self, cache):
        async def empty():
            return None

        assert await cache.get_or_fetch("ethereum", ADDRESS, HOLDERS, empty) is None
        assert not cache.has("ethereum", ADDRESS, HOLDERS)

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self, cache):
        async def broken():
            raise RuntimeError("provider down")

        with pytest.raises(RuntimeError):
            await cache.get_or_fetch("ethereum", ADDRESS, HOLDERS, broken)

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_fetch(self, cache):
        calls = []

        async def fetcher():
            calls.append(1)
            await asyncio.sleep(0.01)
            return {"current": 5}

        results = await asyncio.gather(*[
            cache.get_or_fetch("ethereum", ADDRESS, HOLDERS, fetcher) for _ in range(5)
        ])
        assert results == [{"current": 5}] * 5
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_fetch_locks_released(self, cache):
        async def fetcher():
            await asyncio.sleep(0.01)
            return {"current": 5}

        async def slow():
            await asyncio.sleep(1)

        async def broken():
            raise RuntimeError("provider down")

        await asyncio.gather(*[
            cache.get_or_fetch("ethereum", ADDRESS, HOLDERS, fetcher) for _ in range(3)
        ])
        await cache.get_or_fetch("ethereum", ADDRESS, LIQUIDITY, slow, timeout=0.01)
        with pytest.raises(RuntimeError):
            await cache.get_or_fetch("ethereum", ADDRESS, WALLETS, broken)
        assert cache._fetch_locks == {}
        assert cache._fetch_waiters == {}
