"""
Behavioral data cache.

A TTL cache in front of expensive behavioral lookups (holder history,
liquidity history, trade patterns, wallet ages, chain authority checks).
Entries are keyed by (chain, address, data class) and each data class has its
own TTL. Expired entries behave as misses and are evicted lazily; ``cleanup``
can sweep them eagerly.

Concurrent ``set`` calls for the same key are last-writer-wins. Concurrent
analyses of the same token may both fetch and store a value; the stored
values are equivalent, so this is accepted.
"""

import asyncio
import threading
import time
import zlib
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from token_risk.chains import normalize_address, normalize_chain
from token_risk.config import CacheSettings
from token_risk.errors import CacheUnavailableError, ConfigurationError
from token_risk.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

KEY_SEPARATOR = ":"


class BehavioralDataClass(str, Enum):
    """Kinds of behavioral data, each cached with its own TTL."""
    HOLDER_HISTORY = "holder_history"
    LIQUIDITY_HISTORY = "liquidity_history"
    TRADE_PATTERN = "trade_pattern"
    WALLET_PROFILE = "wallet_profile"
    SOLANA_SECURITY = "solana_security"
    CARDANO_SECURITY = "cardano_security"


DEFAULT_TTLS: Mapping[BehavioralDataClass, float] = {
    BehavioralDataClass.HOLDER_HISTORY: 600,
    BehavioralDataClass.LIQUIDITY_HISTORY: 300,
    BehavioralDataClass.TRADE_PATTERN: 300,
    BehavioralDataClass.WALLET_PROFILE: 900,
    BehavioralDataClass.SOLANA_SECURITY: 900,
    BehavioralDataClass.CARDANO_SECURITY: 900,
}


class CacheEntry:
    """Cache entry with value, insertion time and TTL."""

    __slots__ = ("value", "cached_at", "ttl")

    def __init__(self, value: Any, ttl: float, cached_at: float):
        """
        Initialize a cache entry.

        Args:
            value: The value to cache
            ttl: Time to live in seconds
            cached_at: Insertion time as epoch seconds
        """
        self.value = value
        self.ttl = ttl
        self.cached_at = cached_at

    @property
    def expires_at(self) -> float:
        return self.cached_at + self.ttl

    def is_expired(self, now: float) -> bool:
        """Check if the cache entry is expired at ``now``."""
        return now >= self.expires_at


class CacheBackend(ABC):
    """Storage contract for the behavioral cache.

    Implementations may raise CacheUnavailableError from any method when the
    store cannot be reached.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the stored entry or None."""

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any previous one."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove an entry; True if it existed."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Snapshot of all stored keys."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""


class InMemoryCacheBackend(CacheBackend):
    """Dict store split into shards, each guarded by its own lock."""

    def __init__(self, shards: int = 16):
        if shards <= 0:
            raise ConfigurationError(
                f"Cache shard count must be positive: {shards}",
                details={"shards": shards}
            )
        self._shards: List[Dict[str, CacheEntry]] = [{} for _ in range(shards)]
        self._locks = [threading.Lock() for _ in range(shards)]

    def _index(self, key: str) -> int:
        return zlib.crc32(key.encode("utf-8")) % len(self._shards)

    def get(self, key: str) -> Optional[CacheEntry]:
        index = self._index(key)
        with self._locks[index]:
            return self._shards[index].get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        index = self._index(key)
        with self._locks[index]:
            self._shards[index][key] = entry

    def delete(self, key: str) -> bool:
        index = self._index(key)
        with self._locks[index]:
            return self._shards[index].pop(key, None) is not None

    def keys(self) -> List[str]:
        result = []
        for shard, lock in zip(self._shards, self._locks):
            with lock:
                result.extend(shard.keys())
        return result

    def clear(self) -> None:
        for shard, lock in zip(self._shards, self._locks):
            with lock:
                shard.clear()

    def __len__(self) -> int:
        total = 0
        for shard, lock in zip(self._shards, self._locks):
            with lock:
                total += len(shard)
        return total


class BehavioralCache:
    """TTL cache for behavioral data keyed by (chain, address, data class)."""

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        settings: Optional[CacheSettings] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the behavioral cache.

        Args:
            backend: Storage backend, a sharded in-memory store by default
            settings: Cache settings (shard count, TTL overrides, fetch timeout)
            clock: Returns the current time as epoch seconds
        """
        self.settings = settings or CacheSettings()
        if backend is None:
            backend = InMemoryCacheBackend(self.settings.CACHE_SHARDS)
        self.backend = backend
        self.clock = clock
        self.ttls: Dict[BehavioralDataClass, float] = dict(DEFAULT_TTLS)
        for name, ttl in self.settings.TTL_OVERRIDES.items():
            try:
                self.ttls[BehavioralDataClass(name)] = ttl
            except ValueError:
                raise ConfigurationError(
                    f"Unknown behavioral data class in TTL overrides: {name}",
                    details={"valid_values": [c.value for c in BehavioralDataClass]}
                )
        self.hits = 0
        self.misses = 0
        self._stats_lock = threading.Lock()
        self._fetch_locks: Dict[str, asyncio.Lock] = {}
        self._fetch_waiters: Dict[str, int] = {}

    @staticmethod
    def make_key(chain: Any, address: str, data_class: BehavioralDataClass) -> str:
        """Build the storage key; addresses and chains are case-normalized."""
        data_class = BehavioralDataClass(data_class)
        return KEY_SEPARATOR.join(
            (normalize_address(address), normalize_chain(chain), data_class.value)
        )

    def ttl_for(self, data_class: BehavioralDataClass) -> float:
        return self.ttls[BehavioralDataClass(data_class)]

    def _record(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self.hits += 1
            else:
                self.misses += 1

    def _backend_unavailable(self, operation: str, key: str, error: CacheUnavailableError) -> None:
        log_with_context(
            logger,
            "warning",
            "Cache backend unavailable, treating as miss",
            operation=operation,
            key=key,
            error=str(error),
        )

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        try:
            entry = self.backend.get(key)
        except CacheUnavailableError as e:
            self._backend_unavailable("get", key, e)
            return None

        if entry is None:
            return None

        if entry.is_expired(self.clock()):
            try:
                self.backend.delete(key)
            except CacheUnavailableError as e:
                self._backend_unavailable("delete", key, e)
            return None

        return entry

    def get(self, chain: Any, address: str, data_class: BehavioralDataClass) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            chain: Chain name or id
            address: Token address
            data_class: Kind of behavioral data

        Returns:
            Cached value, or None on a miss, an expired entry or an
            unreachable backend
        """
        entry = self._lookup(self.make_key(chain, address, data_class))
        self._record(entry is not None)
        return entry.value if entry is not None else None

    def set(
        self,
        chain: Any,
        address: str,
        data_class: BehavioralDataClass,
        value: Any,
        ttl: Optional[float] = None
    ) -> None:
        """
        Store a value.

        Args:
            chain: Chain name or id
            address: Token address
            data_class: Kind of behavioral data
            value: Value to cache
            ttl: Time to live in seconds (data class default if None)
        """
        key = self.make_key(chain, address, data_class)
        entry = CacheEntry(
            value,
            ttl if ttl is not None else self.ttl_for(data_class),
            self.clock()
        )
        try:
            self.backend.set(key, entry)
        except CacheUnavailableError as e:
            self._backend_unavailable("set", key, e)

    def has(self, chain: Any, address: str, data_class: BehavioralDataClass) -> bool:
        """Check for a live entry without touching hit/miss statistics."""
        return self._lookup(self.make_key(chain, address, data_class)) is not None

    def invalidate(
        self,
        chain: Any,
        address: str,
        data_class: Optional[BehavioralDataClass] = None
    ) -> int:
        """
        Remove one data class, or every data class, cached for a token.

        Returns:
            Number of entries removed
        """
        classes = [data_class] if data_class is not None else list(BehavioralDataClass)
        removed = 0
        for cls in classes:
            key = self.make_key(chain, address, cls)
            try:
                if self.backend.delete(key):
                    removed += 1
            except CacheUnavailableError as e:
                self._backend_unavailable("delete", key, e)
        return removed

    def clear(self) -> None:
        """Remove every entry and reset statistics."""
        try:
            self.backend.clear()
        except CacheUnavailableError as e:
            self._backend_unavailable("clear", "*", e)
        with self._stats_lock:
            self.hits = 0
            self.misses = 0

    def _keys(self) -> List[str]:
        try:
            return self.backend.keys()
        except CacheUnavailableError as e:
            self._backend_unavailable("keys", "*", e)
            return []

    def cleanup(self) -> int:
        """
        Remove expired entries.

        Returns:
            Number of entries removed
        """
        now = self.clock()
        removed = 0
        for key in self._keys():
            try:
                entry = self.backend.get(key)
                if entry is not None and entry.is_expired(now) and self.backend.delete(key):
                    removed += 1
            except CacheUnavailableError as e:
                self._backend_unavailable("cleanup", key, e)
                break
        if removed:
            log_with_context(logger, "debug", "Removed expired cache entries", removed=removed)
        return removed

    def cached_tokens(self) -> List[Tuple[str, str]]:
        """Distinct (chain, address) pairs with at least one stored entry."""
        tokens = set()
        for key in self._keys():
            address, chain, _ = key.split(KEY_SEPARATOR, 2)
            tokens.add((chain, address))
        return sorted(tokens)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        with self._stats_lock:
            hits, misses = self.hits, self.misses
        total = hits + misses
        return {
            "size": len(self._keys()),
            "hits": hits,
            "misses": misses,
            "hit_rate": hits / total if total > 0 else 0.0,
            "ttls": {cls.value: ttl for cls, ttl in self.ttls.items()},
        }

    async def get_or_fetch(
        self,
        chain: Any,
        address: str,
        data_class: BehavioralDataClass,
        fetcher: Callable[[], Awaitable[Any]],
        timeout: Optional[float] = None
    ) -> Optional[Any]:
        """Get a cached value or fetch and store it.

        Concurrent callers for the same key share one fetch. A fetch that
        exceeds the timeout counts as a miss: None is returned and nothing
        is stored, so the caller scores the field as missing.

        Args:
            chain: Chain name or id
            address: Token address
            data_class: Kind of behavioral data
            fetcher: Coroutine function producing the value
            timeout: Seconds to wait for the fetch (settings default if None)

        Returns:
            Cached or fetched value, None if the fetch timed out or produced
            nothing
        """
        cached = self.get(chain, address, data_class)
        if cached is not None:
            return cached

        key = self.make_key(chain, address, data_class)
        if key not in self._fetch_locks:
            self._fetch_locks[key] = asyncio.Lock()
        lock = self._fetch_locks[key]
        self._fetch_waiters[key] = self._fetch_waiters.get(key, 0) + 1

        try:
            async with lock:
                # Another request may have fetched while we were waiting
                entry = self._lookup(key)
                if entry is not None:
                    return entry.value
                return await self._fetch_and_store(chain, address, data_class, fetcher, timeout)
        finally:
            # Drop the lock once its last waiter is done
            self._fetch_waiters[key] -= 1
            if not self._fetch_waiters[key]:
                del self._fetch_waiters[key]
                self._fetch_locks.pop(key, None)

    async def _fetch_and_store(
        self,
        chain: Any,
        address: str,
        data_class: BehavioralDataClass,
        fetcher: Callable[[], Awaitable[Any]],
        timeout: Optional[float]
    ) -> Optional[Any]:
        timeout = timeout if timeout is not None else self.settings.FETCH_TIMEOUT
        try:
            value = await asyncio.wait_for(fetcher(), timeout)
        except asyncio.TimeoutError:
            log_with_context(
                logger,
                "warning",
                "Behavioral data fetch timed out",
                key=self.make_key(chain, address, data_class),
                timeout=timeout,
            )
            return None

        if value is not None:
            self.set(chain, address, data_class, value)
        return value
