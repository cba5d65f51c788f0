"""
ResultCache — in-memory TTL cache with per-domain expiry policy.

Keys follow ``"{domain}:{endpoint}:{hash}"``; the first segment selects a
default TTL from the domain table when no explicit TTL is given.  Expiry
is checked lazily on read and swept periodically on write; there are no
per-key timers.  When full, the oldest inserted key is evicted.

Each instance is independent.  Create one per client/session and inject
it where it is needed.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping

logger = logging.getLogger("tracker_query.cache")

DEFAULT_DOMAIN_TTLS: Mapping[str, int] = {
    "issues": 180,  # issues change frequently
    "projects": 900,
    "users": 1800,  # user data rarely changes
    "articles": 600,
    "agile": 120,  # sprints/boards change often
    "workitems": 300,
    "admin": 3600,
    "customfields": 1800,
}

HEALTHY_HIT_RATE = 0.7
WARNING_HIT_RATE = 0.4
NEAR_CAPACITY_RATIO = 0.9
MAX_KEY_SAMPLES = 50


@dataclass(frozen=True)
class CacheConfig:
    """
    Cache settings.

    Attributes:
        default_ttl: TTL in seconds for keys whose domain is not in the table.
        max_keys: Capacity; inserting beyond it evicts the oldest key.
        sweep_interval: Number of ``set`` calls between expired-entry sweeps.
        domain_ttls: Per-domain TTL table, keyed by the first key segment.
    """

    default_ttl: int = 300
    max_keys: int = 1000
    sweep_interval: int = 100
    domain_ttls: Mapping[str, int] = field(
        default_factory=lambda: dict(DEFAULT_DOMAIN_TTLS)
    )

    def __post_init__(self) -> None:
        _check_ttl(self.default_ttl)
        if self.max_keys < 1:
            raise ValueError("max_keys must be at least 1")
        if self.sweep_interval < 1:
            raise ValueError("sweep_interval must be at least 1")
        for ttl in self.domain_ttls.values():
            _check_ttl(ttl)


@dataclass
class CacheEntry:
    key: str
    payload: Any
    created_at: float
    ttl_seconds: int
    hit_count: int = 0

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def age(self, now: float) -> float:
        return now - self.created_at


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    sets: int
    deletes: int
    evictions: int
    total_keys: int
    hit_rate: float
    cache_keys: list[str]


@dataclass(frozen=True)
class CacheHealth:
    status: str
    hit_rate: float
    recommendations: list[str]


@dataclass(frozen=True)
class CacheLookup:
    """Provenance of a value returned by a :meth:`ResultCache.cached` wrapper."""

    cached: bool
    timestamp: str
    source: str
    duration_ms: float | None = None


@dataclass
class _Counters:
    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0


def _check_ttl(ttl: Any) -> None:
    if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
        raise ValueError(f"TTL must be a positive integer number of seconds, got {ttl!r}")


class ResultCache:
    """Generic TTL key/value store with statistics and domain policies."""

    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = clock
        # dict preserves insertion order: the first key is the oldest insert.
        self._data: dict[str, CacheEntry] = {}
        self._stats = _Counters()
        self._sets_since_sweep = 0

    @property
    def config(self) -> CacheConfig:
        return self._config

    # -- keys ----------------------------------------------------------------

    @staticmethod
    def generate_key(domain: str, endpoint: str, params: Any = None) -> str:
        """Return ``"{domain}:{endpoint}:{hash}"`` for *params*."""
        if not params:
            return f"{domain}:{endpoint}:default"
        canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
        digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
        return f"{domain}:{endpoint}:{digest}"

    def resolve_ttl(self, key: str, ttl: int | None = None) -> int:
        """Explicit TTL wins; otherwise use the key's domain or the default."""
        if ttl is not None:
            _check_ttl(ttl)
            return ttl
        domain = key.split(":", 1)[0]
        return self._config.domain_ttls.get(domain, self._config.default_ttl)

    # -- core operations -----------------------------------------------------

    def get(self, key: str) -> CacheEntry | None:
        entry = self._live_entry(key)
        if entry is None:
            self._stats.misses += 1
            return None
        self._stats.hits += 1
        entry.hit_count += 1
        return entry

    def set(self, key: str, data: Any, ttl: int | None = None) -> CacheEntry:
        resolved = self.resolve_ttl(key, ttl)
        now = self._clock()

        existing = self._data.get(key)
        if existing is not None:
            # Overwrite keeps the key's insertion position.
            existing.payload = data
            existing.created_at = now
            existing.ttl_seconds = resolved
            existing.hit_count = 0
            entry = existing
        else:
            if len(self._data) >= self._config.max_keys:
                self._evict_oldest()
            entry = CacheEntry(key=key, payload=data, created_at=now, ttl_seconds=resolved)
            self._data[key] = entry

        self._stats.sets += 1
        self._sets_since_sweep += 1
        if self._sets_since_sweep >= self._config.sweep_interval:
            self.purge_expired()
        return entry

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def delete(self, key: str) -> int:
        if self._data.pop(key, None) is None:
            return 0
        self._stats.deletes += 1
        return 1

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key containing *pattern*; return how many were removed."""
        keys = [k for k in self._data if pattern in k]
        for k in keys:
            del self._data[k]
        self._stats.deletes += len(keys)
        if keys:
            logger.debug("Invalidated %d cache keys matching %r", len(keys), pattern)
        return len(keys)

    def invalidate_domain(self, domain: str) -> int:
        return self.delete_pattern(f"{domain}:")

    def clear(self) -> None:
        self._data.clear()

    def purge_expired(self) -> int:
        """Drop all expired entries; return how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._data.items() if e.is_expired(now)]
        for k in expired:
            del self._data[k]
        self._sets_since_sweep = 0
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def keys(self) -> list[str]:
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    # -- statistics ----------------------------------------------------------

    def get_stats(self) -> CacheStats:
        lookups = self._stats.hits + self._stats.misses
        hit_rate = self._stats.hits / lookups if lookups else 0.0
        keys = self.keys()
        return CacheStats(
            hits=self._stats.hits,
            misses=self._stats.misses,
            sets=self._stats.sets,
            deletes=self._stats.deletes,
            evictions=self._stats.evictions,
            total_keys=len(keys),
            hit_rate=round(hit_rate, 2),
            cache_keys=keys[:MAX_KEY_SAMPLES],
        )

    def get_health_metrics(self) -> CacheHealth:
        stats = self.get_stats()
        if stats.hit_rate > HEALTHY_HIT_RATE:
            status = "healthy"
        elif stats.hit_rate > WARNING_HIT_RATE:
            status = "warning"
        else:
            status = "poor"
        return CacheHealth(
            status=status,
            hit_rate=stats.hit_rate,
            recommendations=self._recommendations(stats),
        )

    def _recommendations(self, stats: CacheStats) -> list[str]:
        recommendations: list[str] = []
        if stats.hit_rate < WARNING_HIT_RATE:
            recommendations.append(
                "Consider increasing cache TTL for frequently accessed data"
            )
        if stats.total_keys > self._config.max_keys * NEAR_CAPACITY_RATIO:
            recommendations.append(
                "Cache is near capacity, consider increasing max_keys or reducing TTL"
            )
        if stats.hits < stats.misses:
            recommendations.append(
                "High cache miss rate detected, review caching strategy"
            )
        return recommendations

    # -- async helpers -------------------------------------------------------

    async def warm_up(
        self,
        items: Iterable[tuple[str, Callable[[], Awaitable[Any]]]],
    ) -> int:
        """
        Populate keys that are not already cached.

        Fetchers run concurrently; a failing fetcher is logged and skipped
        without affecting the others.  Returns the number of keys stored.
        """
        pending = [(key, fetcher) for key, fetcher in items if not self.has(key)]

        async def _load(key: str, fetcher: Callable[[], Awaitable[Any]]) -> bool:
            try:
                data = await fetcher()
            except Exception as e:  # noqa: BLE001
                logger.warning("Cache warmup failed for %s: %s", key, e)
                return False
            self.set(key, data)
            return True

        results = await asyncio.gather(*(_load(k, f) for k, f in pending))
        return sum(results)

    def cached(
        self,
        domain: str,
        endpoint: str,
        fetcher: Callable[..., Awaitable[Any]],
        ttl: int | None = None,
    ) -> Callable[..., Awaitable[tuple[Any, CacheLookup]]]:
        """
        Wrap *fetcher* with read-through caching keyed on its arguments.

        The wrapper returns ``(data, CacheLookup)``.
        """

        async def wrapper(*args: Any, **kwargs: Any) -> tuple[Any, CacheLookup]:
            params = {"args": list(args), "kwargs": kwargs} if args or kwargs else None
            key = self.generate_key(domain, endpoint, params)

            entry = self.get(key)
            if entry is not None:
                return entry.payload, CacheLookup(
                    cached=True,
                    timestamp=_iso_now(),
                    source="cache",
                )

            start = time.perf_counter()
            data = await fetcher(*args, **kwargs)
            self.set(key, data, ttl)
            return data, CacheLookup(
                cached=False,
                timestamp=_iso_now(),
                source="api",
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )

        return wrapper

    # -- internals -----------------------------------------------------------

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._data[key]
            return None
        return entry

    def _evict_oldest(self) -> None:
        oldest = next(iter(self._data))
        del self._data[oldest]
        self._stats.evictions += 1
        logger.debug("Cache at capacity, evicted oldest key %s", oldest)


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()
