"""
Performance classification and operation timing.

``classify`` is a pure function mapping a query's elapsed time and result
size to a performance class plus optimisation hints.  ``OperationMonitor``
keeps a bounded window of timings per operation and is owned by whoever
constructs it (there is no process-wide instance).
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger("tracker_query.performance")

T = TypeVar("T")

EXCELLENT_THRESHOLD_MS = 1000
GOOD_THRESHOLD_MS = 3000
FAIR_THRESHOLD_MS = 5000
LARGE_RESULT_THRESHOLD = 500
SLOW_OPERATION_MS = 1000

SUGGEST_NARROW_FILTERS = (
    "Consider adding more specific filters to reduce result set"
)
SUGGEST_PAGINATION = "Large result set detected - consider pagination"
SUGGEST_BACKGROUND = (
    "Query is slow - consider using cached results or background processing"
)


class PerformanceClass(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    SLOW = "slow"


@dataclass(frozen=True)
class PerformanceReport:
    performance_class: PerformanceClass
    suggestions: list[str]
    query_time_ms: float
    result_count: int


def classify(elapsed_ms: float, result_count: int) -> PerformanceReport:
    """
    Classify a query execution.

    Thresholds are inclusive-exclusive: ``999`` is excellent, ``1000`` is
    good.  Suggestions are independent of each other and may co-occur.
    """
    if elapsed_ms < EXCELLENT_THRESHOLD_MS:
        perf = PerformanceClass.EXCELLENT
    elif elapsed_ms < GOOD_THRESHOLD_MS:
        perf = PerformanceClass.GOOD
    elif elapsed_ms < FAIR_THRESHOLD_MS:
        perf = PerformanceClass.FAIR
    else:
        perf = PerformanceClass.SLOW

    suggestions: list[str] = []
    if elapsed_ms > GOOD_THRESHOLD_MS:
        suggestions.append(SUGGEST_NARROW_FILTERS)
    if result_count > LARGE_RESULT_THRESHOLD:
        suggestions.append(SUGGEST_PAGINATION)
    if elapsed_ms > FAIR_THRESHOLD_MS:
        suggestions.append(SUGGEST_BACKGROUND)

    return PerformanceReport(
        performance_class=perf,
        suggestions=suggestions,
        query_time_ms=elapsed_ms,
        result_count=result_count,
    )


# ── Operation monitor ────────────────────────────────────────────────


@dataclass(frozen=True)
class OperationMetric:
    operation: str
    duration_ms: float
    timestamp: float
    success: bool = True
    cached: bool = False


@dataclass(frozen=True)
class OperationStats:
    count: int = 0
    avg_duration_ms: float = 0.0
    min_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    p95_duration_ms: float = 0.0
    success_rate: float = 100.0


@dataclass
class _CacheCounters:
    hits: int = 0
    misses: int = 0


@dataclass
class OperationMonitor:
    """
    Tracks recent operation durations and cache hits/misses.

    Only the last ``max_metrics`` measurements are kept.  Operations slower
    than ``slow_threshold_ms`` are logged as warnings.
    """

    max_metrics: int = 1000
    slow_threshold_ms: float = SLOW_OPERATION_MS
    _metrics: deque[OperationMetric] = field(init=False, repr=False)
    _cache: _CacheCounters = field(default_factory=_CacheCounters, init=False)

    def __post_init__(self) -> None:
        self._metrics = deque(maxlen=self.max_metrics)

    def track(
        self,
        operation: str,
        duration_ms: float,
        success: bool = True,
        cached: bool = False,
    ) -> None:
        self._metrics.append(
            OperationMetric(
                operation=operation,
                duration_ms=duration_ms,
                timestamp=time.time(),
                success=success,
                cached=cached,
            )
        )
        if duration_ms > self.slow_threshold_ms:
            logger.warning(
                "Slow operation detected: %s took %.0fms (cached=%s)",
                operation,
                duration_ms,
                cached,
            )

    def track_cache(self, hit: bool) -> None:
        if hit:
            self._cache.hits += 1
        else:
            self._cache.misses += 1

    def cache_stats(self) -> dict[str, Any]:
        """Hits, misses and hit rate as a percentage."""
        total = self._cache.hits + self._cache.misses
        hit_rate = (self._cache.hits / total) * 100 if total else 0.0
        return {
            "hits": self._cache.hits,
            "misses": self._cache.misses,
            "hit_rate": round(hit_rate, 2),
        }

    def stats(self, operation: str | None = None) -> OperationStats:
        metrics = [
            m for m in self._metrics if operation is None or m.operation == operation
        ]
        if not metrics:
            return OperationStats()

        durations = sorted(m.duration_ms for m in metrics)
        successes = sum(1 for m in metrics if m.success)
        return OperationStats(
            count=len(metrics),
            avg_duration_ms=round(sum(durations) / len(durations), 2),
            min_duration_ms=durations[0],
            max_duration_ms=durations[-1],
            p95_duration_ms=durations[int(len(durations) * 0.95)],
            success_rate=round(successes / len(metrics) * 100, 2),
        )

    def operations(self) -> list[str]:
        return list(dict.fromkeys(m.operation for m in self._metrics))

    def reset(self) -> None:
        self._metrics.clear()
        self._cache = _CacheCounters()

    def report(self) -> str:
        """Human-readable summary of cache and per-operation statistics."""
        cache = self.cache_stats()
        lines = [
            "Performance Report",
            "=" * 50,
            "",
            "Cache Statistics:",
            f"  Hits: {cache['hits']}",
            f"  Misses: {cache['misses']}",
            f"  Hit Rate: {cache['hit_rate']}%",
            "",
            "Operation Statistics:",
        ]
        for op in self.operations():
            s = self.stats(op)
            lines += [
                f"  {op}:",
                f"    Count: {s.count}",
                f"    Avg: {s.avg_duration_ms}ms",
                f"    P95: {s.p95_duration_ms}ms",
                f"    Min/Max: {s.min_duration_ms}ms / {s.max_duration_ms}ms",
                f"    Success Rate: {s.success_rate}%",
            ]
        return "\n".join(lines)

    async def measure(
        self,
        operation: str,
        fn: Callable[[], Awaitable[T]],
        cached: bool = False,
    ) -> T:
        """Await ``fn()`` and track its duration, including failures."""
        start = time.perf_counter()
        success = True
        try:
            return await fn()
        except Exception:
            success = False
            raise
        finally:
            self.track(
                operation,
                (time.perf_counter() - start) * 1000,
                success=success,
                cached=cached,
            )
