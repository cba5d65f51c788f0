"""QueryOrchestrator — cached, validated, timed execution of structured queries."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .compiler import QueryCompiler
from .exceptions import QueryValidationError
from .models import QueryMetadata, QueryRequest, QueryResult
from .performance import classify
from .ports.executor import DEFAULT_SEARCH_FIELDS
from .validator import QueryValidator

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from .cache import ResultCache
    from .metrics import QueryMetrics
    from .performance import OperationMonitor, PerformanceReport
    from .ports.executor import IQueryExecutor

logger = logging.getLogger("tracker_query.orchestrator")

OPERATION = "execute_query"


@dataclass(frozen=True)
class OrchestratorConfig:
    """
    Execution settings.

    Attributes:
        cache_domain: First cache-key segment for query results.
        cache_endpoint: Second cache-key segment for query results.
        result_ttl: TTL in seconds for cached query results.
        default_limit: Limit sent to the backend when the request has none.
        default_fields: Field selector used when the request has none.
        sweep_threshold: Cache size above which expired entries are purged
            after each store.
    """

    cache_domain: str = "issues"
    cache_endpoint: str = "query"
    result_ttl: int = 60
    default_limit: int = 100
    default_fields: tuple[str, ...] = DEFAULT_SEARCH_FIELDS
    sweep_threshold: int = 100


class QueryOrchestrator:
    """
    Run a ``QueryRequest`` through the full pipeline.

    cache lookup -> validate -> compile -> execute -> classify -> store.

    Collaborators are injected; the cache in particular is owned by the
    caller so that several orchestrators (or tests) can share or isolate it.
    Identical requests that miss the cache concurrently share one backend
    call.

    Parameters
    ----------
    executor:
        Backend capability that runs compiled query text.
    cache:
        :class:`~tracker_query.cache.ResultCache` used for results.
    compiler / validator:
        Optional replacements for the default implementations.
    monitor:
        Optional :class:`~tracker_query.performance.OperationMonitor`
        receiving one measurement per execution.
    metrics:
        Optional :class:`~tracker_query.metrics.QueryMetrics` exporting
        Prometheus duration and outcome series.
    advisor:
        Callable ``(elapsed_ms, result_count) -> PerformanceReport``.
    """

    def __init__(
        self,
        executor: IQueryExecutor,
        cache: ResultCache,
        *,
        compiler: QueryCompiler | None = None,
        validator: QueryValidator | None = None,
        monitor: OperationMonitor | None = None,
        metrics: QueryMetrics | None = None,
        advisor: Callable[[float, int], PerformanceReport] = classify,
        config: OrchestratorConfig | None = None,
    ) -> None:
        self._executor = executor
        self._cache = cache
        self._compiler = compiler or QueryCompiler()
        self._validator = validator or QueryValidator(
            scope_field=self._compiler.config.scope_field
        )
        self._monitor = monitor
        self._metrics = metrics
        self._advisor = advisor
        self._config = config or OrchestratorConfig()
        self._inflight: dict[str, asyncio.Future[QueryResult]] = {}

    @property
    def cache(self) -> ResultCache:
        return self._cache

    def cache_key(self, request: QueryRequest) -> str:
        return self._cache.generate_key(
            self._config.cache_domain,
            self._config.cache_endpoint,
            request.cache_params(),
        )

    # ── Public API ───────────────────────────────────────────────

    async def execute(self, request: QueryRequest | Mapping[str, Any]) -> QueryResult:
        """
        Execute *request*, serving it from cache when possible.

        Mappings go through the validator first, so malformed filters are
        reported the same way as missing values.

        Raises:
            QueryValidationError: The validator reported errors.
            ValidationError: The request cannot be compiled.
            Exception: Anything raised by the executor, unchanged.
        """
        request = self._coerce(request)

        key = self.cache_key(request)
        start = time.perf_counter()

        entry = self._cache.get(key)
        if entry is not None and isinstance(entry.payload, QueryResult):
            self._record(key, start, outcome="hit", cached=True)
            return self._as_cached(entry.payload, request)
        if entry is not None:
            logger.warning("Discarding unexpected cache payload for %s", key)
            self._cache.delete(key)

        while (leader := self._inflight.get(key)) is not None:
            logger.debug("Joining in-flight execution for %s", key)
            try:
                return await asyncio.shield(leader)
            except asyncio.CancelledError:
                if not leader.cancelled() or _cancel_requested():
                    raise
                logger.debug("In-flight execution for %s was cancelled, retrying", key)

        future: asyncio.Future[QueryResult] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await self._execute_miss(request, key)
        except asyncio.CancelledError:
            future.cancel()
            self._record(key, start, outcome="cancelled", cached=False)
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved: there may be no follower awaiting it.
            future.exception()
            self._record(key, start, outcome="error", cached=False)
            raise
        else:
            future.set_result(result)
            self._record(key, start, outcome="success", cached=False)
            return result
        finally:
            self._inflight.pop(key, None)

    def _coerce(self, request: QueryRequest | Mapping[str, Any]) -> QueryRequest:
        if isinstance(request, QueryRequest):
            return request
        validation = self._validator.validate(request)
        if not validation.valid or validation.request is None:
            raise QueryValidationError(validation.errors, validation.warnings)
        return validation.request

    @staticmethod
    def _as_cached(result: QueryResult, request: QueryRequest) -> QueryResult:
        return result.model_copy(
            update={
                "metadata": result.metadata.model_copy(update={"cached": True}),
                "include_metadata": request.include_metadata,
            }
        )

    # ── Pipeline ─────────────────────────────────────────────────

    async def _execute_miss(self, request: QueryRequest, key: str) -> QueryResult:
        validation = self._validator.validate(request)
        if not validation.valid:
            raise QueryValidationError(validation.errors, validation.warnings)

        compiled = self._compiler.compile_query(request)

        limit = request.pagination.limit or self._config.default_limit
        offset = request.pagination.offset or 0
        fields = request.field_selector or self._config.default_fields

        started = time.perf_counter()
        records = await self._executor.execute_query(
            compiled.text,
            fields,
            limit,
            offset,
            compiled.order_by,
        )
        elapsed_ms = (time.perf_counter() - started) * 1000

        records = tuple(records or ())
        report = self._advisor(elapsed_ms, len(records))

        metadata = QueryMetadata(
            total_count=len(records),
            has_more=len(records) == limit,
            query_time_ms=round(elapsed_ms, 2),
            filters=request.filters,
            sorting=request.sorting,
            compiled_query=compiled.text,
            order_by=compiled.order_by,
            performance_class=report.performance_class,
            suggestions=tuple(report.suggestions),
            warnings=tuple(validation.warnings) + tuple(compiled.warnings),
            cached=False,
            cache_key=key,
        )
        result = QueryResult(
            records=records,
            metadata=metadata,
            include_metadata=request.include_metadata,
        )

        self._cache.set(key, result, self._config.result_ttl)
        if len(self._cache) > self._config.sweep_threshold:
            self._cache.purge_expired()
        return result

    def _record(self, key: str, start: float, *, outcome: str, cached: bool) -> None:
        duration_ms = (time.perf_counter() - start) * 1000
        if self._monitor is not None:
            self._monitor.track_cache(cached)
            self._monitor.track(
                OPERATION,
                duration_ms,
                success=outcome in ("hit", "success"),
                cached=cached,
            )
        if self._metrics is not None:
            self._metrics.record(OPERATION, outcome, duration_ms, cached=cached)
        try:
            logger.info(
                json.dumps(
                    {
                        "operation": OPERATION,
                        "outcome": outcome,
                        "cached": cached,
                        "duration_ms": round(duration_ms, 2),
                        "cache_key": key,
                    }
                )
            )
        except Exception:  # noqa: BLE001
            logger.debug("Failed to emit structured log entry", exc_info=True)


def _cancel_requested() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0
