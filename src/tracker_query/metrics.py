"""QueryMetrics — Prometheus counters/histograms (optional [prometheus] extra).

Emits ``tracker_query_duration_seconds`` and ``tracker_query_total`` with
labels ``{operation, outcome, cached}``.  Without ``prometheus_client``
installed, recording is a no-op.
"""

from __future__ import annotations

import logging
from typing import Any

_logger = logging.getLogger("tracker_query.metrics")


class QueryMetrics:
    """Records duration and outcome per orchestrated execution.

    Prometheus metrics:
      - ``tracker_query_duration_seconds{operation, outcome, cached}``
      - ``tracker_query_total{operation, outcome, cached}``

    Pass a dedicated ``registry`` to keep several instances (or tests)
    from colliding in the default registry.
    """

    def __init__(self, registry: Any = None) -> None:
        self._histogram: Any = None
        self._counter: Any = None
        try:
            from prometheus_client import Counter, Histogram

            kwargs = {"registry": registry} if registry is not None else {}
            self._histogram = Histogram(
                "tracker_query_duration_seconds",
                "Query execution duration",
                ["operation", "outcome", "cached"],
                **kwargs,
            )
            self._counter = Counter(
                "tracker_query_total",
                "Query executions",
                ["operation", "outcome", "cached"],
                **kwargs,
            )
        except ImportError:
            pass

    @property
    def enabled(self) -> bool:
        return self._histogram is not None and self._counter is not None

    def record(
        self,
        operation: str,
        outcome: str,
        duration_ms: float,
        *,
        cached: bool = False,
    ) -> None:
        if not self.enabled:
            return
        try:
            labels = {
                "operation": operation,
                "outcome": outcome,
                "cached": "true" if cached else "false",
            }
            self._histogram.labels(**labels).observe(duration_ms / 1000)
            self._counter.labels(**labels).inc()
        except Exception:  # noqa: BLE001
            _logger.debug("Failed to emit metrics labels", exc_info=True)
