"""Tests for QueryMetrics."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from tracker_query import QueryMetrics


class TestQueryMetrics:
    def test_metrics_without_prometheus(self) -> None:
        """Recording is a no-op when prometheus_client is not installed."""
        import builtins

        real_import = builtins.__import__

        def raise_for_prometheus(name, *args, **kwargs):
            if name == "prometheus_client":
                raise ImportError("No module named 'prometheus_client'")
            return real_import(name, *args, **kwargs)

        with patch("builtins.__import__", side_effect=raise_for_prometheus):
            metrics = QueryMetrics()

        assert metrics.enabled is False
        metrics.record("execute_query", "success", 12.0)

    def test_records_duration_and_outcome(self) -> None:
        pytest.importorskip("prometheus_client")
        mock_histogram = MagicMock()
        mock_counter = MagicMock()

        with (
            patch("prometheus_client.Counter", return_value=mock_counter),
            patch("prometheus_client.Histogram", return_value=mock_histogram),
        ):
            metrics = QueryMetrics()

        metrics.record("execute_query", "hit", 250.0, cached=True)

        labels = {"operation": "execute_query", "outcome": "hit", "cached": "true"}
        mock_histogram.labels.assert_called_once_with(**labels)
        mock_histogram.labels.return_value.observe.assert_called_once_with(0.25)
        mock_counter.labels.assert_called_once_with(**labels)
        mock_counter.labels.return_value.inc.assert_called_once()

    def test_label_failures_are_swallowed(self) -> None:
        pytest.importorskip("prometheus_client")
        mock_histogram = MagicMock()
        mock_histogram.labels.side_effect = ValueError("bad labels")

        with (
            patch("prometheus_client.Counter", return_value=MagicMock()),
            patch("prometheus_client.Histogram", return_value=mock_histogram),
        ):
            metrics = QueryMetrics()

        metrics.record("execute_query", "error", 1.0)

    def test_dedicated_registry(self) -> None:
        prometheus_client = pytest.importorskip("prometheus_client")
        registry = prometheus_client.CollectorRegistry()
        metrics = QueryMetrics(registry=registry)

        metrics.record("execute_query", "error", 5.0)

        labels = {"operation": "execute_query", "outcome": "error", "cached": "false"}
        assert registry.get_sample_value("tracker_query_total", labels) == 1.0
        assert (
            registry.get_sample_value("tracker_query_duration_seconds_sum", labels)
            == 0.005
        )
