"""
Unit tests for the metric query stage.
Covers the zero-cost no-metrics path, aggregation of partial data and the
unavailable outcome for failing or slow collaborators.
"""

import asyncio
import threading
from unittest.mock import Mock

import pytest

from dataselect.core.exceptions import CapabilityError
from dataselect.metrics.schemas import DataPoint
from dataselect.metrics.service import MetricService
from dataselect.metrics.source import AsyncMetricSource, CallableMetricSource, InMemoryMetricSource
from dataselect.query.schemas import NO_METRICS, MetricQuery
from dataselect.selection.cells import DataCell
from dataselect.selection.schemas import MetricsStatus

CPU = "cpu/usage_rate"
MEMORY = "memory/usage"


def pairs(points):
    return [(p.x, p.y) for p in points]


class TestMetricService:
    """Test fetching and aggregating metrics"""

    def test_no_metrics_skips_source(self, pod_cells):
        """Test that an empty metric query never calls the collaborator"""
        source = Mock()
        service = MetricService(source=source)

        result = service.get_metrics(pod_cells, NO_METRICS)

        assert result.status == MetricsStatus.NOT_REQUESTED
        assert result.series == {}
        source.fetch_series.assert_not_called()

    def test_sum_over_items(self, pod_cells, metric_source):
        service = MetricService(source=metric_source, timeout=1.0)

        result = service.get_metrics(pod_cells, MetricQuery(metric_names=(CPU, MEMORY)))

        assert result.status == MetricsStatus.AVAILABLE
        assert pairs(result.get_series(CPU, "sum")) == [(60, 4), (120, 7), (180, 4)]
        assert pairs(result.get_series(MEMORY, "sum")) == [(60, 150), (120, 70)]

    def test_source_receives_metric_keys(self, pod_cells, metric_source):
        service = MetricService(source=metric_source, timeout=1.0)

        service.get_metrics(pod_cells[:2], MetricQuery(metric_names=(CPU,)))

        assert metric_source.calls == [(("pod-00", "pod-01"), (CPU,))]

    def test_several_aggregations(self, pod_cells, metric_source):
        query = MetricQuery(metric_names=(CPU,), aggregations=("max", "min"))

        result = MetricService(source=metric_source, timeout=1.0).get_metrics(pod_cells, query)

        assert set(result.series[CPU]) == {"max", "min"}
        assert pairs(result.get_series(CPU, "max")) == [(60, 3), (120, 5), (180, 4)]
        assert pairs(result.get_series(CPU, "min")) == [(60, 1), (120, 2), (180, 4)]

    def test_metric_without_data_gives_empty_series(self, pod_cells, metric_source):
        result = MetricService(source=metric_source, timeout=1.0).get_metrics(
            pod_cells, MetricQuery(metric_names=("network/rx",))
        )

        assert result.status == MetricsStatus.AVAILABLE
        assert result.series == {"network/rx": {"sum": []}}

    def test_unknown_aggregation_skipped(self, pod_cells, metric_source):
        query = MetricQuery(metric_names=(CPU,), aggregations=("sum", "p99"))

        result = MetricService(source=metric_source, timeout=1.0).get_metrics(pod_cells, query)

        assert list(result.series[CPU]) == ["sum"]

    def test_failing_source_is_unavailable(self, pod_cells):
        """Test that collaborator errors are reported, not raised"""
        source = Mock()
        source.fetch_series.side_effect = ConnectionError("backend down")

        service = MetricService(source=source, timeout=1.0)

        result = service.get_metrics(pod_cells, MetricQuery(metric_names=(CPU,)))

        assert result.status == MetricsStatus.UNAVAILABLE
        assert result.is_unavailable
        assert "backend down" in result.error
        assert result.series == {}

    def test_slow_source_times_out(self, pod_cells):
        release = threading.Event()

        def fetch(metric_keys, metric_names):
            release.wait(5)
            return {}

        service = MetricService(source=CallableMetricSource(fetch), timeout=0.05)
        try:
            result = service.get_metrics(pod_cells, MetricQuery(metric_names=(CPU,)))
        finally:
            release.set()

        assert result.status == MetricsStatus.UNAVAILABLE
        assert "timed out" in result.error

    def test_hung_fetch_runs_on_daemon_thread(self, pod_cells):
        """Test that a source stuck past the timeout cannot hold up interpreter exit"""
        release = threading.Event()
        daemon_flags = []

        def fetch(metric_keys, metric_names):
            daemon_flags.append(threading.current_thread().daemon)
            release.wait(5)
            return {}

        service = MetricService(source=CallableMetricSource(fetch), timeout=0.05)
        try:
            service.get_metrics(pod_cells, MetricQuery(metric_names=(CPU,)))
        finally:
            release.set()

        assert daemon_flags == [True]

    def test_pending_fetches_are_bounded(self, pod_cells):
        """Test that hung fetches cap the number of worker threads"""
        release = threading.Event()
        source = Mock()
        source.fetch_series.side_effect = lambda keys, names: release.wait(5) and {}
        service = MetricService(source=source, timeout=0.05, max_pending_fetches=1)
        query = MetricQuery(metric_names=(CPU,))

        try:
            first = service.get_metrics(pod_cells, query)
            second = service.get_metrics(pod_cells, query)
        finally:
            release.set()
        for worker in threading.enumerate():
            if worker.name == "dataselect-metrics":
                worker.join(1)
        third = service.get_metrics(pod_cells, query)

        assert "timed out" in first.error
        assert "still pending" in second.error
        assert third.status == MetricsStatus.AVAILABLE
        assert source.fetch_series.call_count == 2

    def test_no_source_configured(self, pod_cells):
        result = MetricService(timeout=1.0).get_metrics(pod_cells, MetricQuery(metric_names=(CPU,)))

        assert result.status == MetricsStatus.UNAVAILABLE

    def test_malformed_series_is_unavailable(self, pod_cells):
        source = Mock()
        source.fetch_series.return_value = {"pod-00": {CPU: [("not", "numbers")]}}

        service = MetricService(source=source, timeout=1.0)

        result = service.get_metrics(pod_cells, MetricQuery(metric_names=(CPU,)))

        assert result.status == MetricsStatus.UNAVAILABLE

    def test_cells_without_metric_key_fail(self):
        """Test that metric requests on plain DataCells are a capability error"""

        class NameOnlyCell(DataCell):
            def get_property(self, name):
                return "x"

        with pytest.raises(CapabilityError):
            MetricService(source=Mock(), timeout=1.0).get_metrics(
                [NameOnlyCell()], MetricQuery(metric_names=(CPU,))
            )

    def test_callable_source_coerces_points(self, pod_cells):
        source = CallableMetricSource(
            lambda keys, names: {"pod-00": {CPU: [{"x": 1, "y": 2}, (2, 3)]}}
        )

        service = MetricService(source=source, timeout=1.0)

        result = service.get_metrics(pod_cells, MetricQuery(metric_names=(CPU,)))

        assert result.get_series(CPU, "sum") == [DataPoint(x=1, y=2), DataPoint(x=2, y=3)]


class TestMetricServiceAsync:
    """Test the awaited metrics path"""

    class SlowSource(AsyncMetricSource):
        async def fetch_series(self, metric_keys, metric_names):
            await asyncio.sleep(5)
            return {}

    class FastSource(AsyncMetricSource):
        async def fetch_series(self, metric_keys, metric_names):
            return {key: {CPU: [DataPoint(x=60, y=1)]} for key in metric_keys}

    async def test_async_source(self, pod_cells):
        service = MetricService(source=self.FastSource(), timeout=1.0)

        result = await service.get_metrics_async(pod_cells, MetricQuery(metric_names=(CPU,)))

        assert pairs(result.get_series(CPU, "sum")) == [(60, 12)]

    async def test_async_source_timeout(self, pod_cells):
        service = MetricService(source=self.SlowSource(), timeout=0.05)

        result = await service.get_metrics_async(pod_cells, MetricQuery(metric_names=(CPU,)))

        assert result.status == MetricsStatus.UNAVAILABLE
        assert "timed out" in result.error

    async def test_blocking_source_runs_in_thread(self, pod_cells, metric_source):
        service = MetricService(source=metric_source, timeout=1.0)

        result = await service.get_metrics_async(pod_cells, MetricQuery(metric_names=(CPU,)))

        assert pairs(result.get_series(CPU, "sum")) == [(60, 4), (120, 7), (180, 4)]

    async def test_no_metrics_skips_source(self, pod_cells):
        source = Mock()

        result = await MetricService(source=source).get_metrics_async(pod_cells, NO_METRICS)

        assert result.status == MetricsStatus.NOT_REQUESTED
        source.fetch_series.assert_not_called()

    def test_async_source_on_sync_path_is_unavailable(self, pod_cells):
        service = MetricService(source=self.FastSource(), timeout=1.0)

        result = service.get_metrics(pod_cells, MetricQuery(metric_names=(CPU,)))

        assert result.status == MetricsStatus.UNAVAILABLE
