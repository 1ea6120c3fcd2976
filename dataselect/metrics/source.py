# dataselect/metrics/source.py
"""
Contract for the external metrics collaborator.

The engine never talks to a metrics backend directly. It asks a
``MetricSource`` for the raw series of a set of items and aggregates the
answer itself. Transport, retries and the backend's wire format are the
source's business.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Hashable, List, Mapping, Sequence

from dataselect.metrics.schemas import DataPoint, RawSeries, Series


class MetricSource(ABC):
    """Blocking metrics collaborator."""

    @abstractmethod
    def fetch_series(
        self, metric_keys: Sequence[Hashable], metric_names: Sequence[str]
    ) -> RawSeries:
        """
        Download raw series for the given items.

        Args:
            metric_keys: Identities of the items, as returned by
                ``MetricDataCell.get_metric_key``.
            metric_names: Metrics to download.

        Returns:
            Mapping of metric key -> metric name -> series. Items or metrics
            with no data may be missing from the mapping.

        Raises:
            Exception: Any failure to reach the backend.
        """


class AsyncMetricSource(ABC):
    """Metrics collaborator awaited from async code."""

    @abstractmethod
    async def fetch_series(
        self, metric_keys: Sequence[Hashable], metric_names: Sequence[str]
    ) -> RawSeries:
        """Async counterpart of ``MetricSource.fetch_series``."""


def is_async_source(source: Any) -> bool:
    """Check whether ``source.fetch_series`` must be awaited."""
    return inspect.iscoroutinefunction(getattr(source, "fetch_series", None))


def to_data_points(raw: Any) -> List[DataPoint]:
    """Coerce a series of ``DataPoint``, ``(x, y)`` pairs or ``{"x", "y"}`` dicts."""
    points = []
    for item in raw or ():
        if isinstance(item, DataPoint):
            points.append(item)
        elif isinstance(item, Mapping):
            points.append(DataPoint.model_validate(item))
        else:
            x, y = item
            points.append(DataPoint(x=x, y=y))
    return points


class InMemoryMetricSource(MetricSource):
    """Serves series from a prepared mapping; useful for tests and fixtures."""

    def __init__(self, series: Mapping[Hashable, Mapping[str, Any]]):
        self._series: Dict[Hashable, Dict[str, List[DataPoint]]] = {
            key: {name: to_data_points(points) for name, points in metrics.items()}
            for key, metrics in series.items()
        }
        self.calls: List[tuple] = []

    def fetch_series(
        self, metric_keys: Sequence[Hashable], metric_names: Sequence[str]
    ) -> RawSeries:
        self.calls.append((tuple(metric_keys), tuple(metric_names)))
        result: Dict[Hashable, Dict[str, Series]] = {}
        for key in metric_keys:
            metrics = self._series.get(key)
            if metrics is None:
                continue
            result[key] = {name: metrics[name] for name in metric_names if name in metrics}
        return result


class CallableMetricSource(MetricSource):
    """Adapts a plain ``fetch(metric_keys, metric_names)`` function."""

    def __init__(self, fetch: Callable[[Sequence[Hashable], Sequence[str]], Any]):
        self._fetch = fetch

    def fetch_series(
        self, metric_keys: Sequence[Hashable], metric_names: Sequence[str]
    ) -> RawSeries:
        raw = self._fetch(metric_keys, metric_names) or {}
        return {
            key: {name: to_data_points(points) for name, points in metrics.items()}
            for key, metrics in raw.items()
        }
