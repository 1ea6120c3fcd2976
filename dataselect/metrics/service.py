# dataselect/metrics/service.py
"""Metric query stage: download raw series for selected items and aggregate them."""

import asyncio
import logging
import threading
from typing import Any, Dict, Hashable, List, Optional, Sequence

from dataselect.core.config import get_settings
from dataselect.core.exceptions import CapabilityError, MetricsUnavailableError
from dataselect.metrics.aggregation import AggregationRegistry, default_registry
from dataselect.metrics.schemas import AggregatedSeries, RawSeries, Series
from dataselect.metrics.source import is_async_source, to_data_points
from dataselect.query.schemas import MetricQuery
from dataselect.selection.cells import SupportsMetricKey
from dataselect.selection.schemas import MetricsResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING_FETCHES = 4


class MetricService:
    """
    Fetches series from a metrics collaborator and reduces them per aggregation.

    Blocking sources run on daemon worker threads. A source that hangs past
    ``timeout`` keeps its thread until it returns, but never blocks the
    caller or interpreter exit. At most ``max_pending_fetches`` such threads
    exist at once; further fetches report metrics as unavailable until one
    of them finishes.
    """

    def __init__(
        self,
        source: Any = None,
        registry: Optional[AggregationRegistry] = None,
        timeout: Optional[float] = None,
        max_pending_fetches: int = DEFAULT_MAX_PENDING_FETCHES,
    ):
        self.source = source
        self.registry = registry or default_registry
        self.timeout = get_settings().metric_timeout if timeout is None else timeout
        self.max_pending_fetches = max_pending_fetches
        self._pending = threading.BoundedSemaphore(max_pending_fetches)

    # ===== PUBLIC API =====

    def get_metrics(self, cells: Sequence[Any], metric_query: MetricQuery) -> MetricsResult:
        """Fetch and aggregate metrics for ``cells``; never raises on source failure."""
        if metric_query.is_empty():
            return MetricsResult.not_requested()

        metric_keys = self.metric_keys(cells)
        try:
            raw = self.fetch(metric_keys, metric_query.metric_names)
        except MetricsUnavailableError as e:
            logger.warning(f"Metrics unavailable for {len(metric_keys)} items: {e}")
            return MetricsResult.unavailable(str(e))

        return self._to_result(raw, metric_keys, metric_query)

    async def get_metrics_async(
        self, cells: Sequence[Any], metric_query: MetricQuery
    ) -> MetricsResult:
        """Async counterpart of ``get_metrics``."""
        if metric_query.is_empty():
            return MetricsResult.not_requested()

        metric_keys = self.metric_keys(cells)
        try:
            raw = await self.fetch_async(metric_keys, metric_query.metric_names)
        except MetricsUnavailableError as e:
            logger.warning(f"Metrics unavailable for {len(metric_keys)} items: {e}")
            return MetricsResult.unavailable(str(e))

        return self._to_result(raw, metric_keys, metric_query)

    def _to_result(
        self, raw: RawSeries, metric_keys: List[Hashable], metric_query: MetricQuery
    ) -> MetricsResult:
        try:
            return MetricsResult.available(self.aggregate(raw, metric_keys, metric_query))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Metric source returned malformed series: {e}")
            return MetricsResult.unavailable(f"Malformed metric series: {e}")

    # ===== FETCHING =====

    def metric_keys(self, cells: Sequence[Any]) -> List[Hashable]:
        """Collect the metric identity of every cell."""
        keys = []
        for cell in cells:
            if not isinstance(cell, SupportsMetricKey):
                raise CapabilityError(
                    f"{type(cell).__name__} does not provide a metric key; "
                    "metrics can only be requested for items with get_metric_key"
                )
            keys.append(cell.get_metric_key())
        return keys

    def fetch(self, metric_keys: List[Hashable], metric_names: Sequence[str]) -> RawSeries:
        """
        Call a blocking source under ``self.timeout``.

        Raises:
            MetricsUnavailableError: No source configured, too many fetches
                still pending, the source failed, or the call did not finish
                in time.
        """
        if self.source is None:
            raise MetricsUnavailableError("No metric source configured")
        if is_async_source(self.source):
            raise MetricsUnavailableError("Async metric source requires the async selection path")
        if not self._pending.acquire(blocking=False):
            raise MetricsUnavailableError(
                f"{self.max_pending_fetches} metric fetches are still pending"
            )

        outcome: Dict[str, Any] = {}

        def run() -> None:
            try:
                outcome["series"] = self.source.fetch_series(list(metric_keys), list(metric_names))
            except Exception as e:
                outcome["error"] = e
            finally:
                self._pending.release()

        worker = threading.Thread(target=run, name="dataselect-metrics", daemon=True)
        worker.start()
        worker.join(self.timeout)

        if worker.is_alive():
            raise MetricsUnavailableError(f"Metric fetch timed out after {self.timeout}s")
        if "error" in outcome:
            e = outcome["error"]
            raise MetricsUnavailableError(f"Metric fetch failed: {e}") from e
        return outcome.get("series")

    async def fetch_async(
        self, metric_keys: List[Hashable], metric_names: Sequence[str]
    ) -> RawSeries:
        """Await the source under ``self.timeout``; blocking sources go through ``fetch``."""
        if self.source is None:
            raise MetricsUnavailableError("No metric source configured")
        if not is_async_source(self.source):
            return await asyncio.to_thread(self.fetch, metric_keys, metric_names)

        call = self.source.fetch_series(list(metric_keys), list(metric_names))
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise MetricsUnavailableError(f"Metric fetch timed out after {self.timeout}s") from e
        except Exception as e:
            raise MetricsUnavailableError(f"Metric fetch failed: {e}") from e

    # ===== AGGREGATION =====

    def aggregate(
        self, raw: RawSeries, metric_keys: Sequence[Hashable], metric_query: MetricQuery
    ) -> AggregatedSeries:
        """Reduce raw per-item series into metric name -> aggregation -> series."""
        raw = raw or {}
        result: AggregatedSeries = {}
        for metric_name in metric_query.metric_names:
            per_item: List[Series] = []
            for key in metric_keys:
                series = (raw.get(key) or {}).get(metric_name)
                if series:
                    per_item.append(to_data_points(series))
            result[metric_name] = self._aggregate_metric(
                metric_name, per_item, metric_query.aggregations
            )
        return result

    def _aggregate_metric(
        self, metric_name: str, per_item: List[Series], aggregations: Sequence[str]
    ) -> Dict[str, list]:
        aggregated = {}
        for aggregation in aggregations:
            if aggregation not in self.registry:
                logger.warning(f"Skipping unknown aggregation '{aggregation}'")
                continue
            try:
                aggregated[aggregation] = self.registry.aggregate(aggregation, per_item)
            except Exception as e:
                logger.warning(f"Skipping aggregation '{aggregation}' of '{metric_name}': {e!r}")
        return aggregated
