# dataselect/selection/engine.py
"""
Generic data selection engine.

``DataSelector`` runs a ``DataSelectQuery`` over a collection of cells:
filter, then sort, then paginate, then (optionally) fetch and aggregate
metrics. The filter, sort and pagination result is computed before the
metrics collaborator is called, so a failing or slow metrics backend can
only ever affect the ``metrics`` part of the result.
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence

from dataselect.core.exceptions import CapabilityError
from dataselect.metrics.service import MetricService
from dataselect.query.schemas import NO_DATA_SELECT, DataSelectQuery, MetricScope
from dataselect.selection.cells import DataCell, SupportsGetProperty
from dataselect.selection.filtering import filter_cells
from dataselect.selection.pagination import paginate
from dataselect.selection.registry import CellRegistry, from_cells
from dataselect.selection.registry import registry as default_cell_registry
from dataselect.selection.schemas import MetricsResult, SelectionResult
from dataselect.selection.sort import sort_cells

logger = logging.getLogger(__name__)


def _check_cells(cells: Iterable[Any]) -> List[DataCell]:
    cells = list(cells)
    for cell in cells:
        if not isinstance(cell, SupportsGetProperty):
            raise CapabilityError(f"{type(cell).__name__} does not implement get_property")
    return cells


class DataSelector:
    """Runs selection queries; holds no per-request state."""

    def __init__(
        self,
        metric_service: Optional[MetricService] = None,
        cell_registry: Optional[CellRegistry] = None,
    ):
        self.metric_service = metric_service or MetricService()
        self.cell_registry = cell_registry or default_cell_registry

    # ===== STAGES =====

    def _select_page(self, cells: List[DataCell], query: DataSelectQuery):
        filtered = filter_cells(cells, query.filter_query)
        ordered = sort_cells(filtered, query.sort_query)
        page, total_items = paginate(ordered, query.pagination_query)
        logger.debug(
            f"Selected {len(page)} of {total_items} items "
            f"({len(cells) - len(filtered)} filtered out)"
        )
        return ordered, page, total_items

    @staticmethod
    def _metric_cells(ordered: List[DataCell], page: List[DataCell], query: DataSelectQuery):
        if query.metric_query.scope == MetricScope.PAGE:
            return page
        return ordered

    # ===== PUBLIC API =====

    def select(
        self, cells: Iterable[DataCell], query: DataSelectQuery = NO_DATA_SELECT
    ) -> SelectionResult[DataCell]:
        """
        Select a page of cells and the requested metrics.

        Args:
            cells: Items implementing the ``DataCell`` contract.
            query: What to filter, sort, paginate and measure.

        Returns:
            The selected page, the item count before pagination and the
            metrics outcome.

        Raises:
            CapabilityError: An item does not implement ``DataCell``, or
                metrics were requested for a cell without a metric key.
        """
        cells = _check_cells(cells)
        ordered, page, total_items = self._select_page(cells, query)

        metrics = MetricsResult.not_requested()
        if not query.metric_query.is_empty():
            metric_cells = self._metric_cells(ordered, page, query)
            metrics = self.metric_service.get_metrics(metric_cells, query.metric_query)

        return SelectionResult(items=page, total_items=total_items, metrics=metrics)

    async def aselect(
        self, cells: Iterable[DataCell], query: DataSelectQuery = NO_DATA_SELECT
    ) -> SelectionResult[DataCell]:
        """Async counterpart of ``select``; awaits the metrics collaborator."""
        cells = _check_cells(cells)
        ordered, page, total_items = self._select_page(cells, query)

        metrics = MetricsResult.not_requested()
        if not query.metric_query.is_empty():
            metric_cells = self._metric_cells(ordered, page, query)
            metrics = await self.metric_service.get_metrics_async(metric_cells, query.metric_query)

        return SelectionResult(items=page, total_items=total_items, metrics=metrics)

    def select_items(
        self, items: Sequence[Any], query: DataSelectQuery = NO_DATA_SELECT
    ) -> SelectionResult[Any]:
        """Wrap raw items with the cell registry, select, and unwrap the page."""
        result = self.select(self.cell_registry.to_cells(items), query)
        return SelectionResult(
            items=from_cells(result.items), total_items=result.total_items, metrics=result.metrics
        )


def generic_data_select(
    cells: Iterable[DataCell], query: DataSelectQuery = NO_DATA_SELECT
) -> SelectionResult[DataCell]:
    """Select without a metrics collaborator; metric requests come back unavailable."""
    return DataSelector().select(cells, query)
