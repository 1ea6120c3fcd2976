"""
Generic data selection engine.

Takes any collection of resource-like items wrapped as cells plus a
declarative ``DataSelectQuery`` and returns the selected page, the total
item count and any requested aggregated metrics.

Main Components:
- DataSelector: runs filter, sort, pagination and metric stages
- DataCell: property extraction contract every selectable item implements
- DataSelectQuery: immutable query plus shared presets
- MetricService: metric download with timeout and aggregation
"""

from dataselect.core.exceptions import CapabilityError, DataSelectError, MetricsUnavailableError
from dataselect.metrics.aggregation import AggregationRegistry, default_registry
from dataselect.metrics.schemas import DataPoint
from dataselect.metrics.service import MetricService
from dataselect.metrics.source import (
    AsyncMetricSource,
    CallableMetricSource,
    InMemoryMetricSource,
    MetricSource,
)
from dataselect.query import (
    DEFAULT_DATA_SELECT,
    DEFAULT_DATA_SELECT_WITH_METRICS,
    NO_DATA_SELECT,
    STD_METRICS_DATA_SELECT,
    DataSelectQuery,
    MetricQuery,
    PaginationQuery,
    SortBy,
    SortQuery,
    parse_data_select_query,
)
from dataselect.selection.cells import (
    NOT_FOUND,
    DataCell,
    MappingCell,
    MetricDataCell,
    ModelCell,
    ObjectCell,
    SupportsGetProperty,
    SupportsMetricKey,
)
from dataselect.selection.engine import DataSelector, generic_data_select
from dataselect.selection.registry import CellRegistry, registry
from dataselect.selection.schemas import MetricsResult, MetricsStatus, SelectionResult

__all__ = [
    # Main classes
    "DataSelector",
    "generic_data_select",
    "MetricService",
    # Cells
    "NOT_FOUND",
    "DataCell",
    "MetricDataCell",
    "MappingCell",
    "ObjectCell",
    "SupportsGetProperty",
    "SupportsMetricKey",
    "ModelCell",
    "CellRegistry",
    "registry",
    # Metrics
    "AggregationRegistry",
    "default_registry",
    "DataPoint",
    "MetricSource",
    "AsyncMetricSource",
    "InMemoryMetricSource",
    "CallableMetricSource",
    # Results
    "SelectionResult",
    "MetricsResult",
    "MetricsStatus",
    # Errors
    "DataSelectError",
    "CapabilityError",
    "MetricsUnavailableError",
    # Queries
    "DataSelectQuery",
    "PaginationQuery",
    "SortQuery",
    "SortBy",
    "MetricQuery",
    "NO_DATA_SELECT",
    "STD_METRICS_DATA_SELECT",
    "DEFAULT_DATA_SELECT",
    "DEFAULT_DATA_SELECT_WITH_METRICS",
    "parse_data_select_query",
]
