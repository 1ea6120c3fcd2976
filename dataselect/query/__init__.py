"""
Query objects for the data selection engine.

Main Components:
- Schemas: immutable sort, filter, pagination and metric queries plus presets
- Parser: permissive parsing of raw client parameters into queries
"""

from .parser import (
    new_filter_query,
    new_sort_query,
    parse_data_select_query,
    parse_metric_query,
    parse_pagination,
)
from .schemas import (
    # Query types
    DataSelectQuery,
    FilterBy,
    FilterQuery,
    MetricQuery,
    PaginationQuery,
    SortBy,
    SortQuery,
    # Enums
    MetricScope,
    PropertyName,
    # Presets
    DEFAULT_DATA_SELECT,
    DEFAULT_DATA_SELECT_WITH_METRICS,
    DEFAULT_PAGINATION,
    EMPTY_PAGINATION,
    NO_DATA_SELECT,
    NO_FILTER,
    NO_METRICS,
    NO_PAGINATION,
    NO_SORT,
    STANDARD_METRICS,
    STD_METRICS_DATA_SELECT,
)

__all__ = [
    "DataSelectQuery",
    "FilterBy",
    "FilterQuery",
    "MetricQuery",
    "PaginationQuery",
    "SortBy",
    "SortQuery",
    "MetricScope",
    "PropertyName",
    "DEFAULT_DATA_SELECT",
    "DEFAULT_DATA_SELECT_WITH_METRICS",
    "DEFAULT_PAGINATION",
    "EMPTY_PAGINATION",
    "NO_DATA_SELECT",
    "NO_FILTER",
    "NO_METRICS",
    "NO_PAGINATION",
    "NO_SORT",
    "STANDARD_METRICS",
    "STD_METRICS_DATA_SELECT",
    "new_filter_query",
    "new_sort_query",
    "parse_data_select_query",
    "parse_metric_query",
    "parse_pagination",
]
