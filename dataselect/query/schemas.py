"""
Query types for the data selection engine.

A ``DataSelectQuery`` bundles the independent sub-queries (filter, sort,
pagination and metrics) applied to a collection of cells. All types are
frozen dataclasses so the preset singletons below can be shared by every
caller without copying.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from dataselect.metrics.schemas import CPU_USAGE, MEMORY_USAGE, ONLY_SUM_AGGREGATION, SUM


class PropertyName(str, Enum):
    """Well-known property names shared by most resource kinds.

    Any string is a valid property name; these are the ones the stock
    cells and the console use for every kind.
    """

    NAME = "name"
    CREATION_TIMESTAMP = "creationTimestamp"
    NAMESPACE = "namespace"
    STATUS = "status"


class MetricScope(str, Enum):
    """Which items the metric stage aggregates over."""

    ALL = "all"  # every item that passed filtering
    PAGE = "page"  # only the items on the returned page


@dataclass(frozen=True)
class SortBy:
    """Sort criterion: a property and its direction."""

    property: str
    ascending: bool = True


@dataclass(frozen=True)
class SortQuery:
    """Ordered sort criteria: first entry is the primary key."""

    sort_by_list: Tuple[SortBy, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "sort_by_list", tuple(self.sort_by_list))

    def is_empty(self) -> bool:
        return not self.sort_by_list


@dataclass(frozen=True)
class FilterBy:
    """Filter criterion: a property and the value it must match."""

    property: str
    value: object


@dataclass(frozen=True)
class FilterQuery:
    """Filter criteria; a cell is kept only when every entry matches."""

    filter_by_list: Tuple[FilterBy, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "filter_by_list", tuple(self.filter_by_list))

    def is_empty(self) -> bool:
        return not self.filter_by_list


@dataclass(frozen=True)
class PaginationQuery:
    """
    Pagination window over a sorted collection.

    ``page`` is 1-based. ``items_per_page == 0`` disables pagination and
    returns the whole collection. ``select_none`` is only set on the
    ``EMPTY_PAGINATION`` preset, which returns no items but still counts them.
    """

    items_per_page: int = 0
    page: int = 1
    select_none: bool = False

    def __post_init__(self) -> None:
        if self.items_per_page < 0:
            raise ValueError("items_per_page must be >= 0")
        if self.page < 1:
            raise ValueError("page must be >= 1")

    def is_paginated(self) -> bool:
        """Check whether this query limits the number of returned items."""
        return self.select_none or self.items_per_page > 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.items_per_page

    def page_count(self, total_items: int) -> int:
        """Number of pages needed to show ``total_items``."""
        if self.select_none:
            return 0
        if self.items_per_page == 0:
            return 1 if total_items > 0 else 0
        return -(-total_items // self.items_per_page)

    def is_page_available(self, total_items: int) -> bool:
        """Check whether the requested page holds at least one item."""
        if self.select_none:
            return False
        if self.items_per_page == 0:
            return total_items > 0
        return self.offset < total_items


@dataclass(frozen=True)
class MetricQuery:
    """
    Metrics to download and aggregate for the selected items.

    An empty ``metric_names`` means no metrics are fetched. An empty
    ``aggregations`` falls back to ``sum``.
    """

    metric_names: Tuple[str, ...] = ()
    aggregations: Tuple[str, ...] = ONLY_SUM_AGGREGATION
    scope: MetricScope = MetricScope.ALL

    def __post_init__(self) -> None:
        object.__setattr__(self, "metric_names", tuple(self.metric_names or ()))
        aggregations = tuple(self.aggregations or ()) or (SUM,)
        object.__setattr__(self, "aggregations", aggregations)

    def is_empty(self) -> bool:
        return not self.metric_names


@dataclass(frozen=True)
class DataSelectQuery:
    """Composite selection request; each part defaults to its no-op preset."""

    pagination_query: PaginationQuery = field(default_factory=lambda: NO_PAGINATION)
    sort_query: SortQuery = field(default_factory=lambda: NO_SORT)
    metric_query: MetricQuery = field(default_factory=lambda: NO_METRICS)
    filter_query: FilterQuery = field(default_factory=lambda: NO_FILTER)


# ===== PRESETS =====

NO_SORT = SortQuery()
NO_FILTER = FilterQuery()

NO_PAGINATION = PaginationQuery(items_per_page=0, page=1)
EMPTY_PAGINATION = PaginationQuery(items_per_page=0, page=1, select_none=True)
DEFAULT_PAGINATION = PaginationQuery(items_per_page=10, page=1)

NO_METRICS = MetricQuery()
# Standard metrics are cpu usage and memory usage, aggregated with sum.
STANDARD_METRICS = MetricQuery(
    metric_names=(CPU_USAGE, MEMORY_USAGE), aggregations=ONLY_SUM_AGGREGATION
)

NO_DATA_SELECT = DataSelectQuery(NO_PAGINATION, NO_SORT, NO_METRICS, NO_FILTER)
STD_METRICS_DATA_SELECT = DataSelectQuery(NO_PAGINATION, NO_SORT, STANDARD_METRICS, NO_FILTER)
DEFAULT_DATA_SELECT = DataSelectQuery(DEFAULT_PAGINATION, NO_SORT, NO_METRICS, NO_FILTER)
DEFAULT_DATA_SELECT_WITH_METRICS = DataSelectQuery(
    DEFAULT_PAGINATION, NO_SORT, STANDARD_METRICS, NO_FILTER
)
