# dataselect/query/parser.py
"""
Parsers turning raw client parameters into query objects.

Parsing is deliberately permissive: malformed input degrades to the
matching no-op preset instead of raising, so a bad query string can never
fail a list request.
"""

import logging
from typing import Any, List, Optional, Sequence, Union

from dataselect.metrics.aggregation import AggregationRegistry, default_registry
from dataselect.metrics.schemas import ONLY_SUM_AGGREGATION
from dataselect.query.schemas import (
    NO_FILTER,
    NO_METRICS,
    NO_PAGINATION,
    NO_SORT,
    DataSelectQuery,
    FilterBy,
    FilterQuery,
    MetricQuery,
    MetricScope,
    PaginationQuery,
    SortBy,
    SortQuery,
)

logger = logging.getLogger(__name__)

ASCENDING = "a"
DESCENDING = "d"

RawList = Union[str, Sequence[str], None]


def split_tokens(raw: RawList) -> Optional[List[str]]:
    """
    Split a comma separated string (or a list of such strings) into tokens.

    ``None`` stays ``None`` so callers can tell "absent" from "empty".
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = [raw]
    tokens: List[str] = []
    for part in raw:
        tokens.extend(token.strip() for token in str(part).split(","))
    return [token for token in tokens if token != ""]


def new_sort_query(sort_by_list_raw: Optional[Sequence[str]]) -> SortQuery:
    """
    Parse a flat ``[direction, property, direction, property, ...]`` list.

    ``["a", "name", "d", "age"]`` sorts by name ascending, then by age
    descending. A ``None`` or odd-length list, or a direction other than
    ``a`` / ``d``, yields ``NO_SORT``.
    """
    if not sort_by_list_raw or len(sort_by_list_raw) % 2 == 1:
        if sort_by_list_raw:
            logger.debug(f"Ignoring sort list of odd length: {sort_by_list_raw!r}")
        return NO_SORT

    sort_by_list = []
    for i in range(0, len(sort_by_list_raw), 2):
        order_option = sort_by_list_raw[i]
        if order_option == ASCENDING:
            ascending = True
        elif order_option == DESCENDING:
            ascending = False
        else:
            logger.debug(f"Ignoring sort list with invalid order option: {order_option!r}")
            return NO_SORT

        sort_by_list.append(SortBy(property=sort_by_list_raw[i + 1], ascending=ascending))

    return SortQuery(tuple(sort_by_list))


def new_filter_query(filter_by_list_raw: Optional[Sequence[str]]) -> FilterQuery:
    """Parse a flat ``[property, value, property, value, ...]`` list; degrades to ``NO_FILTER``."""
    if not filter_by_list_raw or len(filter_by_list_raw) % 2 == 1:
        if filter_by_list_raw:
            logger.debug(f"Ignoring filter list of odd length: {filter_by_list_raw!r}")
        return NO_FILTER

    filter_by_list = [
        FilterBy(property=filter_by_list_raw[i], value=filter_by_list_raw[i + 1])
        for i in range(0, len(filter_by_list_raw), 2)
    ]
    return FilterQuery(tuple(filter_by_list))


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_pagination(items_per_page: Any = None, page: Any = None) -> PaginationQuery:
    """
    Parse the ``itemsPerPage`` / ``page`` pair.

    A missing, non-numeric or negative ``items_per_page`` disables
    pagination. A missing, non-numeric or non-positive ``page`` means page 1.
    """
    per_page = _to_int(items_per_page)
    if per_page is None or per_page < 0:
        if items_per_page is not None:
            logger.debug(f"Ignoring invalid itemsPerPage: {items_per_page!r}")
        return NO_PAGINATION

    page_number = _to_int(page)
    if page_number is None or page_number < 1:
        page_number = 1

    if per_page == 0 and page_number == 1:
        return NO_PAGINATION
    return PaginationQuery(items_per_page=per_page, page=page_number)


def parse_metric_query(
    metric_names: RawList = None,
    aggregations: RawList = None,
    scope: Any = None,
    registry: Optional[AggregationRegistry] = None,
) -> MetricQuery:
    """
    Parse requested metrics and aggregations.

    No metric names gives ``NO_METRICS``. Unknown aggregation names are
    dropped; when none is left the default (sum) is used.
    """
    registry = registry or default_registry
    names = split_tokens(metric_names)
    if not names:
        return NO_METRICS

    requested = split_tokens(aggregations) or []
    known = registry.known(requested)
    if len(known) != len(requested):
        logger.debug(f"Dropping unknown aggregations: {sorted(set(requested) - set(known))}")

    try:
        metric_scope = MetricScope(scope) if scope is not None else MetricScope.ALL
    except ValueError:
        metric_scope = MetricScope.ALL

    return MetricQuery(
        metric_names=tuple(dict.fromkeys(names)),
        aggregations=tuple(dict.fromkeys(known)) or ONLY_SUM_AGGREGATION,
        scope=metric_scope,
    )


def parse_data_select_query(
    items_per_page: Any = None,
    page: Any = None,
    sort_by: RawList = None,
    filter_by: RawList = None,
    metric_names: RawList = None,
    aggregations: RawList = None,
    metric_scope: Any = None,
    registry: Optional[AggregationRegistry] = None,
) -> DataSelectQuery:
    """Build a complete ``DataSelectQuery`` from raw request parameters."""
    return DataSelectQuery(
        pagination_query=parse_pagination(items_per_page, page),
        sort_query=new_sort_query(split_tokens(sort_by)),
        metric_query=parse_metric_query(metric_names, aggregations, metric_scope, registry),
        filter_query=new_filter_query(split_tokens(filter_by)),
    )
