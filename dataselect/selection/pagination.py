# dataselect/selection/pagination.py
"""Pagination stage: slice a sorted sequence to the requested window."""

from typing import List, Sequence, Tuple, TypeVar

from dataselect.query.schemas import PaginationQuery

T = TypeVar("T")


def get_pagination_settings(pagination: PaginationQuery, items_count: int) -> Tuple[int, int]:
    """
    Compute the ``[start, end)`` slice bounds for a collection.

    Out-of-range pages are clamped to an empty window instead of raising,
    since callers build page links with arbitrary page numbers.
    """
    if pagination.select_none:
        return 0, 0
    if pagination.items_per_page == 0:
        return 0, items_count

    start = pagination.offset
    if start >= items_count:
        return items_count, items_count
    end = min(start + pagination.items_per_page, items_count)
    return start, end


def paginate(items: Sequence[T], pagination: PaginationQuery) -> Tuple[List[T], int]:
    """Return the requested page and the number of items before slicing."""
    total_items = len(items)
    start, end = get_pagination_settings(pagination, total_items)
    return list(items[start:end]), total_items
