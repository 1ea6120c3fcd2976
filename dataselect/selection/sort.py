# dataselect/selection/sort.py
"""
Sort stage.

Applies the criteria of a ``SortQuery`` as a composite, stable ordering.
The criteria are applied as successive stable passes from the last entry
to the first, so the first entry ends up as the primary key and later
entries only break ties. Cells whose property is not found always end up
after the cells that have it, whatever the direction.
"""

import math
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, List, Sequence, Tuple

from dataselect.query.schemas import SortBy, SortQuery
from dataselect.selection.cells import DataCell, is_found

# Kind ranks keep values of different types from being compared directly.
# NaN has no order among numbers, so it gets a rank of its own.
_NUMBER, _NAN, _TIME, _STRING, _OTHER = range(5)


def _is_nan(value: Any) -> bool:
    if isinstance(value, Decimal):
        return value.is_nan()
    return isinstance(value, float) and math.isnan(value)


def comparable_key(value: Any) -> Tuple[int, Any]:
    """Normalise a property value into a ``(kind, value)`` pair that always compares."""
    if isinstance(value, (bool, int, float, Decimal)):
        if _is_nan(value):
            return _NAN, 0
        return _NUMBER, value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return _TIME, value.timestamp()
    if isinstance(value, date):
        return _TIME, datetime.combine(value, time.min, tzinfo=timezone.utc).timestamp()
    if isinstance(value, str):
        return _STRING, value
    return _OTHER, str(value)


def _sort_pass(cells: List[DataCell], sort_by: SortBy) -> List[DataCell]:
    found = []
    missing = []
    for cell in cells:
        value = cell.get_property(sort_by.property)
        if is_found(value):
            found.append((comparable_key(value), cell))
        else:
            missing.append(cell)

    # reverse=True keeps equal elements in their original order.
    found.sort(key=lambda pair: pair[0], reverse=not sort_by.ascending)
    return [cell for _, cell in found] + missing


def sort_cells(cells: Sequence[DataCell], sort_query: SortQuery) -> List[DataCell]:
    """
    Return the cells ordered by ``sort_query``.

    The input sequence is not modified. An empty query returns the cells in
    their original order.
    """
    ordered = list(cells)
    if sort_query.is_empty():
        return ordered

    for sort_by in reversed(sort_query.sort_by_list):
        ordered = _sort_pass(ordered, sort_by)
    return ordered
