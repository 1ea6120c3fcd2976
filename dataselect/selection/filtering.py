# dataselect/selection/filtering.py
"""Filter stage: keep the cells that match every criterion of a ``FilterQuery``."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Sequence

from dataselect.query.schemas import FilterBy, FilterQuery
from dataselect.selection.cells import DataCell, is_found
from dataselect.selection.sort import comparable_key


def _coerce_like(expected: Any, actual: Any) -> Any:
    """Convert a query-string value to the type of the property it is matched against."""
    if not isinstance(expected, str) or isinstance(actual, str):
        return expected
    if isinstance(actual, bool):
        return expected.strip().lower() in ("true", "1", "yes")
    if isinstance(actual, (int, float)):
        try:
            return type(actual)(expected)
        except ValueError:
            return expected
    if isinstance(actual, Decimal):
        try:
            return Decimal(expected.strip())
        except InvalidOperation:
            return expected
    if isinstance(actual, datetime):
        try:
            return datetime.fromisoformat(expected.replace("Z", "+00:00"))
        except ValueError:
            return expected
    if isinstance(actual, date):
        try:
            return date.fromisoformat(expected.strip())
        except ValueError:
            return expected
    return expected


def matches(cell: DataCell, filter_by: FilterBy) -> bool:
    """
    Check one criterion against one cell.

    String properties match when they contain the expected value, ignoring
    case. Other properties match on equality. A property the cell does not
    have never matches.
    """
    actual = cell.get_property(filter_by.property)
    if not is_found(actual):
        return False

    if isinstance(actual, str):
        return str(filter_by.value).lower() in actual.lower()

    expected = _coerce_like(filter_by.value, actual)
    return comparable_key(expected) == comparable_key(actual)


def filter_cells(cells: Sequence[DataCell], filter_query: FilterQuery) -> List[DataCell]:
    """Return the cells matching all criteria, in their original order."""
    if filter_query.is_empty():
        return list(cells)
    return [
        cell
        for cell in cells
        if all(matches(cell, filter_by) for filter_by in filter_query.filter_by_list)
    ]
