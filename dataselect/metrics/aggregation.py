# dataselect/metrics/aggregation.py
"""
Aggregation functions that merge per-item series into one series.

Each function receives the series of one metric for every selected item
and returns a single series aligned by timestamp. Items that did not
report a timestamp are handled according to the function's policy:

- ``sum``: a missing point counts as zero.
- ``max`` / ``min``: only items that reported the timestamp take part.
- ``average``: mean over the items that reported the timestamp; missing
  points are not counted as zero.

New aggregations are added by registering a function on an
``AggregationRegistry``; the selection stages never need to change.
"""

from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from dataselect.metrics.schemas import AVERAGE, MAX, MIN, SUM, DataPoint, Series

AggregationFunc = Callable[[Sequence[Series]], List[DataPoint]]


def _group_by_timestamp(series_list: Sequence[Series]) -> Dict[int, List[float]]:
    """Collect the values reported at each timestamp across all series."""
    grouped: Dict[int, List[float]] = defaultdict(list)
    for series in series_list:
        for point in series or ():
            grouped[point.x].append(point.y)
    return grouped


def _reduce(
    series_list: Sequence[Series], reducer: Callable[[List[float]], float]
) -> List[DataPoint]:
    grouped = _group_by_timestamp(series_list)
    return [DataPoint(x=ts, y=reducer(values)) for ts, values in sorted(grouped.items())]


def sum_aggregation(series_list: Sequence[Series]) -> List[DataPoint]:
    """Pointwise sum; items without a point at a timestamp add nothing."""
    return _reduce(series_list, sum)


def max_aggregation(series_list: Sequence[Series]) -> List[DataPoint]:
    """Pointwise maximum over the items that reported each timestamp."""
    return _reduce(series_list, max)


def min_aggregation(series_list: Sequence[Series]) -> List[DataPoint]:
    """Pointwise minimum over the items that reported each timestamp."""
    return _reduce(series_list, min)


def average_aggregation(series_list: Sequence[Series]) -> List[DataPoint]:
    """Pointwise mean over the items that reported each timestamp."""
    return _reduce(series_list, lambda values: sum(values) / len(values))


class AggregationRegistry:
    """Registry of aggregation functions by name."""

    def __init__(self, functions: Optional[Dict[str, AggregationFunc]] = None):
        self._functions: Dict[str, AggregationFunc] = dict(functions or {})

    def register(self, name: str, func: AggregationFunc) -> None:
        """Register (or replace) an aggregation function."""
        if not callable(func):
            raise TypeError(f"Aggregation '{name}' must be callable")
        self._functions[name] = func

    def get(self, name: str) -> AggregationFunc:
        """Get an aggregation function, raising ``KeyError`` if unknown."""
        try:
            return self._functions[name]
        except KeyError:
            raise KeyError(f"Unknown aggregation: {name}") from None

    def names(self) -> List[str]:
        return list(self._functions)

    def known(self, names: Iterable[str]) -> List[str]:
        """Filter ``names`` down to the registered ones, keeping order."""
        return [name for name in names if name in self._functions]

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def aggregate(self, name: str, series_list: Sequence[Series]) -> List[DataPoint]:
        return self.get(name)(series_list)


def create_default_registry() -> AggregationRegistry:
    """Create a registry holding the built-in aggregations."""
    return AggregationRegistry(
        {
            SUM: sum_aggregation,
            MAX: max_aggregation,
            MIN: min_aggregation,
            AVERAGE: average_aggregation,
        }
    )


default_registry = create_default_registry()
