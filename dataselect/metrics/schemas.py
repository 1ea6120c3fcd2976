# dataselect/metrics/schemas.py
"""Metric types shared by the metrics collaborator and the aggregation registry."""

from typing import Dict, Hashable, List, Mapping, Sequence

from pydantic import BaseModel, ConfigDict

# ===== METRIC NAMES =====

CPU_USAGE = "cpu/usage_rate"
MEMORY_USAGE = "memory/usage"

# ===== AGGREGATION NAMES =====

SUM = "sum"
MAX = "max"
MIN = "min"
AVERAGE = "average"

ONLY_SUM_AGGREGATION = (SUM,)


class DataPoint(BaseModel):
    """One sample of a time series: ``x`` is a unix timestamp, ``y`` the value."""

    x: int
    y: float

    model_config = ConfigDict(frozen=True)


Series = Sequence[DataPoint]

# Raw collaborator output: metric key -> metric name -> series.
RawSeries = Mapping[Hashable, Mapping[str, Series]]

# Aggregated output: metric name -> aggregation name -> series.
AggregatedSeries = Dict[str, Dict[str, List[DataPoint]]]
