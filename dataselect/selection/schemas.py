# dataselect/selection/schemas.py
"""Result types returned by the data selection engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from dataselect.metrics.schemas import AggregatedSeries, DataPoint

T = TypeVar("T")


class MetricsStatus(str, Enum):
    """Outcome of the metric stage for one selection."""

    NOT_REQUESTED = "not_requested"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class MetricsResult(BaseModel):
    """Metrics portion of a selection result."""

    status: MetricsStatus = MetricsStatus.NOT_REQUESTED
    series: AggregatedSeries = Field(default_factory=dict)
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def not_requested(cls) -> "MetricsResult":
        return cls(status=MetricsStatus.NOT_REQUESTED)

    @classmethod
    def available(cls, series: AggregatedSeries) -> "MetricsResult":
        return cls(status=MetricsStatus.AVAILABLE, series=series)

    @classmethod
    def unavailable(cls, error: str) -> "MetricsResult":
        return cls(status=MetricsStatus.UNAVAILABLE, error=error)

    @property
    def is_unavailable(self) -> bool:
        return self.status == MetricsStatus.UNAVAILABLE

    def get_series(self, metric_name: str, aggregation: str) -> List[DataPoint]:
        """Aggregated series for one metric, or an empty list if absent."""
        return list(self.series.get(metric_name, {}).get(aggregation, []))


@dataclass
class SelectionResult(Generic[T]):
    """
    Output of one selection pass.

    ``total_items`` counts the items that passed filtering, before
    pagination; ``items`` holds only the requested page.
    """

    items: List[T]
    total_items: int
    metrics: MetricsResult = field(default_factory=MetricsResult.not_requested)

    @property
    def list_meta(self) -> dict:
        """Pagination metadata in the shape list views expect."""
        return {"totalItems": self.total_items}
