# dataselect/selection/cells.py
"""
Property extraction contract for selectable items.

The selection stages only ever call ``get_property`` on a cell, so any
resource kind can be filtered, sorted and paginated once it is wrapped in
a ``DataCell``. Cells that should take part in metric aggregation also
implement ``get_metric_key``.
"""

from abc import ABC, abstractmethod
from typing import (
    Any,
    Callable,
    Dict,
    Hashable,
    Mapping,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from dataselect.core.exceptions import CapabilityError


class _NotFound:
    """Sentinel type for a property an item does not expose."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __bool__(self) -> bool:
        return False


NOT_FOUND = _NotFound()

MetricKey = Union[str, Callable[[Any], Hashable], None]


def is_found(value: Any) -> bool:
    """Check whether a looked-up value is usable; ``None`` counts as not found."""
    return value is not NOT_FOUND and value is not None


class DataCell(ABC):
    """An item that exposes its properties by name."""

    @abstractmethod
    def get_property(self, name: str) -> Any:
        """Return the value bound to ``name`` or ``NOT_FOUND``."""


class MetricDataCell(DataCell):
    """A cell whose metrics can be downloaded from a metrics collaborator."""

    @abstractmethod
    def get_metric_key(self) -> Hashable:
        """Identity used to look up this item's series."""


@runtime_checkable
class SupportsGetProperty(Protocol):
    """Structural form of ``DataCell`` for items that do not subclass it."""

    def get_property(self, name: str) -> Any: ...


@runtime_checkable
class SupportsMetricKey(SupportsGetProperty, Protocol):
    """Structural form of ``MetricDataCell``."""

    def get_metric_key(self) -> Hashable: ...


class _WrappingCell(MetricDataCell):
    """Shared behaviour for the stock cells that wrap an existing object."""

    def __init__(
        self,
        item: Any,
        property_map: Optional[Mapping[str, str]] = None,
        metric_key: MetricKey = None,
    ):
        self.item = item
        self.property_map: Dict[str, str] = dict(property_map or {})
        self._metric_key = metric_key

    def _lookup(self, key: str) -> Any:
        raise NotImplementedError

    def get_property(self, name: str) -> Any:
        key = self.property_map.get(name, name)
        return self._lookup(str(key))

    def get_metric_key(self) -> Hashable:
        if callable(self._metric_key):
            return self._metric_key(self.item)
        if isinstance(self._metric_key, str):
            value = self._lookup(self._metric_key)
            if is_found(value):
                return value
        return id(self.item)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.item!r})"


class MappingCell(_WrappingCell):
    """Cell over a dictionary, e.g. a decoded JSON document."""

    def _lookup(self, key: str) -> Any:
        if key in self.item:
            return self.item[key]
        return NOT_FOUND


class ObjectCell(_WrappingCell):
    """Cell over a plain object; properties are read as attributes."""

    def _lookup(self, key: str) -> Any:
        if key.startswith("_"):
            return NOT_FOUND
        return getattr(self.item, key, NOT_FOUND)


class ModelCell(_WrappingCell):
    """
    Cell over a SQLAlchemy mapped instance.

    Only mapped column attributes are exposed, so relationships and
    arbitrary Python attributes on the model cannot be sorted on.
    """

    def __init__(
        self,
        item: Any,
        property_map: Optional[Mapping[str, str]] = None,
        metric_key: MetricKey = None,
    ):
        try:
            mapper = inspect(item).mapper
        except NoInspectionAvailable as e:
            raise CapabilityError(
                f"{type(item).__name__} is not a SQLAlchemy mapped instance"
            ) from e
        super().__init__(item, property_map, metric_key)
        self._columns = frozenset(attr.key for attr in mapper.column_attrs)

    def _lookup(self, key: str) -> Any:
        if key not in self._columns:
            return NOT_FOUND
        return getattr(self.item, key)
