# dataselect/selection/registry.py
"""Registry mapping item types to the cell classes that wrap them."""

import logging
from typing import Any, Dict, Iterable, List, Optional, Type

from dataselect.core.exceptions import CapabilityError
from dataselect.selection.cells import DataCell, SupportsGetProperty

logger = logging.getLogger(__name__)


class CellConfig:
    """How to wrap one item type into a cell"""

    def __init__(
        self,
        item_type: Type[Any],
        cell_cls: Type[DataCell],
        options: Optional[Dict[str, Any]] = None,
    ):
        self.item_type = item_type
        self.cell_cls = cell_cls
        self.options = dict(options or {})

    def to_cell(self, item: Any) -> DataCell:
        """Wrap a single item"""
        return self.cell_cls(item, **self.options)


class CellRegistry:
    """Registry of the item types that can take part in a selection"""

    def __init__(self):
        self.configs: Dict[type, CellConfig] = {}

    def register(
        self, item_type: Type[Any], cell_cls: Type[DataCell], **options: Any
    ) -> None:
        """
        Register the cell class used to wrap ``item_type``.

        Extra keyword arguments are passed to the cell constructor, e.g.
        ``property_map`` or ``metric_key`` for the stock cells.

        Raises:
            CapabilityError: ``cell_cls`` is not a ``DataCell`` subclass.
        """
        if not (isinstance(cell_cls, type) and issubclass(cell_cls, DataCell)):
            raise CapabilityError(
                f"Cannot register {cell_cls!r} for {item_type.__name__}: not a DataCell subclass"
            )
        self.configs[item_type] = CellConfig(item_type, cell_cls, options)
        logger.debug(f"Registered {cell_cls.__name__} for {item_type.__name__}")

    def get_config(self, item_type: type) -> Optional[CellConfig]:
        """Get the configuration for a type, following its MRO"""
        for klass in item_type.__mro__:
            config = self.configs.get(klass)
            if config is not None:
                return config
        return None

    def is_registered(self, item_type: type) -> bool:
        return self.get_config(item_type) is not None

    def to_cell(self, item: Any) -> DataCell:
        """
        Wrap one item, passing existing cells through.

        Registered types are wrapped with their cell class. Unregistered
        items that already implement ``get_property`` are used as they are.

        Raises:
            CapabilityError: The item's type is not registered and the item
                has no ``get_property``.
        """
        if isinstance(item, DataCell):
            return item
        config = self.get_config(type(item))
        if config is None:
            if isinstance(item, SupportsGetProperty):
                return item
            raise CapabilityError(
                f"{type(item).__name__} is not selectable: no cell registered for this type"
            )
        return config.to_cell(item)

    def to_cells(self, items: Iterable[Any]) -> List[DataCell]:
        """Wrap every item of a collection"""
        return [self.to_cell(item) for item in items]


def from_cells(cells: Iterable[DataCell]) -> List[Any]:
    """Unwrap stock cells back into the items they wrap."""
    return [getattr(cell, "item", cell) for cell in cells]


# Create the global registry
registry = CellRegistry()
