"""Chart axis components - draggable axes with custom formatting."""

from .draggable_axis import DraggableAxisItem
from .price_axis import DraggablePriceAxisItem
from .time_axis import DraggableTimeAxisItem

__all__ = ['DraggableAxisItem', 'DraggablePriceAxisItem', 'DraggableTimeAxisItem']
