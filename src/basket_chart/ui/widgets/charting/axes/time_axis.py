"""Time Axis - bottom axis for epoch-second x values."""

from .draggable_axis import DraggableAxisItem
from basket_chart.utils.formatters import format_timestamp


class DraggableTimeAxisItem(DraggableAxisItem):
    """
    Bottom axis that labels epoch seconds as dates or times.

    Instruments are plotted on their real timestamps (not bar indices), so
    series with different sessions line up on one axis.
    """

    def __init__(self, orientation: str = "bottom", *args, **kwargs):
        super().__init__(orientation, *args, **kwargs)

    def tickStrings(self, values, scale, spacing):
        return [format_timestamp(float(v), spacing) for v in values]
