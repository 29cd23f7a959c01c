"""Price Axis - right axis with instrument price formatting."""

from .draggable_axis import DraggableAxisItem
from basket_chart.utils.formatters import format_price


class DraggablePriceAxisItem(DraggableAxisItem):
    """Right price axis. Decimals follow the tick spacing so FX pips stay readable."""

    def tickStrings(self, values, scale, spacing):
        return [format_price(float(v), spacing) for v in values]
