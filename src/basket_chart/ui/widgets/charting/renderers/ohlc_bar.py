"""OHLC Bar Item - open/close tick bars, same data layout as CandlestickItem."""

from pyqtgraph.Qt import QtCore

from .candlestick import CandlestickItem


class OHLCBarItem(CandlestickItem):
    """Vertical high-low line with an open tick to the left and a close tick to the right."""

    def _draw_bar(self, p, x, o, c, lo, hi, w, body_pen, wick_pen):
        p.setPen(body_pen)
        p.drawLine(QtCore.QPointF(x, lo), QtCore.QPointF(x, hi))
        p.drawLine(QtCore.QPointF(x - w / 2, o), QtCore.QPointF(x, o))
        p.drawLine(QtCore.QPointF(x, c), QtCore.QPointF(x + w / 2, c))
