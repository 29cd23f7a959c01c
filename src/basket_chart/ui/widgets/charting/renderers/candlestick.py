"""Candlestick Item - OHLC candlestick renderer on a time axis."""

import numpy as np
import pyqtgraph as pg
from pyqtgraph.Qt import QtCore, QtGui

from basket_chart.core.config import CANDLE_BAR_WIDTH


class CandlestickItem(pg.GraphicsObject):
    """
    data rows: [time, open, close, low, high]
    time is epoch seconds, so bar_width is in seconds too
    """

    def __init__(self, data=None, bar_width: float = CANDLE_BAR_WIDTH, up_color=None, down_color=None, wick_color=None):
        super().__init__()
        self.data = self._as_array(data)
        self.bar_width = float(bar_width)
        self.up_color = up_color if up_color is not None else (76, 153, 0)
        self.down_color = down_color if down_color is not None else (200, 50, 50)
        self.wick_color = wick_color
        self._picture = None
        self._generate_picture()

    @staticmethod
    def _as_array(data) -> np.ndarray:
        if data is None or len(data) == 0:
            return np.empty((0, 5), dtype=float)
        return np.array(data, dtype=float)

    def setData(self, data, bar_width: float = None):
        self.prepareGeometryChange()
        self.data = self._as_array(data)
        if bar_width is not None:
            self.bar_width = float(bar_width)
        self._generate_picture()
        self.update()

    def setColors(self, up_color, down_color, wick_color=None):
        """Update candle colors and regenerate picture."""
        self.up_color = up_color
        self.down_color = down_color
        self.wick_color = wick_color
        self._generate_picture()
        self.update()

    def _draw_bar(self, p, x, o, c, lo, hi, w, body_pen, wick_pen):
        p.setPen(wick_pen)
        p.drawLine(QtCore.QPointF(x, lo), QtCore.QPointF(x, hi))

        p.setPen(body_pen)
        top = max(o, c)
        bot = min(o, c)
        if top == bot:
            p.drawLine(QtCore.QPointF(x - w / 2, top), QtCore.QPointF(x + w / 2, top))
        else:
            p.drawRect(QtCore.QRectF(x - w / 2, bot, w, top - bot))

    def _generate_picture(self):
        picture = QtGui.QPicture()
        p = QtGui.QPainter(picture)

        if self.data.size == 0:
            p.end()
            self._picture = picture
            return

        up_pen = pg.mkPen(color=self.up_color, width=1)
        down_pen = pg.mkPen(color=self.down_color, width=1)
        wick_pen = pg.mkPen(color=self.wick_color, width=1) if self.wick_color is not None else None
        up_brush = pg.mkBrush(self.up_color)
        down_brush = pg.mkBrush(self.down_color)

        w = self.bar_width

        for x, o, c, lo, hi in self.data:
            if not np.isfinite([x, o, c, lo, hi]).all():
                continue

            is_up = c >= o
            body_pen = up_pen if is_up else down_pen
            p.setBrush(up_brush if is_up else down_brush)
            self._draw_bar(p, x, o, c, lo, hi, w, body_pen, wick_pen or body_pen)

        p.end()
        self._picture = picture

    def paint(self, painter, *args):
        if self._picture is not None:
            painter.drawPicture(0, 0, self._picture)

    def boundingRect(self):
        if self.data.size == 0:
            return QtCore.QRectF()

        x = self.data[:, 0]
        lo = self.data[:, 3]
        hi = self.data[:, 4]
        half = self.bar_width / 2

        return QtCore.QRectF(
            float(x.min()) - half,
            float(lo.min()),
            float(x.max() - x.min()) + self.bar_width,
            float(hi.max() - lo.min()),
        )
