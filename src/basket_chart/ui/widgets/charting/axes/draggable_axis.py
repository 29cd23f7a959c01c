"""Draggable Axis - axis with drag-to-zoom that leaves autoscale off."""

import math
import pyqtgraph as pg
from pyqtgraph.Qt import QtCore

DRAG_SENSITIVITY = 0.005


class DraggableAxisItem(pg.AxisItem):
    """
    Left-drag on the axis zooms around the center of the visible range.

      - bottom/top axis: drag right to zoom in on X
      - left/right axis: drag up to zoom in on Y

    Zooming sets the range explicitly, so the view never falls back to
    auto-range while the user is navigating.
    """

    def __init__(self, orientation: str, *args, **kwargs):
        super().__init__(orientation, *args, **kwargs)
        self._is_x_axis = orientation in ("bottom", "top")
        self._drag_active = False

    def zoom_factor(self, delta: float) -> float:
        sign = -1.0 if self._is_x_axis else 1.0
        return math.exp(sign * float(delta) * DRAG_SENSITIVITY)

    def mouseDragEvent(self, ev):
        vb = self.linkedView()
        if vb is None or ev.button() != QtCore.Qt.LeftButton:
            ev.ignore()
            return

        ev.accept()

        if ev.isStart():
            self._drag_active = True
            return
        if not self._drag_active:
            return

        dp = ev.pos() - ev.lastPos()
        factor = self.zoom_factor(dp.x() if self._is_x_axis else dp.y())

        (x0, x1), (y0, y1) = vb.viewRange()
        lo, hi = (x0, x1) if self._is_x_axis else (y0, y1)

        if hi != lo:
            center = 0.5 * (lo + hi)
            half = 0.5 * (hi - lo) * factor
            if self._is_x_axis:
                vb.setXRange(center - half, center + half, padding=0)
            else:
                vb.setYRange(center - half, center + half, padding=0)

        if ev.isFinish():
            self._drag_active = False
