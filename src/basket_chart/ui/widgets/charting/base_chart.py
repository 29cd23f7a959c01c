"""Base Chart - shared chart widget infrastructure."""

from typing import Optional

import pyqtgraph as pg
from PySide6.QtCore import Qt
from PySide6.QtGui import QMouseEvent

from basket_chart.core.config import CHART_BACKGROUND_COLOR, CHART_TEXT_COLOR


class BaseChart(pg.GraphicsLayoutWidget):
    """
    Base class for chart widgets providing:
    - Dark background
    - Crosshair on the main plot
    - A centered message overlay for empty states

    Subclasses set plot_item / view_box once their plots exist and then call
    _install_overlays().
    """

    def __init__(self, parent=None):
        super().__init__(parent=parent)
        self.setBackground(CHART_BACKGROUND_COLOR)

        self.plot_item: Optional[pg.PlotItem] = None
        self.view_box: Optional[pg.ViewBox] = None

        self._crosshair_v = None
        self._crosshair_h = None
        self._message = None

    def _install_overlays(self):
        if self.plot_item is None:
            return

        pen = pg.mkPen(color=(150, 150, 150), width=1, style=Qt.DashLine)
        self._crosshair_v = pg.InfiniteLine(angle=90, movable=False, pen=pen)
        self._crosshair_h = pg.InfiniteLine(angle=0, movable=False, pen=pen)
        for line in (self._crosshair_v, self._crosshair_h):
            line.setVisible(False)
            self.plot_item.addItem(line, ignoreBounds=True)

        # Lives in the scene, not the ViewBox, so it ignores pan and zoom
        self._message = pg.LabelItem("", color=CHART_TEXT_COLOR, size="12pt")
        self._message.setParentItem(self.view_box)
        self._message.anchor(itemPos=(0.5, 0.5), parentPos=(0.5, 0.5))
        self._message.setVisible(False)

    def show_message(self, text: Optional[str]) -> None:
        """Show centered text over the main plot, or hide it when text is None."""
        if self._message is None:
            return
        self._message.setText(text or "")
        self._message.setVisible(bool(text))

    @property
    def message_text(self) -> str:
        if self._message is None or not self._message.isVisible():
            return ""
        return self._message.text

    def mouseMoveEvent(self, ev: QMouseEvent):
        self._on_mouse_move(ev)
        super().mouseMoveEvent(ev)

    def leaveEvent(self, ev):
        self._on_mouse_leave(ev)
        super().leaveEvent(ev)

    def _on_mouse_move(self, ev: QMouseEvent):
        if self.view_box is None or self._crosshair_v is None:
            return

        scene_pos = self.mapToScene(ev.position().toPoint())
        if not self.view_box.sceneBoundingRect().contains(scene_pos):
            self._on_mouse_leave(ev)
            return

        point = self.view_box.mapSceneToView(scene_pos)
        self._crosshair_v.setPos(point.x())
        self._crosshair_h.setPos(point.y())
        self._crosshair_v.setVisible(True)
        self._crosshair_h.setVisible(True)

    def _on_mouse_leave(self, ev):
        if self._crosshair_v is not None:
            self._crosshair_v.setVisible(False)
            self._crosshair_h.setVisible(False)
