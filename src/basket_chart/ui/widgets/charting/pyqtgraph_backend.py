"""PyQtGraph Backend - RenderBackend implemented on a pg.GraphicsLayoutWidget.

Pane 0 is the price plot, pane 1 the indicator plot; both share the time
axis through an X link. Series are pyqtgraph items added to a pane's
ViewBox, so removing a series is removing its item.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import Qt

from basket_chart.core.config import (
    CANDLE_BAR_WIDTH,
    CHART_BACKGROUND_COLOR,
    CHART_GRID_ALPHA,
    CHART_TEXT_COLOR,
    INDICATOR_PANE_INDEX,
)
from basket_chart.ui.widgets.charting.axes import DraggablePriceAxisItem, DraggableTimeAxisItem
from basket_chart.ui.widgets.charting.render_backend import (
    MarkerHandle,
    PaneHandle,
    RenderBackend,
    SeriesDetachedError,
    SeriesHandle,
)
from basket_chart.ui.widgets.charting.renderers.candlestick import CandlestickItem
from basket_chart.ui.widgets.charting.renderers.ohlc_bar import OHLCBarItem
from basket_chart.ui.widgets.charting.series_kinds import TRANSPARENT_COLOR

PEN_STYLES = {
    "solid": Qt.SolidLine,
    "dotted": Qt.DotLine,
    "dashed": Qt.DashLine,
    "longdash": Qt.CustomDashLine,
    "dashdot": Qt.DashDotLine,
}
LONG_DASH_PATTERN = [8, 4]

MARKER_SYMBOLS = {"circle": "o", "square": "s", "arrowUp": "t1", "arrowDown": "t"}
MARKER_PIXELS_PER_SIZE = 5
MARKER_OFFSET_FRACTION = 0.15  # of the pane's visible y span


def make_color(color: Any, opacity: float = 1.0):
    """QColor from any pg.mkColor input, with its alpha scaled by opacity."""
    qcolor = pg.mkColor(color if color is not None else TRANSPARENT_COLOR)
    qcolor.setAlphaF(max(0.0, min(1.0, qcolor.alphaF() * float(opacity))))
    return qcolor


def make_pen(color: Any, width: float = 1, style: str = "solid", opacity: float = 1.0):
    """
    Pen for a line series.

    Zero width or opacity gives no pen at all: a Qt pen of width 0 is a
    one-pixel cosmetic line, not an invisible one.
    """
    if not width or width <= 0 or opacity <= 0:
        return pg.mkPen(None)

    pen = pg.mkPen(color=make_color(color, opacity), width=width, style=PEN_STYLES.get(style, Qt.SolidLine))
    if style == "longdash":
        pen.setDashPattern(LONG_DASH_PATTERN)
    return pen


class PyQtGraphSeries(SeriesHandle):
    """A series item bound to the ViewBox it was added to."""

    def __init__(self, item, view_box: pg.ViewBox):
        self.item = item
        self.view_box = view_box
        self.options: Dict[str, Any] = {}
        self._times = np.empty(0)

    @property
    def times(self) -> np.ndarray:
        return self._times

    @abstractmethod
    def marker_anchor(self, time: float, position: str) -> Optional[float]:
        """y coordinate a marker at this time should sit on, or None without a bar."""


class LineSeries(PyQtGraphSeries):
    def __init__(self, view_box: pg.ViewBox):
        super().__init__(pg.PlotCurveItem(), view_box)
        self._values = np.empty(0)

    def set_data(self, rows: List[Dict[str, Any]]) -> None:
        self._times = np.array([row["time"] for row in rows], dtype=float)
        self._values = np.array([row["value"] for row in rows], dtype=float)
        self.item.setData(x=self._times, y=self._values)

    def apply_options(self, options: Dict[str, Any]) -> None:
        self.options.update(options)
        self.item.setPen(
            make_pen(
                self.options.get("color"),
                self.options.get("line_width", 1),
                self.options.get("line_style", "solid"),
                self.options.get("opacity", 1.0),
            )
        )

    def marker_anchor(self, time: float, position: str) -> Optional[float]:
        matches = np.nonzero(self._times == time)[0]
        if matches.size == 0:
            return None
        return float(self._values[matches[0]])


class CandlestickSeries(PyQtGraphSeries):
    item_class = CandlestickItem

    def __init__(self, view_box: pg.ViewBox):
        super().__init__(self.item_class(), view_box)
        self._bars = np.empty((0, 5))

    def set_data(self, rows: List[Dict[str, Any]]) -> None:
        self._bars = np.array(
            [[row["time"], row["open"], row["close"], row["low"], row["high"]] for row in rows],
            dtype=float,
        ).reshape(-1, 5)
        self._times = self._bars[:, 0]
        self.item.setData(self._bars, bar_width=self._bar_width())

    def _bar_width(self) -> float:
        if self._times.size < 2:
            return CANDLE_BAR_WIDTH
        step = float(np.median(np.diff(np.sort(self._times))))
        return step * CANDLE_BAR_WIDTH if step > 0 else CANDLE_BAR_WIDTH

    def apply_options(self, options: Dict[str, Any]) -> None:
        self.options.update(options)
        opacity = self.options.get("opacity", 1.0)
        wick = self.options.get("wick_color")
        self.item.setColors(
            make_color(self.options.get("up_color"), opacity),
            make_color(self.options.get("down_color"), opacity),
            make_color(wick, opacity) if wick is not None else None,
        )

    def marker_anchor(self, time: float, position: str) -> Optional[float]:
        matches = np.nonzero(self._times == time)[0]
        if matches.size == 0:
            return None
        _, _, _, low, high = self._bars[matches[0]]
        return float(low if position == "belowBar" else high)


class OHLCBarSeries(CandlestickSeries):
    item_class = OHLCBarItem


SERIES_CLASSES = {
    "line": LineSeries,
    "candlestick": CandlestickSeries,
    "ohlc": OHLCBarSeries,
}


class PlotPane(PaneHandle):
    def __init__(self, layout: pg.GraphicsLayout, row: int, plot: pg.PlotItem):
        self._layout = layout
        self._row = row
        self.plot = plot

    def set_height(self, px: int) -> None:
        self._layout.layout.setRowFixedHeight(self._row, px)
        self.plot.setVisible(px > 0)


class ScatterMarkers(MarkerHandle):
    """Markers drawn as a scatter plus one text label per marker."""

    def __init__(self, series: PyQtGraphSeries):
        self._series = series
        self._scatter = pg.ScatterPlotItem()
        self._labels: List[pg.TextItem] = []
        series.view_box.addItem(self._scatter)

    def set_markers(self, markers: List[Dict[str, Any]]) -> None:
        for label in self._labels:
            self._series.view_box.removeItem(label)
        self._labels = []

        spots = []
        offset = self._offset()
        for marker in markers:
            anchor = self._series.marker_anchor(marker["time"], marker.get("position", "aboveBar"))
            if anchor is None:
                continue
            y = anchor - offset if marker.get("position") == "belowBar" else anchor + offset
            color = marker.get("color", CHART_TEXT_COLOR)
            spots.append(
                {
                    "pos": (marker["time"], y),
                    "brush": pg.mkBrush(color),
                    "pen": pg.mkPen(None),
                    "symbol": MARKER_SYMBOLS.get(marker.get("shape"), "o"),
                    "size": MARKER_PIXELS_PER_SIZE * marker.get("size", 1),
                }
            )
            if marker.get("text"):
                label = pg.TextItem(marker["text"], color=color, anchor=(0.5, 1.0))
                label.setPos(marker["time"], y)
                self._series.view_box.addItem(label)
                self._labels.append(label)

        self._scatter.setData(spots)

    def _offset(self) -> float:
        _, (y0, y1) = self._series.view_box.viewRange()
        return abs(y1 - y0) * MARKER_OFFSET_FRACTION

    def detach(self) -> None:
        self.set_markers([])
        self._series.view_box.removeItem(self._scatter)


class PyQtGraphBackend(RenderBackend):
    """
    Two-pane chart on a GraphicsLayoutWidget.

    Example:
        widget = pg.GraphicsLayoutWidget()
        backend = PyQtGraphBackend(widget)
        handle = backend.create_series("line", {"color": "#2962ff", "line_width": 2})
        handle.set_data([{"time": 1700000000, "value": 1.085}])
    """

    def __init__(self, widget: pg.GraphicsLayoutWidget, pane_count: int = 2):
        self._widget = widget
        self._layout = widget.ci
        self._plots: List[pg.PlotItem] = []
        self._markers: Dict[int, Tuple[PyQtGraphSeries, List[ScatterMarkers]]] = {}

        widget.setBackground(CHART_BACKGROUND_COLOR)
        for row in range(pane_count):
            self._plots.append(self._create_plot(row))

        if pane_count > INDICATOR_PANE_INDEX:
            indicator = self._plots[INDICATOR_PANE_INDEX]
            indicator.setYRange(-1, 1, padding=0)
            indicator.setMouseEnabled(x=True, y=False)
            self.pane(INDICATOR_PANE_INDEX).set_height(0)

        self.disable_autoscale()

    def _create_plot(self, row: int) -> pg.PlotItem:
        plot = self._widget.addPlot(
            row=row,
            col=0,
            axisItems={
                "bottom": DraggableTimeAxisItem(orientation="bottom"),
                "right": DraggablePriceAxisItem(orientation="right"),
            },
        )
        plot.hideAxis("left")
        plot.showAxis("right")
        plot.showGrid(x=True, y=True, alpha=CHART_GRID_ALPHA)
        plot.setMenuEnabled(False)
        plot.hideButtons()
        for axis in ("bottom", "right"):
            plot.getAxis(axis).setTextPen(CHART_TEXT_COLOR)
        if self._plots:
            plot.setXLink(self._plots[0])
            self._plots[0].hideAxis("bottom")
        return plot

    @property
    def plots(self) -> List[pg.PlotItem]:
        return list(self._plots)

    def plot(self, index: int) -> pg.PlotItem:
        return self._plots[index]

    def create_series(self, kind: str, options: Dict[str, Any], pane_index: int = 0) -> SeriesHandle:
        try:
            series_class = SERIES_CLASSES[kind]
        except KeyError:
            raise ValueError(f"Unknown series kind: {kind!r}") from None

        view_box = self._plots[pane_index].getViewBox()
        handle = series_class(view_box)
        handle.apply_options(options)
        view_box.addItem(handle.item)
        return handle

    def remove_series(self, handle: SeriesHandle) -> None:
        if not isinstance(handle, PyQtGraphSeries) or handle.item not in handle.view_box.addedItems:
            raise SeriesDetachedError(f"{handle!r} is not attached to this chart")

        _, marker_handles = self._markers.pop(id(handle), (handle, []))
        for marker_handle in marker_handles:
            marker_handle.detach()
        handle.view_box.removeItem(handle.item)

    def pane(self, index: int) -> PaneHandle:
        return PlotPane(self._layout, index, self._plots[index])

    def create_markers(self, handle: SeriesHandle, markers: List[Dict[str, Any]]) -> MarkerHandle:
        if not isinstance(handle, PyQtGraphSeries):
            raise SeriesDetachedError(f"{handle!r} is not a series of this chart")

        marker_handle = ScatterMarkers(handle)
        marker_handle.set_markers(markers)
        self._markers.setdefault(id(handle), (handle, []))[1].append(marker_handle)
        return marker_handle

    def disable_autoscale(self) -> None:
        for plot in self._plots:
            plot.getViewBox().disableAutoRange()

    def fit_content(self) -> None:
        """Fit the price pane to its data. Only for explicit user requests."""
        if self._plots:
            self._plots[0].getViewBox().autoRange()
            self.disable_autoscale()
