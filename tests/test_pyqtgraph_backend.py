import pytest

pytest.importorskip("PySide6")
pg = pytest.importorskip("pyqtgraph")

from PySide6.QtWidgets import QApplication  # noqa: E402

from basket_chart.ui.widgets.charting.pyqtgraph_backend import (  # noqa: E402
    CandlestickSeries,
    LineSeries,
    PyQtGraphBackend,
    PyQtGraphSeries,
    make_color,
    make_pen,
)
from basket_chart.ui.widgets.charting.render_backend import SeriesDetachedError  # noqa: E402
from basket_chart.ui.widgets.charting.series_kinds import TRANSPARENT_COLOR  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def chart_backend(qapp):
    widget = pg.GraphicsLayoutWidget()
    yield PyQtGraphBackend(widget)
    widget.close()


def test_create_and_remove_line_series(chart_backend) -> None:
    handle = chart_backend.create_series("line", {"color": "#2962ff", "line_width": 2}, 0)
    handle.set_data([{"time": 100.0, "value": 1.0}, {"time": 200.0, "value": 2.0}])

    assert isinstance(handle, LineSeries)
    assert handle.item in chart_backend.plot(0).getViewBox().addedItems

    chart_backend.remove_series(handle)
    assert handle.item not in chart_backend.plot(0).getViewBox().addedItems

    with pytest.raises(SeriesDetachedError):
        chart_backend.remove_series(handle)


def test_candlestick_series_accepts_ohlc_rows(chart_backend) -> None:
    handle = chart_backend.create_series("candlestick", {"up_color": "#00ff00", "down_color": "#ff0000"}, 0)
    handle.set_data(
        [
            {"time": 100.0, "open": 1.0, "high": 2.0, "low": 0.5, "close": 1.5},
            {"time": 200.0, "open": 1.5, "high": 1.8, "low": 1.0, "close": 1.2},
        ]
    )

    assert isinstance(handle, CandlestickSeries)
    assert handle.item.data.shape == (2, 5)
    assert handle.item.bar_width == pytest.approx(60.0)


def test_unknown_kind_raises(chart_backend) -> None:
    with pytest.raises(ValueError):
        chart_backend.create_series("renko", {}, 0)


def test_transparent_pen_draws_nothing(qapp) -> None:
    assert make_pen(TRANSPARENT_COLOR, 0, "solid", 0.0).style() == pg.QtCore.Qt.PenStyle.NoPen
    assert make_color("#ff0000", 0.5).alphaF() == pytest.approx(0.5, abs=0.01)
    assert make_color(TRANSPARENT_COLOR).alpha() == 0


def test_markers_and_pane_height(chart_backend) -> None:
    handle = chart_backend.create_series("line", {"color": "#333333", "line_width": 1}, 1)
    handle.set_data([{"time": 100.0, "value": 0.0}])

    markers = chart_backend.create_markers(handle, [{"time": 100.0, "position": "aboveBar", "color": "#ffffff", "shape": "circle", "size": 2, "text": "P"}])
    chart_backend.pane(1).set_height(40)

    assert chart_backend.plot(1).isVisible()
    markers.set_markers([])
    chart_backend.remove_series(handle)


def test_disable_autoscale_turns_off_auto_range(chart_backend) -> None:
    handle = chart_backend.create_series("line", {"color": "#2962ff", "line_width": 2}, 0)
    handle.set_data([{"time": 100.0, "value": 1.0}])
    chart_backend.disable_autoscale()

    assert chart_backend.plot(0).getViewBox().autoRangeEnabled() == [False, False]


def test_series_base_requires_marker_anchor(chart_backend) -> None:
    class Incomplete(PyQtGraphSeries):
        def set_data(self, rows) -> None:
            pass

        def apply_options(self, options) -> None:
            pass

    with pytest.raises(TypeError):
        Incomplete(pg.PlotCurveItem(), chart_backend.plot(0).getViewBox())
