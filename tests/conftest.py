# tests/conftest.py
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from basket_chart.core.models import OHLCVPoint  # noqa: E402
from basket_chart.services.json_storage import JsonStorage  # noqa: E402
from basket_chart.ui.widgets.charting.render_backend import (  # noqa: E402
    MarkerHandle,
    PaneHandle,
    RenderBackend,
    SeriesDetachedError,
    SeriesHandle,
)


class RecordingSeries(SeriesHandle):
    def __init__(self, backend: "RecordingBackend", kind: str, options: dict, pane_index: int) -> None:
        self._backend = backend
        self.kind = kind
        self.pane_index = pane_index
        self.options = dict(options)
        self.rows: list = []

    def set_data(self, rows) -> None:
        self.rows = list(rows)
        self._backend.calls.append(("set_data", self))

    def apply_options(self, options) -> None:
        self.options.update(options)
        self._backend.calls.append(("apply_options", self, dict(options)))


class RecordingMarkers(MarkerHandle):
    def __init__(self, backend: "RecordingBackend", series: RecordingSeries) -> None:
        self._backend = backend
        self.series = series
        self.markers: list = []

    def set_markers(self, markers) -> None:
        self.markers = list(markers)
        self._backend.calls.append(("set_markers", self.series, list(markers)))


class RecordingPane(PaneHandle):
    def __init__(self, backend: "RecordingBackend", index: int) -> None:
        self._backend = backend
        self.index = index

    def set_height(self, px: int) -> None:
        self._backend.pane_heights[self.index] = px
        self._backend.calls.append(("set_height", self.index, px))


class RecordingBackend(RenderBackend):
    """In-memory backend that records every call made through it."""

    def __init__(self) -> None:
        self.calls: list = []
        self.attached: list = []
        self.pane_heights: dict = {}
        self.markers: list = []
        self.autoscale_disabled = 0

    def create_series(self, kind, options, pane_index=0):
        series = RecordingSeries(self, kind, options, pane_index)
        self.attached.append(series)
        self.calls.append(("create_series", series))
        return series

    def remove_series(self, handle):
        if handle not in self.attached:
            raise SeriesDetachedError("not attached")
        self.attached.remove(handle)
        self.calls.append(("remove_series", handle))

    def pane(self, index):
        return RecordingPane(self, index)

    def create_markers(self, handle, markers):
        marker_handle = RecordingMarkers(self, handle)
        marker_handle.set_markers(markers)
        self.markers.append(marker_handle)
        return marker_handle

    def disable_autoscale(self):
        self.autoscale_disabled += 1

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def reset_calls(self) -> None:
        self.calls = []

    def series_in_pane(self, pane_index: int) -> list:
        return [s for s in self.attached if s.pane_index == pane_index]


def make_point(instrument_id, timestamp, close, high=None, low=None, open_=None) -> OHLCVPoint:
    return OHLCVPoint(
        instrument_id=instrument_id,
        timestamp=timestamp,
        open=close if open_ is None else open_,
        high=close if high is None else high,
        low=close if low is None else low,
        close=close,
    )


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def storage(tmp_path) -> JsonStorage:
    return JsonStorage(directory=tmp_path / "store")


@pytest.fixture
def basket_points():
    """Two instruments over three bars: A closes 10, B closes 12 at every bar."""
    points = []
    for timestamp in (100, 200, 300):
        points.append(make_point("A", timestamp, 10.0))
        points.append(make_point("B", timestamp, 12.0))
    return points
