"""Indicator Pane Manager - per-instrument proximity marker series in the secondary pane.

The lifecycle here follows the proximity mode and the visibility set, not
the chart type: each visible instrument gets one flat (y = 0) series that
carries its markers, created when the mode is enabled and removed as soon
as the instrument is hidden or the mode is disabled.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence

from basket_chart.core.config import (
    INDICATOR_DEFAULT_COLOR,
    INDICATOR_LINE_WEIGHT,
    INDICATOR_PANE_HEIGHT,
    INDICATOR_PANE_INDEX,
    MARKER_DEFAULT_COLOR,
)
from basket_chart.core.models import InstrumentStyle
from basket_chart.services.proximity_service import ProximityIndicatorPoint
from basket_chart.ui.modules.chart.services.series_registry import SeriesIdentity, SeriesRegistry
from basket_chart.ui.widgets.charting.render_backend import (
    MarkerHandle,
    RenderBackend,
    SeriesDetachedError,
)
from basket_chart.utils.logger import get_logger

if TYPE_CHECKING:
    import pandas as pd

logger = get_logger(__name__)


def collapse_duplicate_times(markers: List[Dict]) -> List[Dict]:
    """Drop markers whose time was already seen, keeping the first."""
    seen = set()
    unique = []
    for marker in markers:
        if marker["time"] in seen:
            continue
        seen.add(marker["time"])
        unique.append(marker)
    return unique


class IndicatorPaneManager:
    def __init__(
        self,
        backend: RenderBackend,
        pane_index: int = INDICATOR_PANE_INDEX,
        pane_height: int = INDICATOR_PANE_HEIGHT,
    ):
        self._backend = backend
        self._registry = SeriesRegistry(backend)
        self._markers: Dict[str, MarkerHandle] = {}
        self._pane_index = pane_index
        self._pane_height = pane_height
        self._mode = "disabled"

    @property
    def enabled(self) -> bool:
        return self._mode != "disabled"

    @property
    def registry(self) -> SeriesRegistry:
        return self._registry

    def instrument_ids(self) -> List[str]:
        return [identity.instrument_id for identity in self._registry.keys()]

    def sync_series(
        self,
        mode: str,
        visible_ids: Iterable[str],
        styles: Optional[Dict[str, InstrumentStyle]] = None,
    ) -> None:
        """Create series for newly visible instruments and drop hidden ones."""
        self._mode = mode
        if not self.enabled:
            self.teardown()
            return

        visible = sorted(set(visible_ids or ()))
        styles = styles or {}

        for instrument_id in visible:
            identity = SeriesIdentity.indicator(instrument_id)
            if identity in self._registry:
                continue

            color = styles[instrument_id].color if instrument_id in styles else INDICATOR_DEFAULT_COLOR
            options = {"color": color, "opacity": 1.0, "line_width": INDICATOR_LINE_WEIGHT, "line_style": "solid"}
            handle = self._registry.upsert(
                identity,
                lambda: self._backend.create_series("line", options, self._pane_index),
                pane_index=self._pane_index,
                options=options,
            )
            self._markers[instrument_id] = self._backend.create_markers(handle, [])
            logger.debug("Created indicator series for %s", instrument_id)

        if visible:
            self._backend.pane(self._pane_index).set_height(self._pane_height)

        for identity in self._registry.keys():
            if identity.instrument_id not in visible:
                self._remove(identity)

    def teardown(self) -> None:
        """Remove every indicator series and its markers."""
        for identity in self._registry.keys():
            self._remove(identity)
        if self._markers:
            self._markers.clear()

    def update_data(self, frames_by_instrument: "Dict[str, pd.DataFrame]") -> None:
        """Give each indicator series a flat y=0 line over its instrument's timestamps."""
        if not self.enabled:
            return

        for entry in self._registry.entries():
            frame = frames_by_instrument.get(entry.identity.instrument_id)
            if frame is None or frame.empty:
                entry.handle.set_data([])
                continue

            timestamps = sorted(set(float(t) for t in frame["timestamp"]))
            entry.handle.set_data([{"time": t, "value": 0.0} for t in timestamps])
            self._backend.disable_autoscale()

    def update_markers(
        self,
        proximity_points: Sequence[ProximityIndicatorPoint],
        styles: Optional[Dict[str, InstrumentStyle]] = None,
    ) -> None:
        """Replace every instrument's markers with the timestamps its condition fired at."""
        if not self.enabled or not proximity_points:
            for marker_handle in self._markers.values():
                marker_handle.set_markers([])
            return

        styles = styles or {}
        fired: Dict[str, List[float]] = {}
        for point in proximity_points:
            for instrument_id, state in point.instrument_proximity.items():
                if state.proximity_value == 1 and state.triggered_levels:
                    fired.setdefault(instrument_id, []).append(point.timestamp)

        for instrument_id, marker_handle in self._markers.items():
            color = styles[instrument_id].color if instrument_id in styles else MARKER_DEFAULT_COLOR
            markers = [
                {
                    "time": timestamp,
                    "position": "aboveBar",
                    "color": color,
                    "shape": "circle",
                    "size": 2,
                    "text": "P",
                }
                for timestamp in fired.get(instrument_id, [])
            ]
            marker_handle.set_markers(collapse_duplicate_times(markers))

    def _remove(self, identity: SeriesIdentity) -> None:
        marker_handle = self._markers.pop(identity.instrument_id, None)
        if marker_handle is not None:
            try:
                marker_handle.set_markers([])
            except (SeriesDetachedError, RuntimeError) as e:
                logger.warning("Error clearing markers for %s: %s", identity.instrument_id, e)
        self._registry.remove(identity)
        logger.debug("Removed indicator series for %s", identity.instrument_id)
