"""Chart Controller - the single owner of chart state.

Every external input (new points, visibility changes, chart type, band and
proximity configuration, instrument styles) maps to one reaction method.
Reactions recompute what they affect and replace it wholesale, so there is
never a partially applied result left on the chart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Optional

from basket_chart.core.config import (
    DEFAULT_CHART_TYPE,
    DEFAULT_TIMEFRAME,
    EMPTY_NO_DATA,
    EMPTY_NO_INSTRUMENTS,
)
from basket_chart.core.models import (
    InstrumentStyle,
    OHLCVPoint,
    TimestampRange,
    points_to_frame,
    split_by_instrument,
)
from basket_chart.services.proximity_service import (
    ProximityIndicatorConfig,
    ProximityIndicatorPoint,
    ProximityService,
)
from basket_chart.services.statistical_band_service import BandPoint, StatisticalBandService
from basket_chart.services.statistical_band_settings_manager import (
    StatisticalBandConfig,
    StatisticalBandSettingsManager,
    default_config,
)
from basket_chart.ui.modules.chart.services.band_overlay_manager import BandOverlayManager
from basket_chart.ui.modules.chart.services.indicator_pane_manager import IndicatorPaneManager
from basket_chart.ui.modules.chart.services.series_registry import SeriesRegistry
from basket_chart.ui.modules.chart.services.visibility_controller import VisibilityController
from basket_chart.ui.widgets.charting.render_backend import RenderBackend
from basket_chart.utils.logger import get_logger

if TYPE_CHECKING:
    import pandas as pd

logger = get_logger(__name__)


class ChartController:
    """
    Coordinates band computation, series visibility and the indicator pane.

    Example:
        controller = ChartController(backend)
        controller.set_points(points)
        controller.set_visible_instruments({"EURUSD", "GBPUSD"})
    """

    def __init__(
        self,
        backend: RenderBackend,
        band_settings: Optional[StatisticalBandSettingsManager] = None,
        chart_type: str = DEFAULT_CHART_TYPE,
        band_config: Optional[StatisticalBandConfig] = None,
        proximity_config: Optional[ProximityIndicatorConfig] = None,
        styles: Optional[Dict[str, InstrumentStyle]] = None,
        timeframe: str = DEFAULT_TIMEFRAME,
    ):
        self._backend = backend
        self._band_settings = band_settings
        self._styles: Dict[str, InstrumentStyle] = dict(styles or {})
        self._timeframe = timeframe

        self._registry = SeriesRegistry(backend)
        self._visibility = VisibilityController(self._registry, backend, chart_type, self._styles)
        self._bands = BandOverlayManager(self._registry, backend)
        self._indicators = IndicatorPaneManager(backend)

        if band_config is None:
            band_config = band_settings.load() if band_settings is not None else default_config()
        self._band_config = band_config
        self._proximity_config = proximity_config or ProximityIndicatorConfig()

        self._frame = points_to_frame([])
        self._frames: "Dict[str, pd.DataFrame]" = {}
        self._stable_range: Optional[TimestampRange] = None
        self._visible: FrozenSet[str] = frozenset()
        self._anchor_fraction = 0.0

        self._band_points: List[BandPoint] = []
        self._proximity_points: List[ProximityIndicatorPoint] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def registry(self) -> SeriesRegistry:
        return self._registry

    @property
    def visibility(self) -> VisibilityController:
        return self._visibility

    @property
    def indicator_pane(self) -> IndicatorPaneManager:
        return self._indicators

    @property
    def chart_type(self) -> str:
        return self._visibility.chart_type

    @property
    def band_config(self) -> StatisticalBandConfig:
        return self._band_config

    @property
    def proximity_config(self) -> ProximityIndicatorConfig:
        return self._proximity_config

    @property
    def visible_instruments(self) -> FrozenSet[str]:
        return self._visible

    @property
    def instrument_ids(self) -> List[str]:
        return sorted(self._frames)

    @property
    def anchor_fraction(self) -> float:
        return self._anchor_fraction

    @property
    def stable_range(self) -> Optional[TimestampRange]:
        return self._stable_range

    @property
    def band_points(self) -> List[BandPoint]:
        return list(self._band_points)

    @property
    def proximity_points(self) -> List[ProximityIndicatorPoint]:
        return list(self._proximity_points)

    @property
    def timeframe(self) -> str:
        return self._timeframe

    @timeframe.setter
    def timeframe(self, value: str) -> None:
        self._timeframe = value

    def has_data(self) -> bool:
        return bool(self._frames)

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    def set_points(self, points: "Iterable[OHLCVPoint] | pd.DataFrame") -> None:
        """Replace the data set. The stable range covers every instrument, visible or not."""
        self._frame = points_to_frame(points if points is not None else [])
        self._frames = split_by_instrument(self._frame)
        self._stable_range = StatisticalBandService.stable_range(self._frame)
        logger.debug("Loaded %d rows for %d instruments", len(self._frame), len(self._frames))

        self._visibility.sync_data(self._frames, self._visible)
        self._refresh_bands()
        self._indicators.update_data(self._frames)
        self._refresh_proximity()

    def set_visible_instruments(self, instrument_ids: Iterable[str]) -> None:
        visible = frozenset(instrument_ids or ())
        if visible == self._visible:
            return
        self._visible = visible

        self._visibility.apply_visibility(self._visible)
        self._refresh_bands()
        self._sync_indicators()
        self._refresh_proximity()

    def set_chart_type(self, chart_type: str) -> bool:
        """Returns True when the series were rebuilt for a new chart type."""
        try:
            changed = self._visibility.set_chart_type(chart_type, self._frames, self._visible)
        except ValueError as e:
            logger.warning("Ignoring chart type change: %s", e)
            return False

        if changed:
            # The registry was cleared, band series included
            self._bands.render(self._band_points, self._band_config)
        return changed

    def set_band_config(self, config: StatisticalBandConfig, persist: bool = True) -> None:
        self._band_config = config
        if persist and self._band_settings is not None:
            self._band_settings.persist(config)

        self._refresh_bands()
        self._refresh_proximity()

    def set_anchor_fraction(self, fraction: float) -> None:
        """Move the cumulative rebase anchor (0..1 of the stable range)."""
        fraction = min(max(float(fraction), 0.0), 1.0)
        if fraction == self._anchor_fraction:
            return
        self._anchor_fraction = fraction

        if self._band_config.use_cumulative_mode:
            self._refresh_bands()
            self._refresh_proximity()

    def set_proximity_config(self, config: ProximityIndicatorConfig) -> None:
        self._proximity_config = config
        self._sync_indicators()
        self._refresh_proximity()

    def set_instrument_styles(self, styles: Dict[str, InstrumentStyle]) -> None:
        self._styles = dict(styles or {})
        self._visibility.set_instrument_styles(self._styles)
        self._indicators.update_markers(self._proximity_points, self._styles)

    def empty_state_message(self) -> Optional[str]:
        """Overlay text for the chart, or None when there is something to show."""
        if not self._visible:
            return EMPTY_NO_INSTRUMENTS
        if not any(instrument_id in self._frames for instrument_id in self._visible):
            return EMPTY_NO_DATA.format(timeframe=self._timeframe)
        return None

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------

    def _refresh_bands(self) -> None:
        if not self._band_config.enabled:
            self._band_points = []
        else:
            self._band_points = StatisticalBandService.compute(
                self._frame,
                self._visible,
                self._band_config,
                cumulative_anchor_fraction=self._anchor_fraction,
                stable_timestamp_range=self._stable_range,
            )
        self._bands.render(self._band_points, self._band_config)

    def _sync_indicators(self) -> None:
        self._indicators.sync_series(self._proximity_config.mode, self._visible, self._styles)
        self._indicators.update_data(self._frames)

    def _refresh_proximity(self) -> None:
        self._proximity_points = ProximityService.compute(
            self._frame,
            self._band_points,
            self._band_config,
            self._proximity_config,
            self._visible,
        )
        self._indicators.update_markers(self._proximity_points, self._styles)
