"""Basket Chart - multi-instrument price chart with statistical bands."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from basket_chart.core.models import InstrumentStyle
from basket_chart.services.proximity_service import ProximityIndicatorConfig
from basket_chart.services.statistical_band_settings_manager import (
    StatisticalBandConfig,
    StatisticalBandSettingsManager,
)
from basket_chart.ui.modules.chart.services.chart_controller import ChartController
from basket_chart.ui.widgets.charting.base_chart import BaseChart
from basket_chart.ui.widgets.charting.pyqtgraph_backend import PyQtGraphBackend


class BasketChart(BaseChart):
    """
    Chart widget wrapping a ChartController on a PyQtGraphBackend.

    The view is fitted once, on the first non-empty data load. After that the
    zoom belongs to the user and only fit_content() changes it.
    """

    def __init__(
        self,
        band_settings: Optional[StatisticalBandSettingsManager] = None,
        chart_type: Optional[str] = None,
        proximity_config: Optional[ProximityIndicatorConfig] = None,
        parent=None,
    ):
        super().__init__(parent=parent)

        self.backend = PyQtGraphBackend(self)
        self.plot_item = self.backend.plot(0)
        self.view_box = self.plot_item.getViewBox()
        self._install_overlays()

        kwargs = {}
        if chart_type:
            kwargs["chart_type"] = chart_type
        self.controller = ChartController(
            self.backend,
            band_settings=band_settings,
            proximity_config=proximity_config,
            **kwargs,
        )
        self._has_initialized_view = False
        self._refresh_message()

    def set_points(self, points) -> None:
        self.controller.set_points(points)
        if not self._has_initialized_view and self.controller.has_data():
            self.fit_content()
            self._has_initialized_view = True
        self._refresh_message()

    def set_visible_instruments(self, instrument_ids: Iterable[str]) -> None:
        self.controller.set_visible_instruments(instrument_ids)
        self._refresh_message()

    def set_chart_type(self, chart_type: str) -> bool:
        return self.controller.set_chart_type(chart_type)

    def set_band_config(self, config: StatisticalBandConfig) -> None:
        self.controller.set_band_config(config)

    def set_anchor_fraction(self, fraction: float) -> None:
        self.controller.set_anchor_fraction(fraction)

    def set_proximity_config(self, config: ProximityIndicatorConfig) -> None:
        self.controller.set_proximity_config(config)

    def set_instrument_styles(self, styles: Dict[str, InstrumentStyle]) -> None:
        self.controller.set_instrument_styles(styles)

    def set_timeframe(self, timeframe: str) -> None:
        self.controller.timeframe = timeframe
        self._refresh_message()

    def fit_content(self) -> None:
        self.backend.fit_content()

    def _refresh_message(self) -> None:
        self.show_message(self.controller.empty_state_message())
