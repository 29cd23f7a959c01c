from __future__ import annotations

from basket_chart.services.json_storage import JsonStorage
from basket_chart.services.chart_settings_manager import ChartSettingsManager
from basket_chart.services.statistical_band_settings_manager import (
    StatisticalBandConfig,
    StatisticalBandSettingsManager,
)
from basket_chart.services.statistical_band_service import BandPoint, StatisticalBandService
from basket_chart.services.proximity_service import ProximityIndicatorConfig, ProximityService

__all__ = [
    "JsonStorage",
    "ChartSettingsManager",
    "StatisticalBandConfig",
    "StatisticalBandSettingsManager",
    "BandPoint",
    "StatisticalBandService",
    "ProximityIndicatorConfig",
    "ProximityService",
]
