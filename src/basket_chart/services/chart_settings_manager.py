from __future__ import annotations

import math
from typing import Any, Dict

from basket_chart.core.config import (
    CHART_TYPES,
    DEFAULT_CHART_TYPE,
    DEFAULT_LINE_WEIGHT,
    DEFAULT_PROXIMITY_MODE,
    DEFAULT_PROXIMITY_THRESHOLD_PERCENT,
    DEFAULT_TIMEFRAME,
    PROXIMITY_MODES,
)
from basket_chart.services.base_settings_manager import BaseSettingsManager


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


class ChartSettingsManager(BaseSettingsManager):
    """
    Manages chart preferences with persistent storage.
    Settings are saved on every change and loaded on startup.
    """

    NUMERIC_KEYS = ("anchor_percent", "default_line_weight", "proximity_threshold_percent")

    @property
    def DEFAULT_SETTINGS(self) -> Dict[str, Any]:
        return {
            # Chart type ("line", "candlestick" or "ohlc")
            "chart_type": DEFAULT_CHART_TYPE,

            # Timeframe label shown in the empty state
            "timeframe": DEFAULT_TIMEFRAME,

            # Line width for instruments without their own weight
            "default_line_weight": DEFAULT_LINE_WEIGHT,

            # Cumulative band anchor, 0..100 (slider units)
            "anchor_percent": 0,

            # Proximity indicator pane
            "proximity_mode": DEFAULT_PROXIMITY_MODE,
            "proximity_threshold_percent": DEFAULT_PROXIMITY_THRESHOLD_PERCENT,
        }

    @property
    def settings_key(self) -> str:
        return "chart_settings"

    def _deserialize_settings(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Drop values that would not be usable at runtime."""
        deserialized = {}

        for key, value in super()._deserialize_settings(data).items():
            if key == "chart_type" and value not in CHART_TYPES:
                continue
            if key == "proximity_mode" and value not in PROXIMITY_MODES:
                continue
            if key in self.NUMERIC_KEYS and not _is_finite_number(value):
                continue
            if key == "anchor_percent":
                value = min(max(int(value), 0), 100)
            if key in ("default_line_weight", "proximity_threshold_percent") and value < 0:
                continue
            deserialized[key] = value

        return deserialized

    def get_chart_type(self) -> str:
        return self._settings.get("chart_type", DEFAULT_CHART_TYPE)

    def get_default_line_weight(self) -> float:
        return self._settings.get("default_line_weight", DEFAULT_LINE_WEIGHT)

    def get_proximity_settings(self) -> Dict[str, Any]:
        """Get proximity indicator settings."""
        return {
            "mode": self._settings.get("proximity_mode", DEFAULT_PROXIMITY_MODE),
            "threshold_percent": self._settings.get(
                "proximity_threshold_percent", DEFAULT_PROXIMITY_THRESHOLD_PERCENT
            ),
        }
