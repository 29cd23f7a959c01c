"""Proximity Service - detects instruments trading at or through band levels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Sequence, Tuple

from basket_chart.core.config import (
    DEFAULT_PROXIMITY_MODE,
    DEFAULT_PROXIMITY_THRESHOLD_PERCENT,
    PROXIMITY_MODES,
)
from basket_chart.core.models import OHLCVPoint, points_to_frame, split_by_instrument
from basket_chart.services.statistical_band_service import BAND_SIGNS, OFFSET_BANDS, BandPoint
from basket_chart.services.statistical_band_settings_manager import StatisticalBandConfig

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class ProximityIndicatorConfig:
    """mode is one of PROXIMITY_MODES; "disabled" turns the indicator pane off."""

    mode: str = DEFAULT_PROXIMITY_MODE
    threshold_percent: float = DEFAULT_PROXIMITY_THRESHOLD_PERCENT

    @property
    def enabled(self) -> bool:
        return self.mode != "disabled"

    @classmethod
    def from_settings(cls, settings: Dict) -> "ProximityIndicatorConfig":
        mode = settings.get("mode", DEFAULT_PROXIMITY_MODE)
        if mode not in PROXIMITY_MODES:
            mode = DEFAULT_PROXIMITY_MODE
        threshold = settings.get("threshold_percent", DEFAULT_PROXIMITY_THRESHOLD_PERCENT)
        return cls(mode=mode, threshold_percent=float(threshold))


@dataclass(frozen=True)
class ProximityState:
    proximity_value: int
    triggered_levels: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProximityIndicatorPoint:
    timestamp: float
    instrument_proximity: Dict[str, ProximityState] = field(default_factory=dict)


def level_label(band: str, sign: str) -> str:
    return band if sign == "pos" else f"{band}_neg"


class ProximityService:
    """Computes per-instrument proximity conditions against computed bands."""

    @staticmethod
    def compute(
        points: "Iterable[OHLCVPoint] | pd.DataFrame",
        band_points: Sequence[BandPoint],
        band_config: StatisticalBandConfig,
        config: ProximityIndicatorConfig,
        visible_instrument_ids: Iterable[str],
    ) -> List[ProximityIndicatorPoint]:
        """
        Evaluate the proximity condition for every visible instrument.

        "touch" fires when an instrument's close lies within threshold_percent
        of an enabled band level. "cross" fires when the close moved through a
        level between the instrument's previous bar and the current one.

        Returns:
            One point per band timestamp, each holding the state of every
            visible instrument with a bar at that timestamp
        """
        if not config.enabled or not band_points:
            return []

        visible = set(visible_instrument_ids or ())
        levels = [
            (band, sign)
            for band in OFFSET_BANDS
            if band_config.level(band).enabled
            for sign in BAND_SIGNS
        ]
        if not visible or not levels:
            return []

        frames = split_by_instrument(points_to_frame(points))
        bands_by_time = {bp.timestamp: bp for bp in band_points}

        states: Dict[float, Dict[str, ProximityState]] = {}
        for instrument_id, frame in frames.items():
            if instrument_id not in visible:
                continue

            previous = None
            for timestamp, close in zip(frame["timestamp"], frame["close"].astype(float)):
                band_point = bands_by_time.get(timestamp)
                if band_point is None:
                    previous = None
                    continue

                if config.mode == "cross":
                    triggered = ProximityService._crossed(previous, close, band_point, levels)
                else:
                    triggered = ProximityService._touched(close, band_point, levels, config.threshold_percent)

                states.setdefault(band_point.timestamp, {})[instrument_id] = ProximityState(
                    proximity_value=1 if triggered else 0,
                    triggered_levels=tuple(triggered),
                )
                previous = (close, band_point)

        return [
            ProximityIndicatorPoint(timestamp=bp.timestamp, instrument_proximity=states[bp.timestamp])
            for bp in band_points
            if bp.timestamp in states
        ]

    @staticmethod
    def _touched(close: float, band_point: BandPoint, levels, threshold_percent: float) -> List[str]:
        triggered = []
        for band, sign in levels:
            level = band_point.value(band, sign)
            tolerance = abs(level) * threshold_percent / 100.0
            if abs(close - level) <= tolerance:
                triggered.append(level_label(band, sign))
        return triggered

    @staticmethod
    def _crossed(previous, close: float, band_point: BandPoint, levels) -> List[str]:
        if previous is None:
            return []

        prev_close, prev_band_point = previous
        triggered = []
        for band, sign in levels:
            before = prev_close - prev_band_point.value(band, sign)
            after = close - band_point.value(band, sign)
            if (before < 0 <= after) or (before > 0 >= after):
                triggered.append(level_label(band, sign))
        return triggered
