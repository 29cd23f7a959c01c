"""Statistical Band Service - mean and sigma bands across a basket of instruments.

Two modes are supported:

- snapshot: every timestamp is independent. The mean and population
  standard deviation are taken over the closes of the instruments that
  have a bar at that exact timestamp.
- cumulative (rebased VWAP style): each timestamp contributes one group
  typical price, (H + L + C) / 3 averaged across instruments. The mean and
  population standard deviation are then taken over every group typical
  price accumulated so far, optionally starting at an anchor timestamp.

All methods are static and stateless. pandas is imported inside methods to
keep startup fast.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from basket_chart.core.config import BAND_NAMES
from basket_chart.core.models import (
    OHLCVPoint,
    TimestampRange,
    dedupe_frame,
    points_to_frame,
)
from basket_chart.services.statistical_band_settings_manager import StatisticalBandConfig

if TYPE_CHECKING:
    import pandas as pd

OFFSET_BANDS = [name for name in BAND_NAMES if name != "mean"]
BAND_SIGNS = ("pos", "neg")


@dataclass(frozen=True)
class BandPoint:
    """Band values at one timestamp.

    Attributes:
        timestamp: Bar timestamp
        mean: Snapshot mean or cumulative running mean
        deviation: Standard deviation the offsets were scaled from
        upper: mean + deviation * sigma, keyed by band name
        lower: mean - deviation * sigma, keyed by band name
    """

    timestamp: float
    mean: float
    deviation: float
    upper: Dict[str, float]
    lower: Dict[str, float]

    def value(self, band: str, sign: str = "pos") -> float:
        if band == "mean":
            return self.mean
        return self.upper[band] if sign == "pos" else self.lower[band]


class StatisticalBandService:
    """
    Band calculator.

    Usage:
        from basket_chart.services import StatisticalBandService

        points = StatisticalBandService.compute(data, {"A", "B"}, config)
    """

    @staticmethod
    def compute(
        points: "Iterable[OHLCVPoint] | pd.DataFrame",
        visible_instrument_ids: Iterable[str],
        config: StatisticalBandConfig,
        cumulative_anchor_fraction: Optional[float] = None,
        stable_timestamp_range: Optional[TimestampRange] = None,
    ) -> List[BandPoint]:
        """
        Compute band points for the visible instruments.

        Args:
            points: OHLCV points (or a DataFrame with the point columns)
            visible_instrument_ids: Only these instruments participate
            config: Resolved band configuration (mode and sigma multipliers)
            cumulative_anchor_fraction: 0..1 position of the rebase timestamp
                inside stable_timestamp_range (cumulative mode only)
            stable_timestamp_range: Range of the complete data set, not of the
                filtered points, so the anchor does not move as filtering changes

        Returns:
            Band points ordered by ascending timestamp; empty if there is
            nothing to compute
        """
        visible = set(visible_instrument_ids or ())
        if points is None or not visible:
            return []

        frame = points_to_frame(points)
        if frame.empty:
            return []

        frame = frame[frame["instrument_id"].isin(visible)]
        if frame.empty:
            return []
        frame = dedupe_frame(frame)

        if config.use_cumulative_mode:
            stats = StatisticalBandService._cumulative_stats(
                frame, cumulative_anchor_fraction, stable_timestamp_range
            )
        else:
            stats = StatisticalBandService._snapshot_stats(frame)

        return StatisticalBandService._to_band_points(stats, config)

    @staticmethod
    def rebase_timestamp(
        cumulative_anchor_fraction: Optional[float],
        stable_timestamp_range: Optional[TimestampRange],
    ) -> Optional[float]:
        """Timestamp accumulation starts from, or None when not rebased."""
        if stable_timestamp_range is None or cumulative_anchor_fraction is None:
            return None
        if cumulative_anchor_fraction <= 0:
            return None

        fraction = min(float(cumulative_anchor_fraction), 1.0)
        return stable_timestamp_range.at_fraction(fraction)

    @staticmethod
    def stable_range(points: "Iterable[OHLCVPoint] | pd.DataFrame") -> Optional[TimestampRange]:
        """Timestamp bounds over all points, regardless of visibility."""
        if points is None:
            return None

        frame = points_to_frame(points)
        if frame.empty:
            return None

        timestamps = frame["timestamp"].astype(float)
        return TimestampRange(float(timestamps.min()), float(timestamps.max()))

    @staticmethod
    def _snapshot_stats(frame: "pd.DataFrame") -> "pd.DataFrame":
        import pandas as pd

        closes = frame["close"].astype(float).groupby(frame["timestamp"], sort=True)
        stats = pd.DataFrame(
            {
                "mean": closes.mean(),
                # Population deviation; a single-member group is exactly 0
                "deviation": closes.std(ddof=0),
            }
        )
        stats["deviation"] = stats["deviation"].fillna(0.0)
        return stats

    @staticmethod
    def _cumulative_stats(
        frame: "pd.DataFrame",
        cumulative_anchor_fraction: Optional[float],
        stable_timestamp_range: Optional[TimestampRange],
    ) -> "pd.DataFrame":
        import pandas as pd

        typical = (
            frame["high"].astype(float) + frame["low"].astype(float) + frame["close"].astype(float)
        ) / 3.0
        group_typical = typical.groupby(frame["timestamp"], sort=True).mean()

        rebase = StatisticalBandService.rebase_timestamp(
            cumulative_anchor_fraction, stable_timestamp_range
        )
        if rebase is not None:
            group_typical = group_typical[group_typical.index >= rebase]

        if group_typical.empty:
            return pd.DataFrame({"mean": [], "deviation": []})

        window = group_typical.expanding(min_periods=1)
        deviation = window.std(ddof=0).fillna(0.0).clip(lower=0.0)
        deviation.iloc[0] = 0.0

        return pd.DataFrame({"mean": window.mean(), "deviation": deviation})

    @staticmethod
    def _to_band_points(stats: "pd.DataFrame", config: StatisticalBandConfig) -> List[BandPoint]:
        sigmas = {band: config.level(band).sigma_multiplier for band in OFFSET_BANDS}

        band_points = []
        for timestamp, mean, deviation in zip(stats.index, stats["mean"], stats["deviation"]):
            mean = float(mean)
            deviation = float(deviation)
            band_points.append(
                BandPoint(
                    timestamp=timestamp.item() if hasattr(timestamp, "item") else timestamp,
                    mean=mean,
                    deviation=deviation,
                    upper={band: mean + deviation * sigma for band, sigma in sigmas.items()},
                    lower={band: mean - deviation * sigma for band, sigma in sigmas.items()},
                )
            )
        return band_points
