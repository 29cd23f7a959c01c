"""Shared data types for OHLCV points and instrument styling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from basket_chart.core.config import (
    DEFAULT_INSTRUMENT_COLOR,
    DEFAULT_LINE_STYLE,
    DEFAULT_LINE_WEIGHT,
)

if TYPE_CHECKING:
    import pandas as pd


POINT_COLUMNS = ["instrument_id", "timestamp", "open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class OHLCVPoint:
    """One bar of one instrument. Produced externally, read-only to the chart."""

    instrument_id: str
    timestamp: float
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None


@dataclass(frozen=True)
class TimestampRange:
    """Inclusive timestamp bounds of the complete (unfiltered) data set."""

    min_timestamp: float
    max_timestamp: float

    def at_fraction(self, fraction: float) -> float:
        return self.min_timestamp + (self.max_timestamp - self.min_timestamp) * fraction


@dataclass(frozen=True)
class InstrumentStyle:
    """Per-instrument appearance for primary series."""

    color: str = DEFAULT_INSTRUMENT_COLOR
    line_weight: float = DEFAULT_LINE_WEIGHT
    line_style: str = DEFAULT_LINE_STYLE


def style_for(styles: Optional[Dict[str, InstrumentStyle]], instrument_id: str) -> InstrumentStyle:
    """Look up an instrument's style, falling back to the defaults."""
    if styles and instrument_id in styles:
        return styles[instrument_id]
    return InstrumentStyle()


def points_to_frame(points: "Iterable[OHLCVPoint] | pd.DataFrame") -> "pd.DataFrame":
    """
    Convert points to a DataFrame with POINT_COLUMNS.

    DataFrames are passed through (copied) so callers can hand over either form.
    """
    import pandas as pd

    if isinstance(points, pd.DataFrame):
        frame = points.copy()
        if "volume" not in frame.columns:
            frame["volume"] = None
        return frame[POINT_COLUMNS]

    rows = [
        (p.instrument_id, p.timestamp, p.open, p.high, p.low, p.close, p.volume)
        for p in points
    ]
    return pd.DataFrame(rows, columns=POINT_COLUMNS)


def points_from_frame(df: "pd.DataFrame") -> List[OHLCVPoint]:
    """Convert a DataFrame (e.g. read from CSV) into OHLCVPoint objects."""
    if df is None or df.empty:
        return []

    required = {"instrument_id", "timestamp", "open", "high", "low", "close"}
    missing = required - set(df.columns)
    if missing:
        raise ValueError(f"Missing OHLCV columns: {sorted(missing)}. Columns: {list(df.columns)}")

    has_volume = "volume" in df.columns
    points = []
    for row in df.itertuples(index=False):
        volume = getattr(row, "volume") if has_volume else None
        points.append(
            OHLCVPoint(
                instrument_id=str(row.instrument_id),
                timestamp=float(row.timestamp),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=None if volume is None or volume != volume else float(volume),
            )
        )
    return points


def dedupe_frame(frame: "pd.DataFrame") -> "pd.DataFrame":
    """Collapse repeated (instrument, timestamp) rows, keeping the last one."""
    if frame.empty:
        return frame
    return frame.drop_duplicates(subset=["instrument_id", "timestamp"], keep="last")


def split_by_instrument(frame: "pd.DataFrame") -> "Dict[str, pd.DataFrame]":
    """Group rows per instrument, deduplicated and sorted by timestamp."""
    if frame is None or frame.empty:
        return {}

    deduped = dedupe_frame(frame)
    return {
        str(instrument_id): group.sort_values("timestamp").reset_index(drop=True)
        for instrument_id, group in deduped.groupby("instrument_id", sort=False)
    }
