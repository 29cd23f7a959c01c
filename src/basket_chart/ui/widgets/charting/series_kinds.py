"""Series Kinds - per chart type styling and data shaping for primary series.

One kind is selected per chart type. Each kind knows how to build the
options for a visible series, the options that make it fully transparent,
and the data rows it expects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List

from basket_chart.core.models import InstrumentStyle

if TYPE_CHECKING:
    import pandas as pd

TRANSPARENT_COLOR = "#00000000"


class SeriesKind(ABC):
    name: str = ""

    @abstractmethod
    def visible_options(self, style: InstrumentStyle) -> Dict[str, Any]:
        """Options for a series drawn in the instrument's style."""

    @abstractmethod
    def transparent_options(self) -> Dict[str, Any]:
        """Options that leave the series attached but draw nothing."""

    @abstractmethod
    def to_rows(self, frame: "pd.DataFrame") -> List[Dict[str, Any]]:
        """Series data for one instrument's deduplicated, sorted rows."""

    def options_for(self, style: InstrumentStyle, visible: bool) -> Dict[str, Any]:
        return self.visible_options(style) if visible else self.transparent_options()


class LineKind(SeriesKind):
    name = "line"

    def visible_options(self, style: InstrumentStyle) -> Dict[str, Any]:
        return {
            "color": style.color,
            "opacity": 1.0,
            "line_width": style.line_weight,
            "line_style": style.line_style,
        }

    def transparent_options(self) -> Dict[str, Any]:
        # Width 0 as well, so no hairline stroke is left behind
        return {"color": TRANSPARENT_COLOR, "opacity": 0.0, "line_width": 0}

    def to_rows(self, frame: "pd.DataFrame") -> List[Dict[str, Any]]:
        return [
            {"time": float(t), "value": float(c)}
            for t, c in zip(frame["timestamp"], frame["close"])
        ]


class CandlestickKind(SeriesKind):
    name = "candlestick"

    def visible_options(self, style: InstrumentStyle) -> Dict[str, Any]:
        # Instruments are told apart by color, so up and down share it
        return {
            "up_color": style.color,
            "down_color": style.color,
            "wick_color": style.color,
            "opacity": 1.0,
        }

    def transparent_options(self) -> Dict[str, Any]:
        return {
            "up_color": TRANSPARENT_COLOR,
            "down_color": TRANSPARENT_COLOR,
            "wick_color": TRANSPARENT_COLOR,
            "opacity": 0.0,
        }

    def to_rows(self, frame: "pd.DataFrame") -> List[Dict[str, Any]]:
        return [
            {"time": float(t), "open": float(o), "high": float(h), "low": float(lo), "close": float(c)}
            for t, o, h, lo, c in zip(
                frame["timestamp"], frame["open"], frame["high"], frame["low"], frame["close"]
            )
        ]


class OHLCKind(CandlestickKind):
    name = "ohlc"

    def visible_options(self, style: InstrumentStyle) -> Dict[str, Any]:
        return {"up_color": style.color, "down_color": style.color, "opacity": 1.0}

    def transparent_options(self) -> Dict[str, Any]:
        return {"up_color": TRANSPARENT_COLOR, "down_color": TRANSPARENT_COLOR, "opacity": 0.0}


SERIES_KINDS: Dict[str, SeriesKind] = {
    kind.name: kind for kind in (LineKind(), CandlestickKind(), OHLCKind())
}


def get_series_kind(chart_type: str) -> SeriesKind:
    """
    Raises:
        ValueError: unknown chart type
    """
    try:
        return SERIES_KINDS[chart_type]
    except KeyError:
        raise ValueError(f"Unknown chart type: {chart_type!r}") from None
