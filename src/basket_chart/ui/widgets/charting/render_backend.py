"""Render Backend - the chart-library surface the series managers draw through.

Series data rows are plain dicts keyed by "time" plus either "value" (line)
or "open"/"high"/"low"/"close" (candlestick, ohlc). Style options are plain
dicts as built by the series kinds. Markers are dicts with "time",
"position", "color", "shape", "size" and "text".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class SeriesDetachedError(RuntimeError):
    """Raised when a handle is no longer attached to the chart."""


class SeriesHandle(ABC):
    """A plotted series owned by the backend."""

    @abstractmethod
    def set_data(self, rows: List[Dict[str, Any]]) -> None:
        """Replace the series data wholesale."""

    @abstractmethod
    def apply_options(self, options: Dict[str, Any]) -> None:
        """Merge style options into the series."""


class MarkerHandle(ABC):
    """Markers attached to one series."""

    @abstractmethod
    def set_markers(self, markers: List[Dict[str, Any]]) -> None:
        """Replace the marker list wholesale."""


class PaneHandle(ABC):
    @abstractmethod
    def set_height(self, px: int) -> None:
        """Fix the pane height in pixels."""


class RenderBackend(ABC):
    """
    Chart collaborator used by the series managers.

    Setting data or options can make the chart library rescale its axes;
    callers invoke disable_autoscale() right after every such call.
    """

    @abstractmethod
    def create_series(self, kind: str, options: Dict[str, Any], pane_index: int = 0) -> SeriesHandle:
        """Create and attach a series of the given kind ("line", "candlestick", "ohlc")."""

    @abstractmethod
    def remove_series(self, handle: SeriesHandle) -> None:
        """
        Detach a series.

        Raises:
            SeriesDetachedError: handle is not attached to this chart
        """

    @abstractmethod
    def pane(self, index: int) -> PaneHandle:
        """Get a pane by index (0 = price pane)."""

    @abstractmethod
    def create_markers(self, handle: SeriesHandle, markers: List[Dict[str, Any]]) -> MarkerHandle:
        """Attach a marker set to a series."""

    @abstractmethod
    def disable_autoscale(self) -> None:
        """Turn off automatic axis rescaling on every pane."""
