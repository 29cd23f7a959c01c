from .series_registry import SeriesIdentity, SeriesRegistry
from .visibility_controller import VisibilityController
from .band_overlay_manager import BandOverlayManager
from .indicator_pane_manager import IndicatorPaneManager
from .chart_controller import ChartController

__all__ = [
    "SeriesIdentity",
    "SeriesRegistry",
    "VisibilityController",
    "BandOverlayManager",
    "IndicatorPaneManager",
    "ChartController",
]
