from __future__ import annotations

from pathlib import Path

"""
Central configuration for the Basket Chart application.
All application-wide constants and settings should be defined here.
"""

# Application metadata
APP_NAME = "Basket Chart"
APP_VERSION = "0.1.0"

# Window settings
DEFAULT_WINDOW_WIDTH = 1400
DEFAULT_WINDOW_HEIGHT = 900

# Chart settings
CHART_TYPES = ["line", "candlestick", "ohlc"]
DEFAULT_CHART_TYPE = "line"
DEFAULT_TIMEFRAME = "M5"
CANDLE_BAR_WIDTH = 0.6

# Instrument styling fallbacks
DEFAULT_INSTRUMENT_COLOR = "#2962ff"
DEFAULT_LINE_WEIGHT = 2
DEFAULT_LINE_STYLE = "solid"

# Auto-assigned instrument colors, cycled in load order
INSTRUMENT_COLORS = [
    "#0096ff",  # Blue
    "#ff9600",  # Orange
    "#9600ff",  # Purple
    "#ffc800",  # Yellow
    "#00ff96",  # Cyan
    "#ff0096",  # Magenta
]

# Panes
PRICE_PANE_INDEX = 0
INDICATOR_PANE_INDEX = 1
INDICATOR_PANE_HEIGHT = 40  # px
INDICATOR_LINE_WEIGHT = 1
INDICATOR_DEFAULT_COLOR = "#333333"
MARKER_DEFAULT_COLOR = "#ffffff"

# Statistical bands
BAND_NAMES = ["mean", "band1", "band2", "band3", "band4"]
LINE_STYLES = ["solid", "dotted", "dashed", "longdash", "dashdot"]

# Reserved instrument id for series computed across the whole basket
BASKET_INSTRUMENT_ID = "__basket__"

# Proximity indicator
PROXIMITY_MODES = ["disabled", "touch", "cross"]
DEFAULT_PROXIMITY_MODE = "disabled"
DEFAULT_PROXIMITY_THRESHOLD_PERCENT = 0.5

# Persistence
STORAGE_DIR = Path.home() / ".basket_chart"
STORAGE_KEY_PREFIX = "BC_"

# UI timing
RECOMPUTE_DEBOUNCE_MS = 50

# Chart background / grid (dark)
CHART_BACKGROUND_COLOR = (0, 0, 0)
CHART_GRID_ALPHA = 0.3
CHART_TEXT_COLOR = "#ffffff"

# Empty-state messages
EMPTY_NO_INSTRUMENTS = "No instruments in chart list. Add instruments to see chart data."
EMPTY_NO_DATA = "No data available for {timeframe} timeframe"

# Logging
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
