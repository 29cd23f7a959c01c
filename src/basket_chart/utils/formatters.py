from __future__ import annotations

import math
from datetime import datetime, timezone

import numpy as np

DAY_SECONDS = 86400


def format_price(value: float, spacing: float = 0.0) -> str:
    """
    Format a price for axis labels.

    Args:
        value: Price value to format
        spacing: Distance between ticks; finer spacing shows more decimals

    Returns:
        Formatted price string (e.g., "1.08500"), or "" for non-finite values
    """
    if not np.isfinite(value):
        return ""

    if spacing and spacing > 0:
        decimals = max(0, min(8, int(math.ceil(round(-math.log10(spacing), 6)))))
    elif abs(value) >= 1000:
        decimals = 2
    else:
        decimals = 5
    return f"{value:,.{decimals}f}"


def format_timestamp(value: float, spacing: float = 0.0) -> str:
    """
    Format epoch seconds (UTC) for axis labels.

    Ticks a day or more apart show the date, intraday ticks show the time.
    """
    if not np.isfinite(value):
        return ""

    try:
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return ""

    if spacing >= DAY_SECONDS:
        return dt.strftime("%Y-%m-%d")
    if dt.hour == 0 and dt.minute == 0:
        return dt.strftime("%m-%d")
    return dt.strftime("%H:%M")


def format_percentage(value: float, decimals: int = 2) -> str:
    """
    Format a value as a percentage.

    Args:
        value: Value to format (e.g., 0.05 for 5%)
        decimals: Number of decimal places

    Returns:
        Formatted percentage string (e.g., "5.00%")
    """
    if not np.isfinite(value):
        return "N/A"
    return f"{value * 100:.{decimals}f}%"
