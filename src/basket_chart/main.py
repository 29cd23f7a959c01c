from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from PySide6.QtWidgets import QApplication, QMainWindow

from basket_chart.core.config import APP_NAME, APP_VERSION, DEFAULT_WINDOW_HEIGHT, DEFAULT_WINDOW_WIDTH
from basket_chart.core.models import points_from_frame
from basket_chart.ui.modules.chart.chart_module import ChartModule
from basket_chart.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def load_csv(path: str):
    """Read OHLCV points from a CSV with instrument_id, timestamp, open, high, low, close[, volume]."""
    import pandas as pd

    return points_from_frame(pd.read_csv(path))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="basket-chart", description=APP_NAME)
    parser.add_argument("csv", nargs="?", help="CSV file of OHLCV points to load")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    app = QApplication(sys.argv[:1])
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)

    window = QMainWindow()
    window.setWindowTitle(APP_NAME)
    window.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

    module = ChartModule()
    window.setCentralWidget(module)

    if args.csv:
        try:
            points = load_csv(args.csv)
        except (OSError, ValueError) as e:
            logger.error("Could not load %s: %s", args.csv, e)
        else:
            logger.info("Loaded %d points from %s", len(points), args.csv)
            module.load_points(points)

    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
