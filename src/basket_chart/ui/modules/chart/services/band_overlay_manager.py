from __future__ import annotations

from typing import Any, Dict, List, Sequence

from basket_chart.core.config import BAND_NAMES, PRICE_PANE_INDEX
from basket_chart.services.statistical_band_service import BAND_SIGNS, BandPoint
from basket_chart.services.statistical_band_settings_manager import (
    BandLevelConfig,
    StatisticalBandConfig,
)
from basket_chart.ui.modules.chart.services.series_registry import SeriesIdentity, SeriesRegistry
from basket_chart.ui.widgets.charting.render_backend import RenderBackend

BAND_ROLE_PREFIX = "band:"


def band_options(level: BandLevelConfig) -> Dict[str, Any]:
    return {
        "color": level.color,
        "opacity": level.opacity,
        "line_width": level.line_weight,
        "line_style": level.line_style,
    }


def band_signs(band: str) -> Sequence[str]:
    """The mean is a single line; every other band has an upper and lower line."""
    return ("pos",) if band == "mean" else BAND_SIGNS


class BandOverlayManager:
    """
    Draws band points as line series in the price pane.

    Series are reused between recomputes: only their data is replaced, and
    they are restyled only when the level's appearance changed.
    """

    def __init__(self, registry: SeriesRegistry, backend: RenderBackend, pane_index: int = PRICE_PANE_INDEX):
        self._registry = registry
        self._backend = backend
        self._pane_index = pane_index

    def render(self, band_points: Sequence[BandPoint], config: StatisticalBandConfig) -> None:
        if not config.enabled or not band_points:
            self.clear()
            return

        wanted = set()
        for band in BAND_NAMES:
            level = config.level(band)
            if not level.enabled:
                continue

            options = band_options(level)
            for sign in band_signs(band):
                identity = SeriesIdentity.band(band, sign)
                wanted.add(identity)
                handle = self._ensure_series(identity, options)
                handle.set_data(
                    [{"time": bp.timestamp, "value": bp.value(band, sign)} for bp in band_points]
                )
                self._backend.disable_autoscale()

        for identity in self.band_identities():
            if identity not in wanted:
                self._registry.remove(identity)

    def clear(self) -> None:
        for identity in self.band_identities():
            self._registry.remove(identity)

    def band_identities(self) -> List[SeriesIdentity]:
        return [identity for identity in self._registry.keys() if identity.role.startswith(BAND_ROLE_PREFIX)]

    def _ensure_series(self, identity: SeriesIdentity, options: Dict[str, Any]):
        entry = self._registry.get(identity)
        if entry is None:
            handle = self._registry.upsert(
                identity,
                lambda: self._backend.create_series("line", options, self._pane_index),
                pane_index=self._pane_index,
                options=options,
            )
            self._backend.disable_autoscale()
            return handle

        if entry.options != options:
            entry.handle.apply_options(options)
            self._backend.disable_autoscale()
            self._registry.set_options(identity, options)
        return entry.handle
