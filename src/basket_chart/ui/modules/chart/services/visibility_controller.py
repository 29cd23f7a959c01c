"""Visibility Controller - keeps primary price series alive across visibility toggles.

Per instrument the series is in one of three states: absent, visible or
transparent. Hiding an instrument restyles its series to be fully
transparent instead of removing it, since removing and recreating series
makes the chart rescale and lose the user's zoom.

The data path (sync_data) and the visibility path (apply_visibility) are
independent: a data refresh never touches style, and a visibility toggle
never touches data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, Optional

from basket_chart.core.config import DEFAULT_CHART_TYPE, PRICE_PANE_INDEX
from basket_chart.core.models import InstrumentStyle, style_for
from basket_chart.ui.modules.chart.services.series_registry import (
    TRANSPARENT,
    VISIBLE,
    SeriesIdentity,
    SeriesRegistry,
)
from basket_chart.ui.widgets.charting.render_backend import RenderBackend
from basket_chart.ui.widgets.charting.series_kinds import SeriesKind, get_series_kind
from basket_chart.utils.logger import get_logger

if TYPE_CHECKING:
    import pandas as pd

logger = get_logger(__name__)

PRIMARY_ROLE = "primary"


class VisibilityController:
    def __init__(
        self,
        registry: SeriesRegistry,
        backend: RenderBackend,
        chart_type: str = DEFAULT_CHART_TYPE,
        styles: Optional[Dict[str, InstrumentStyle]] = None,
        pane_index: int = PRICE_PANE_INDEX,
    ):
        self._registry = registry
        self._backend = backend
        self._kind: SeriesKind = get_series_kind(chart_type)
        self._styles: Dict[str, InstrumentStyle] = dict(styles or {})
        self._pane_index = pane_index

    @property
    def chart_type(self) -> str:
        return self._kind.name

    @property
    def kind(self) -> SeriesKind:
        return self._kind

    def style_state(self, instrument_id: str) -> Optional[str]:
        """VISIBLE, TRANSPARENT, or None when the instrument has no series."""
        entry = self._registry.get(SeriesIdentity.primary(instrument_id))
        return entry.style_state if entry is not None else None

    def sync_data(self, frames_by_instrument: "Dict[str, pd.DataFrame]", visible_ids: Iterable[str]) -> None:
        """
        Push fresh data to every instrument's series.

        New instruments get a series styled from their current membership in
        visible_ids; existing series keep whatever style they have. Series of
        instruments whose data disappeared are removed.
        """
        visible = frozenset(visible_ids or ())
        present = set()

        for instrument_id, frame in frames_by_instrument.items():
            rows = self._kind.to_rows(frame)
            if not rows:
                continue
            present.add(instrument_id)

            identity = SeriesIdentity.primary(instrument_id)
            entry = self._registry.get(identity)
            if entry is None:
                handle = self._create(identity, instrument_id in visible)
            else:
                handle = entry.handle

            handle.set_data(rows)
            self._backend.disable_autoscale()

        for identity in self._registry.keys():
            if identity.role == PRIMARY_ROLE and identity.instrument_id not in present:
                self._registry.remove(identity)

    def apply_visibility(self, visible_ids: Iterable[str]) -> None:
        """Restyle series whose membership changed. Never creates, removes or re-sets data."""
        visible = frozenset(visible_ids or ())

        for entry in self._registry.entries():
            if entry.identity.role != PRIMARY_ROLE:
                continue

            is_visible = entry.identity.instrument_id in visible
            desired = VISIBLE if is_visible else TRANSPARENT
            if entry.style_state == desired:
                continue

            options = self._kind.options_for(self._style(entry.identity.instrument_id), is_visible)
            entry.handle.apply_options(options)
            self._backend.disable_autoscale()
            self._registry.set_style_state(entry.identity, desired)
            self._registry.set_options(entry.identity, options)

    def set_chart_type(
        self,
        chart_type: str,
        frames_by_instrument: "Dict[str, pd.DataFrame]",
        visible_ids: Iterable[str],
    ) -> bool:
        """
        Switch series kind: clear the whole registry once and rebuild.

        Returns False (and does nothing) when the chart type is unchanged.

        Raises:
            ValueError: unknown chart type
        """
        if chart_type == self._kind.name:
            return False

        kind = get_series_kind(chart_type)
        logger.info("Chart type %s -> %s, rebuilding series", self._kind.name, kind.name)
        self._registry.clear()
        self._kind = kind
        self.sync_data(frames_by_instrument, visible_ids)
        return True

    def set_instrument_styles(self, styles: Dict[str, InstrumentStyle]) -> None:
        """Replace instrument styles; visible series pick up changes immediately."""
        self._styles = dict(styles or {})

        for entry in self._registry.entries():
            if entry.identity.role != PRIMARY_ROLE or entry.style_state != VISIBLE:
                continue

            options = self._kind.visible_options(self._style(entry.identity.instrument_id))
            if options == entry.options:
                continue
            entry.handle.apply_options(options)
            self._backend.disable_autoscale()
            self._registry.set_options(entry.identity, options)

    def _style(self, instrument_id: str) -> InstrumentStyle:
        return style_for(self._styles, instrument_id)

    def _create(self, identity: SeriesIdentity, is_visible: bool):
        options = self._kind.options_for(self._style(identity.instrument_id), is_visible)
        handle = self._registry.upsert(
            identity,
            lambda: self._backend.create_series(self._kind.name, options, self._pane_index),
            style_state=VISIBLE if is_visible else TRANSPARENT,
            pane_index=self._pane_index,
            options=options,
        )
        self._backend.disable_autoscale()
        return handle
