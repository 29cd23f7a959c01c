from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from basket_chart.core.config import BASKET_INSTRUMENT_ID
from basket_chart.ui.widgets.charting.render_backend import (
    RenderBackend,
    SeriesDetachedError,
    SeriesHandle,
)
from basket_chart.utils.logger import get_logger

logger = get_logger(__name__)

VISIBLE = "visible"
TRANSPARENT = "transparent"


@dataclass(frozen=True)
class SeriesIdentity:
    """Logical identity of a plotted series, independent of its render handle."""

    instrument_id: str
    role: str

    @classmethod
    def primary(cls, instrument_id: str) -> "SeriesIdentity":
        return cls(instrument_id, "primary")

    @classmethod
    def band(cls, band: str, sign: str) -> "SeriesIdentity":
        return cls(BASKET_INSTRUMENT_ID, f"band:{band}:{sign}")

    @classmethod
    def indicator(cls, instrument_id: str) -> "SeriesIdentity":
        return cls(instrument_id, "indicator")

    @property
    def key(self) -> str:
        return f"{self.instrument_id}|{self.role}"


@dataclass
class SeriesRegistryEntry:
    identity: SeriesIdentity
    handle: SeriesHandle
    style_state: str = VISIBLE
    pane_index: int = 0
    options: Dict[str, Any] = field(default_factory=dict)


class SeriesRegistry:
    """
    Single source of truth for what is currently plotted.

    Maps series identity to the backend handle. upsert() is idempotent and
    remove() never raises, so repeated or late calls are harmless.
    """

    def __init__(self, backend: RenderBackend):
        self._backend = backend
        self._entries: Dict[SeriesIdentity, SeriesRegistryEntry] = {}

    def upsert(
        self,
        identity: SeriesIdentity,
        factory: Callable[[], SeriesHandle],
        style_state: str = VISIBLE,
        pane_index: int = 0,
        options: Optional[Dict[str, Any]] = None,
    ) -> SeriesHandle:
        """Return the existing handle, or create one with factory() and store it."""
        entry = self._entries.get(identity)
        if entry is not None:
            return entry.handle

        handle = factory()
        self._entries[identity] = SeriesRegistryEntry(
            identity=identity,
            handle=handle,
            style_state=style_state,
            pane_index=pane_index,
            options=dict(options or {}),
        )
        logger.debug("Created series %s", identity.key)
        return handle

    def remove(self, identity: SeriesIdentity) -> bool:
        """Detach and forget a series. Returns False if it was not registered."""
        entry = self._entries.pop(identity, None)
        if entry is None:
            return False

        try:
            self._backend.remove_series(entry.handle)
            logger.debug("Removed series %s", identity.key)
        except (SeriesDetachedError, RuntimeError) as e:
            logger.warning("Series %s was already detached: %s", identity.key, e)
        return True

    def clear(self) -> None:
        """Remove every entry (chart-type transitions only)."""
        for identity in list(self._entries):
            self.remove(identity)

    def get(self, identity: SeriesIdentity) -> Optional[SeriesRegistryEntry]:
        return self._entries.get(identity)

    def set_style_state(self, identity: SeriesIdentity, style_state: str) -> None:
        self._entries[identity].style_state = style_state

    def set_options(self, identity: SeriesIdentity, options: Dict[str, Any]) -> None:
        self._entries[identity].options = dict(options)

    def keys(self) -> List[SeriesIdentity]:
        return list(self._entries)

    def entries(self) -> List[SeriesRegistryEntry]:
        return list(self._entries.values())

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SeriesIdentity]:
        return iter(list(self._entries))
