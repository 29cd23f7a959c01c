from basket_chart.core.config import INDICATOR_PANE_HEIGHT, INDICATOR_PANE_INDEX
from basket_chart.core.models import InstrumentStyle, points_to_frame, split_by_instrument
from basket_chart.services.proximity_service import ProximityIndicatorPoint, ProximityState
from basket_chart.ui.modules.chart.services.indicator_pane_manager import (
    IndicatorPaneManager,
    collapse_duplicate_times,
)


def _fired(timestamp, *instrument_ids):
    return ProximityIndicatorPoint(
        timestamp=timestamp,
        instrument_proximity={i: ProximityState(1, ("band1",)) for i in instrument_ids},
    )


def test_sync_creates_one_series_per_visible_instrument(backend) -> None:
    manager = IndicatorPaneManager(backend)

    manager.sync_series("touch", {"A", "B"}, {"A": InstrumentStyle(color="#ff0000")})

    assert sorted(manager.instrument_ids()) == ["A", "B"]
    series = backend.series_in_pane(INDICATOR_PANE_INDEX)
    assert len(series) == 2
    colors = sorted(s.options["color"] for s in series)
    assert colors == ["#333333", "#ff0000"]
    assert backend.pane_heights[INDICATOR_PANE_INDEX] == INDICATOR_PANE_HEIGHT
    assert len(backend.markers) == 2


def test_sync_is_incremental(backend) -> None:
    manager = IndicatorPaneManager(backend)
    manager.sync_series("touch", {"A", "B"})
    backend.reset_calls()

    manager.sync_series("touch", {"A"})

    assert manager.instrument_ids() == ["A"]
    assert backend.count("create_series") == 0
    assert backend.count("remove_series") == 1
    # markers of the hidden instrument are cleared before its series goes
    names = [call[0] for call in backend.calls]
    assert names.index("set_markers") < names.index("remove_series")


def test_disabled_mode_tears_everything_down(backend) -> None:
    manager = IndicatorPaneManager(backend)
    manager.sync_series("cross", {"A", "B"})

    manager.sync_series("disabled", {"A", "B"})

    assert manager.instrument_ids() == []
    assert backend.series_in_pane(INDICATOR_PANE_INDEX) == []
    assert manager.enabled is False


def test_update_data_sets_flat_series(backend, basket_points) -> None:
    manager = IndicatorPaneManager(backend)
    manager.sync_series("touch", {"A"})

    manager.update_data(split_by_instrument(points_to_frame(basket_points)))

    (series,) = backend.series_in_pane(INDICATOR_PANE_INDEX)
    assert series.rows == [
        {"time": 100.0, "value": 0.0},
        {"time": 200.0, "value": 0.0},
        {"time": 300.0, "value": 0.0},
    ]


def test_update_markers_places_fired_timestamps(backend) -> None:
    manager = IndicatorPaneManager(backend)
    manager.sync_series("touch", {"A", "B"}, {"A": InstrumentStyle(color="#ff0000")})

    manager.update_markers([_fired(100, "A"), _fired(200, "A", "B")], {"A": InstrumentStyle(color="#ff0000")})

    by_instrument = {m.series.options["color"]: m.markers for m in backend.markers}
    a_markers = by_instrument["#ff0000"]
    assert [m["time"] for m in a_markers] == [100, 200]
    assert all(m["shape"] == "circle" and m["position"] == "aboveBar" and m["text"] == "P" for m in a_markers)
    assert a_markers[0]["color"] == "#ff0000"
    b_markers = by_instrument["#333333"]
    assert [m["time"] for m in b_markers] == [200]
    assert b_markers[0]["color"] == "#ffffff"


def test_states_without_triggered_levels_do_not_mark(backend) -> None:
    manager = IndicatorPaneManager(backend)
    manager.sync_series("touch", {"A"})

    manager.update_markers(
        [ProximityIndicatorPoint(100, {"A": ProximityState(1, ())}), ProximityIndicatorPoint(200, {"A": ProximityState(0, ())})]
    )

    assert backend.markers[0].markers == []


def test_duplicate_marker_times_keep_first() -> None:
    markers = [{"time": 1, "text": "first"}, {"time": 2}, {"time": 1, "text": "second"}]

    assert collapse_duplicate_times(markers) == [{"time": 1, "text": "first"}, {"time": 2}]


def test_duplicate_proximity_points_collapse(backend) -> None:
    manager = IndicatorPaneManager(backend)
    manager.sync_series("touch", {"A"})

    manager.update_markers([_fired(100, "A"), _fired(100, "A")])

    assert [m["time"] for m in backend.markers[0].markers] == [100]


def test_update_data_clears_series_whose_data_is_gone(backend, basket_points) -> None:
    manager = IndicatorPaneManager(backend)
    manager.sync_series("touch", {"A", "B"})
    manager.update_data(split_by_instrument(points_to_frame(basket_points)))

    only_a = [point for point in basket_points if point.instrument_id == "A"]
    manager.update_data(split_by_instrument(points_to_frame(only_a)))

    rows = {entry.identity.instrument_id: entry.handle.rows for entry in manager.registry.entries()}
    assert len(rows["A"]) == 3
    assert rows["B"] == []
