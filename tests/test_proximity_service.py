from dataclasses import replace

from basket_chart.services.proximity_service import (
    ProximityIndicatorConfig,
    ProximityService,
    level_label,
)
from basket_chart.services.statistical_band_service import StatisticalBandService
from basket_chart.services.statistical_band_settings_manager import default_config

from conftest import make_point


def _bands(points, visible, config):
    return StatisticalBandService.compute(points, visible, config)


def test_touch_fires_at_band_levels(basket_points) -> None:
    # A and B sit exactly on the 1 sigma lines (mean 11, sigma 1)
    config = replace(default_config(), enabled=True)
    bands = _bands(basket_points, {"A", "B"}, config)

    result = ProximityService.compute(
        basket_points, bands, config, ProximityIndicatorConfig(mode="touch", threshold_percent=0.1), {"A", "B"}
    )

    assert [p.timestamp for p in result] == [100, 200, 300]
    state_a = result[0].instrument_proximity["A"]
    state_b = result[0].instrument_proximity["B"]
    assert state_a.proximity_value == 1
    assert state_a.triggered_levels == ("band1_neg",)
    assert state_b.triggered_levels == ("band1",)


def test_touch_respects_threshold_and_disabled_levels(basket_points) -> None:
    config = replace(default_config(), enabled=True).with_level("band1", enabled=False)
    bands = _bands(basket_points, {"A", "B"}, config)

    result = ProximityService.compute(
        basket_points, bands, config, ProximityIndicatorConfig(mode="touch", threshold_percent=0.1), {"A", "B"}
    )

    assert all(state.proximity_value == 0 for p in result for state in p.instrument_proximity.values())


def test_cross_fires_when_close_moves_through_a_level() -> None:
    points = [
        make_point("A", 100, 10.0),
        make_point("B", 100, 12.0),
        make_point("A", 200, 13.0),
        make_point("B", 200, 12.0),
    ]
    config = replace(default_config(), enabled=True)
    bands = _bands(points, {"A", "B"}, config)

    result = ProximityService.compute(points, bands, config, ProximityIndicatorConfig(mode="cross"), {"A", "B"})

    first, second = result
    assert first.instrument_proximity["A"].proximity_value == 0
    # A went from the lower 1 sigma line to above the upper one
    assert second.instrument_proximity["A"].proximity_value == 1
    assert "band1" in second.instrument_proximity["A"].triggered_levels


def test_disabled_mode_returns_nothing(basket_points) -> None:
    config = replace(default_config(), enabled=True)
    bands = _bands(basket_points, {"A", "B"}, config)

    assert ProximityService.compute(basket_points, bands, config, ProximityIndicatorConfig(), {"A", "B"}) == []
    assert ProximityService.compute(basket_points, [], config, ProximityIndicatorConfig(mode="touch"), {"A"}) == []


def test_config_from_settings_falls_back_on_unknown_mode() -> None:
    config = ProximityIndicatorConfig.from_settings({"mode": "sideways", "threshold_percent": 2})

    assert config.mode == "disabled"
    assert config.enabled is False
    assert config.threshold_percent == 2.0


def test_level_label() -> None:
    assert level_label("band3", "pos") == "band3"
    assert level_label("band3", "neg") == "band3_neg"
