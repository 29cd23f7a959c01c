from dataclasses import replace

from basket_chart.core.config import (
    EMPTY_NO_INSTRUMENTS,
    INDICATOR_PANE_INDEX,
    PRICE_PANE_INDEX,
)
from basket_chart.services.proximity_service import ProximityIndicatorConfig
from basket_chart.services.statistical_band_settings_manager import (
    StatisticalBandSettingsManager,
    default_config,
)
from basket_chart.ui.modules.chart.services.chart_controller import ChartController
from basket_chart.ui.modules.chart.services.series_registry import SeriesIdentity

from conftest import make_point


def _bands_on():
    return replace(default_config(), enabled=True)


def test_empty_state_messages(backend, basket_points) -> None:
    controller = ChartController(backend, timeframe="H1")

    assert controller.empty_state_message() == EMPTY_NO_INSTRUMENTS

    controller.set_visible_instruments({"A"})
    assert controller.empty_state_message() == "No data available for H1 timeframe"

    controller.set_points(basket_points)
    assert controller.empty_state_message() is None


def test_points_then_visibility_renders_primary_and_bands(backend, basket_points) -> None:
    controller = ChartController(backend, band_config=_bands_on())

    controller.set_points(basket_points)
    controller.set_visible_instruments({"A", "B"})

    assert SeriesIdentity.primary("A") in controller.registry
    assert SeriesIdentity.band("band1", "pos") in controller.registry
    assert [bp.mean for bp in controller.band_points] == [11.0, 11.0, 11.0]


def test_hiding_an_instrument_recomputes_bands_without_recreating_it(backend, basket_points) -> None:
    controller = ChartController(backend, band_config=_bands_on())
    controller.set_points(basket_points)
    controller.set_visible_instruments({"A", "B"})
    handle = controller.registry.get(SeriesIdentity.primary("B")).handle
    backend.reset_calls()

    controller.set_visible_instruments({"A"})

    assert controller.registry.get(SeriesIdentity.primary("B")).handle is handle
    assert backend.count("create_series") == 0
    assert backend.count("remove_series") == 0
    assert [bp.mean for bp in controller.band_points] == [10.0, 10.0, 10.0]


def test_chart_type_change_keeps_bands_and_indicators(backend, basket_points) -> None:
    controller = ChartController(
        backend,
        band_config=_bands_on(),
        proximity_config=ProximityIndicatorConfig(mode="touch"),
    )
    controller.set_points(basket_points)
    controller.set_visible_instruments({"A", "B"})
    indicator_handles = [s for s in backend.series_in_pane(INDICATOR_PANE_INDEX)]

    assert controller.set_chart_type("ohlc") is True

    assert controller.chart_type == "ohlc"
    assert SeriesIdentity.band("mean", "pos") in controller.registry
    assert backend.series_in_pane(INDICATOR_PANE_INDEX) == indicator_handles
    primaries = [s for s in backend.series_in_pane(PRICE_PANE_INDEX) if s.kind == "ohlc"]
    assert len(primaries) == 2


def test_chart_type_change_recreates_each_band_series_once(backend, basket_points) -> None:
    controller = ChartController(backend, band_config=_bands_on())
    controller.set_points(basket_points)
    controller.set_visible_instruments({"A", "B"})
    controller.set_visible_instruments({"B"})
    band_ids = [identity for identity in controller.registry.keys() if identity.role.startswith("band:")]
    old_count = len(controller.registry.entries())
    backend.reset_calls()

    assert controller.set_chart_type("candlestick") is True

    created = [call[1] for call in backend.calls if call[0] == "create_series"]
    band_created = [series for series in created if series.kind == "line"]
    assert len(band_ids) == 9
    assert len(band_created) == len(band_ids)
    assert backend.count("remove_series") == old_count
    assert sorted(controller.registry.keys(), key=str) == sorted(
        [SeriesIdentity.primary("A"), SeriesIdentity.primary("B"), *band_ids], key=str
    )
    assert controller.visibility.style_state("A") == "transparent"
    assert controller.visibility.style_state("B") == "visible"


def test_unknown_chart_type_is_ignored(backend, basket_points) -> None:
    controller = ChartController(backend)
    controller.set_points(basket_points)

    assert controller.set_chart_type("renko") is False
    assert controller.chart_type == "line"


def test_band_config_is_persisted(storage, backend, basket_points) -> None:
    settings = StatisticalBandSettingsManager(storage)
    controller = ChartController(backend, band_settings=settings)
    controller.set_points(basket_points)
    controller.set_visible_instruments({"A", "B"})

    controller.set_band_config(_bands_on())

    assert settings.load().enabled is True
    assert len(controller.band_points) == 3

    controller.set_band_config(default_config())
    assert controller.band_points == []
    assert not any(identity.role.startswith("band:") for identity in controller.registry)


def test_anchor_fraction_uses_full_data_range(backend) -> None:
    points = [
        make_point("A", 0, 10.0),
        make_point("A", 50, 20.0),
        make_point("A", 100, 30.0),
        make_point("B", 200, 5.0),
    ]
    config = replace(default_config(), enabled=True, use_cumulative_mode=True)
    controller = ChartController(backend, band_config=config)
    controller.set_points(points)
    controller.set_visible_instruments({"A"})

    controller.set_anchor_fraction(0.5)

    # Stable range is [0, 200] even though B is hidden, so the anchor sits at 100
    assert [bp.timestamp for bp in controller.band_points] == [100]


def test_proximity_mode_drives_indicator_pane(backend, basket_points) -> None:
    controller = ChartController(backend, band_config=_bands_on())
    controller.set_points(basket_points)
    controller.set_visible_instruments({"A", "B"})
    assert backend.series_in_pane(INDICATOR_PANE_INDEX) == []

    controller.set_proximity_config(ProximityIndicatorConfig(mode="touch", threshold_percent=0.1))

    assert len(backend.series_in_pane(INDICATOR_PANE_INDEX)) == 2
    assert len(controller.proximity_points) == 3
    assert all(len(m.markers) == 3 for m in backend.markers)

    controller.set_proximity_config(ProximityIndicatorConfig(mode="disabled"))
    assert backend.series_in_pane(INDICATOR_PANE_INDEX) == []
