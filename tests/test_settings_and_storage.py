from basket_chart.core.config import DEFAULT_CHART_TYPE, DEFAULT_LINE_WEIGHT
from basket_chart.services.chart_settings_manager import ChartSettingsManager
from basket_chart.services.json_storage import JsonStorage


def test_storage_round_trips_json(storage) -> None:
    storage.set_item("thing", {"a": [1, 2]})

    assert storage.get_item("thing") == {"a": [1, 2]}
    assert storage.path_for("thing").name == "BC_thing.json"


def test_storage_missing_and_corrupt_items_are_none(storage) -> None:
    assert storage.get_item("missing") is None

    path = storage.path_for("broken")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("[1, 2")
    assert storage.get_item("broken") is None


def test_storage_remove_item(storage) -> None:
    storage.set_item("thing", 1)
    storage.remove_item("thing")
    storage.remove_item("thing")

    assert storage.get_item("thing") is None


def test_storage_write_errors_are_not_raised(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("")
    storage = JsonStorage(directory=blocker / "sub")

    storage.set_item("thing", {"a": 1})

    assert storage.get_item("thing") is None


def test_chart_settings_defaults_and_persistence(storage) -> None:
    manager = ChartSettingsManager(storage)
    assert manager.get_chart_type() == DEFAULT_CHART_TYPE
    assert manager.get_proximity_settings() == {"mode": "disabled", "threshold_percent": 0.5}

    manager.update_settings({"chart_type": "candlestick", "proximity_mode": "cross"})

    reloaded = ChartSettingsManager(storage)
    assert reloaded.get_chart_type() == "candlestick"
    assert reloaded.get_proximity_settings()["mode"] == "cross"
    assert reloaded.has_custom_setting("chart_type") is True


def test_chart_settings_drop_invalid_values(storage) -> None:
    storage.set_item(
        "chart_settings",
        {"chart_type": "renko", "anchor_percent": 250, "proximity_mode": "near", "unknown": 1},
    )

    manager = ChartSettingsManager(storage)

    assert manager.get_chart_type() == DEFAULT_CHART_TYPE
    assert manager.get_setting("anchor_percent") == 100
    assert manager.get_setting("proximity_mode") == "disabled"
    assert manager.get_setting("unknown") is None


def test_chart_settings_reset(storage) -> None:
    manager = ChartSettingsManager(storage)
    manager.update_settings({"chart_type": "ohlc"})

    manager.reset_to_defaults()

    assert ChartSettingsManager(storage).get_chart_type() == DEFAULT_CHART_TYPE


def test_chart_settings_drop_non_finite_numbers(storage) -> None:
    storage.set_item(
        "chart_settings",
        {
            "anchor_percent": float("inf"),
            "default_line_weight": float("nan"),
            "proximity_threshold_percent": 10 ** 400,
            "chart_type": "ohlc",
        },
    )

    manager = ChartSettingsManager(storage)

    assert manager.get_setting("anchor_percent") == 0
    assert manager.get_default_line_weight() == DEFAULT_LINE_WEIGHT
    assert manager.get_proximity_settings()["threshold_percent"] == 0.5
    assert manager.get_chart_type() == "ohlc"


def test_chart_settings_nan_anchor_is_dropped(storage) -> None:
    storage.set_item("chart_settings", {"anchor_percent": float("nan"), "default_line_weight": 3})

    manager = ChartSettingsManager(storage)

    assert manager.get_setting("anchor_percent") == 0
    assert manager.get_default_line_weight() == 3
