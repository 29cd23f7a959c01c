from basket_chart.utils.formatters import format_percentage, format_price, format_timestamp


def test_format_price_follows_tick_spacing() -> None:
    assert format_price(1.08512, 0.0001) == "1.0851"
    assert format_price(1234.4, 10) == "1,234"
    assert format_price(float("nan")) == ""


def test_format_timestamp_date_and_time() -> None:
    # 2024-01-02 13:45 UTC
    ts = 1704203100.0

    assert format_timestamp(ts, 86400) == "2024-01-02"
    assert format_timestamp(ts, 3600) == "13:45"
    assert format_timestamp(1704153600.0, 3600) == "01-02"
    assert format_timestamp(float("inf")) == ""


def test_format_percentage() -> None:
    assert format_percentage(0.5, decimals=0) == "50%"
    assert format_percentage(float("nan")) == "N/A"
