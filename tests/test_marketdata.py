import pytest

from markethub.marketdata import (
    SECS_ONE_DAY,
    TICK_COUNTER_MAX,
    FutureMarketData,
    second_count,
    secs_diff,
    ticks_diff,
)


def test_second_count_full_day():
    assert second_count(24, 0, 0) == SECS_ONE_DAY
    assert second_count(0, 0, 0) == 0


def test_second_count_orders_times():
    assert second_count(21, 0, 0) < second_count(21, 0, 1) < second_count(21, 1, 0)


def test_secs_diff_forward():
    assert secs_diff(100, 160) == 60


@pytest.mark.parametrize("a,b", [(0, 1), (100, 86000), (86399, 5)])
def test_secs_diff_wraps_around_day(a, b):
    assert secs_diff(a, b) + secs_diff(b, a) == SECS_ONE_DAY


def test_ticks_diff_forward_and_wrap():
    assert ticks_diff(1000, 1500) == 500
    assert ticks_diff(TICK_COUNTER_MAX - 5, 4) == 9


def test_prices_reflects_fields():
    data = FutureMarketData(instrument="rb2405", open_price=1.5, bid_price1=2.5, ask_price1=3.5)
    prices = data.prices()
    assert prices["open_price"] == 1.5
    assert prices["bid_price1"] == 2.5
    assert prices["ask_price1"] == 3.5
    assert "volume" not in prices


def test_default_record_is_empty():
    data = FutureMarketData()
    assert data.instrument == ""
    assert all(value == 0.0 for value in data.prices().values())