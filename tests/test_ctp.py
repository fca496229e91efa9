import pytest

from markethub.ctp import (
    CtpConfig,
    DepthMarketData,
    TimestampChecker,
    convert_date_time_str,
    filter_instrument,
    front_addresses,
    load_ctp_config,
    split_fronts,
    subscription_list,
    time_str_to_seconds,
    to_future_market_data,
)
from markethub.marketdata import SECS_ONE_DAY, second_count


def test_split_fronts_keeps_trailing_empty_piece():
    assert split_fronts("a;b;", ";") == ["a", "b", ""]


def test_split_fronts_any_delimiter_character():
    assert split_fronts("a;b,c", ";,") == ["a", "b", "c"]


def test_split_fronts_empty_text():
    assert split_fronts("", ";") == [""]


def test_front_addresses_skips_empty_entries():
    assert front_addresses("127.0.0.1:41213;;10.0.0.1:41213;") == [
        "tcp://127.0.0.1:41213",
        "tcp://10.0.0.1:41213",
    ]


def test_front_addresses_truncated():
    addresses = front_addresses("h" * 400)
    assert len(addresses[0]) == 255
    assert addresses[0].startswith("tcp://")


def test_filter_instrument_none_is_filtered():
    assert filter_instrument(None, []) is True


def test_filter_instrument_needs_space_after_prefix():
    assert filter_instrument("IF 1501", ["IF"]) is True
    assert filter_instrument("IF1501", ["IF"]) is False
    assert filter_instrument("rb1505", ["IF"]) is False


def test_time_str_to_seconds_example():
    assert time_str_to_seconds("09:47:04") == second_count(9, 47, 4)


def test_time_str_to_seconds_empty_is_whole_day():
    assert time_str_to_seconds("") == SECS_ONE_DAY


def test_convert_date_time_str_example():
    assert convert_date_time_str("20140828", "09:47:04") == (20140828, 94704)


def test_load_ctp_config(tmp_path):
    path = tmp_path / "MarketHub.ini"
    path.write_text(
        "[CTP]\n"
        "BrokerID = 9999\n"
        "MdFront = 127.0.0.1:41213;10.0.0.1:41213\n"
        "TradeFront = 127.0.0.1:41205\n"
        "UserName = someone\n"
        "UserPwd = password\n"
        "SubscribeAllQuotes = true\n"
        "[CacheData]\n"
        "rb1505,SHFE\n"
        "IF1501,CFFEX\n"
        "nocomma\n"
        "[Filter]\n"
        "IO\n",
        encoding="utf-8",
    )
    config = load_ctp_config(path)
    assert config.broker_id == "9999"
    assert config.md_front == "127.0.0.1:41213;10.0.0.1:41213"
    assert config.trade_front == "127.0.0.1:41205"
    assert config.user_name == "someone"
    assert config.password == "password"
    assert config.subscribe_all_quotes is True
    assert config.subscriptions == ["rb1505", "IF1501"]
    assert config.symbol_filters == ["IO"]


def test_load_ctp_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_ctp_config(tmp_path / "absent.ini")


def test_subscription_list_all_quotes_sorted():
    config = CtpConfig(subscribe_all_quotes=True, subscriptions=["x"])
    instruments = {"rb1505": "SHFE", "IF1501": "CFFEX"}
    assert subscription_list(config, instruments) == ["IF1501", "rb1505"]


def test_subscription_list_configured_sorted():
    config = CtpConfig(subscriptions=["rb1505", "IF1501"])
    assert subscription_list(config, {"cu1503": "SHFE"}) == ["IF1501", "rb1505"]


def test_to_future_market_data_night_session_moves_day_back():
    depth = DepthMarketData(
        instrument_id="rb1505", trading_day="20240102", update_time="21:30:00",
        update_millisec=500, last_price=3500.0, volume=10,
    )
    data = to_future_market_data(depth, {"rb1505": "SHFE"}, 20240101)
    assert data.trading_day == 20240101
    assert data.update_time == 213000
    assert data.update_millisec == 500
    assert data.exchange == "SHFE"
    assert data.last_price == 3500.0
    assert data.volume == 10


def test_to_future_market_data_day_session_keeps_day():
    depth = DepthMarketData(
        instrument_id="rb1505", exchange_id="DCE",
        trading_day="20240102", update_time="10:00:00",
    )
    data = to_future_market_data(depth, {"rb1505": "SHFE"}, 20240101)
    assert data.trading_day == 20240102
    assert data.exchange == "DCE"


def test_to_future_market_data_unknown_exchange():
    depth = DepthMarketData(instrument_id="zz", trading_day="20240102", update_time="10:00:00")
    assert to_future_market_data(depth, {}, 20240102).exchange == ""


def test_checker_uninitialised_accepts_everything():
    checker = TimestampChecker()
    assert checker.check("", tick_ms=0) is True


def test_checker_empty_login_time_stays_uninitialised():
    checker = TimestampChecker()
    checker.init_login("", tick_ms=0)
    assert checker.initialized is False
    assert checker.check("23:00:00", tick_ms=0) is True


def test_checker_accepts_close_and_rejects_drift():
    checker = TimestampChecker()
    checker.init_login("09:00:00", tick_ms=1000)
    assert checker.initialized is True
    assert checker.check("09:00:10", tick_ms=11000) is True
    assert checker.check("09:20:00", tick_ms=11000) is False
    assert checker.check("", tick_ms=11000) is False


def test_checker_accepts_tick_slightly_behind_login():
    checker = TimestampChecker()
    checker.init_login("09:00:00", tick_ms=0)
    assert checker.check("08:58:00", tick_ms=3_600_000) is True


def test_checker_handles_tick_counter_wrap():
    checker = TimestampChecker()
    checker.init_login("09:00:00", tick_ms=0xFFFFFFFF - 2000)
    assert checker.check("09:00:05", tick_ms=3000) is True