"""Depth market data from a CTP front: configuration, filtering and conversion."""

from __future__ import annotations

import configparser
import os
import re
import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from .marketdata import (
    MARKETDATA_TIME_OFFSET_THRESHOLD,
    SECS_ONE_DAY,
    TICK_COUNTER_MAX,
    FutureMarketData,
    second_count,
    secs_diff,
    ticks_diff,
)

_FRONT_MAX_LENGTH = 255
_NIGHT_SESSION_START = second_count(21, 0, 0)
_NIGHT_SESSION_END = second_count(24, 0, 0)


def _atoi(text: str) -> int:
    """Leading integer of ``text``, 0 if there is none."""
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _as_bool(value: str | None) -> bool:
    return value is not None and value.strip().lower() in {"1", "true", "yes", "on"}


def split_fronts(text: str, delim: str = ";") -> list[str]:
    """Split ``text`` at any character of ``delim``, keeping empty pieces."""
    if not delim:
        return [text]
    return re.split("[" + re.escape(delim) + "]", text)


def front_addresses(text: str) -> list[str]:
    """Turn a ``;``-separated list of ``host:port`` entries into ``tcp://`` addresses."""
    return [
        ("tcp://" + part)[:_FRONT_MAX_LENGTH]
        for part in split_fronts(text, ";")
        if part
    ]


def filter_instrument(instrument: str | None, filters: list[str]) -> bool:
    """Whether ``instrument`` is filtered out.

    A filter matches when the instrument starts with it and the character
    right after the filter text is a space. A missing instrument is always
    filtered out.
    """
    if instrument is None:
        return True
    for prefix in filters:
        if instrument.startswith(prefix) and instrument[len(prefix):len(prefix) + 1] == " ":
            return True
    return False


def time_str_to_seconds(text: str) -> int:
    """Seconds of day for ``HH:MM:SS``; an empty string gives one whole day."""
    if not text:
        return SECS_ONE_DAY
    return _atoi(text[0:2]) * 3600 + _atoi(text[3:5]) * 60 + _atoi(text[6:8])


def convert_date_time_str(date_str: str, time_str: str) -> tuple[int, int]:
    """Convert ``YYYYMMDD`` and ``HH:MM:SS`` into the integers ``YYYYMMDD`` and ``HHMMSS``."""
    day = _atoi(date_str[0:4]) * 10000 + _atoi(date_str[4:6]) * 100 + _atoi(date_str[6:8])
    clock = _atoi(time_str[0:2]) * 10000 + _atoi(time_str[3:5]) * 100 + _atoi(time_str[6:8])
    return day, clock


@dataclass
class CtpConfig:
    """Settings read from the ``[CTP]``, ``[CacheData]`` and ``[Filter]`` sections."""

    broker_id: str = ""
    md_front: str = ""
    trade_front: str = ""
    user_name: str = ""
    password: str = ""
    subscribe_all_quotes: bool = False
    subscriptions: list[str] = field(default_factory=list)
    symbol_filters: list[str] = field(default_factory=list)


def load_ctp_config(path: str | os.PathLike) -> CtpConfig:
    """Read CTP settings from an INI file.

    Raises FileNotFoundError if the file cannot be loaded.
    """
    parser = configparser.ConfigParser(
        delimiters=("=",), allow_no_value=True, interpolation=None, strict=False
    )
    parser.optionxform = str  # type: ignore[assignment]
    loaded = parser.read(Path(path), encoding="utf-8")
    if not loaded:
        raise FileNotFoundError(f"could not load config file '{path}'")

    config = CtpConfig()
    if parser.has_section("CTP"):
        section = parser["CTP"]
        config.broker_id = section.get("BrokerID") or ""
        config.md_front = section.get("MdFront") or ""
        config.trade_front = section.get("TradeFront") or ""
        config.user_name = section.get("UserName") or ""
        config.password = section.get("UserPwd") or ""
        config.subscribe_all_quotes = _as_bool(section.get("SubscribeAllQuotes"))

    if parser.has_section("CacheData"):
        for name in parser.options("CacheData"):
            if "," in name:
                config.subscriptions.append(name.split(",", 1)[0])

    if parser.has_section("Filter"):
        config.symbol_filters.extend(parser.options("Filter"))

    return config


def subscription_list(config: CtpConfig, instruments: dict[str, str]) -> list[str]:
    """Sorted instrument ids to subscribe: every known one, or the configured ones."""
    if config.subscribe_all_quotes:
        return sorted(instruments)
    return sorted(config.subscriptions)


@dataclass
class DepthMarketData:
    """Depth snapshot as delivered by the front; dates and times are strings."""

    instrument_id: str = ""
    exchange_id: str = ""
    trading_day: str = ""
    update_time: str = ""
    update_millisec: int = 0
    last_price: float = 0.0
    open_price: float = 0.0
    highest_price: float = 0.0
    lowest_price: float = 0.0
    close_price: float = 0.0
    upper_limit_price: float = 0.0
    lower_limit_price: float = 0.0
    volume: int = 0
    turnover: float = 0.0
    open_interest: float = 0.0
    bid_price1: float = 0.0
    bid_volume1: int = 0
    ask_price1: float = 0.0
    ask_volume1: int = 0


def to_future_market_data(
    depth: DepthMarketData, instruments: dict[str, str], local_trading_day: int
) -> FutureMarketData:
    """Convert a front snapshot into a :class:`FutureMarketData` record.

    Night-session ticks (21:00 to midnight) dated after the local trading
    day are moved back to it. A missing exchange is looked up in
    ``instruments``, which maps instrument id to exchange id.
    """
    trading_day, update_time = convert_date_time_str(depth.trading_day, depth.update_time)
    hours, rest = divmod(update_time, 10000)
    minutes, seconds = divmod(rest, 100)
    seconds_of_day = second_count(hours, minutes, seconds)
    if trading_day > local_trading_day and _NIGHT_SESSION_START <= seconds_of_day < _NIGHT_SESSION_END:
        trading_day = local_trading_day

    exchange = depth.exchange_id or instruments.get(depth.instrument_id, "")

    return FutureMarketData(
        instrument=depth.instrument_id,
        exchange=exchange,
        trading_day=trading_day,
        update_time=update_time,
        update_millisec=depth.update_millisec,
        last_price=depth.last_price,
        open_price=depth.open_price,
        highest_price=depth.highest_price,
        lowest_price=depth.lowest_price,
        close_price=depth.close_price,
        upper_limit_price=depth.upper_limit_price,
        lower_limit_price=depth.lower_limit_price,
        volume=depth.volume,
        turnover=depth.turnover,
        open_interest=depth.open_interest,
        bid_price1=depth.bid_price1,
        bid_volume1=depth.bid_volume1,
        ask_price1=depth.ask_price1,
        ask_volume1=depth.ask_volume1,
    )


def _tick_count() -> int:
    return int(time.monotonic() * 1000) & TICK_COUNTER_MAX


class TimestampChecker:
    """Rejects ticks whose time has drifted too far from the login clock.

    After :meth:`init_login` the elapsed time since login on the local tick
    counter is compared with the elapsed time in the tick's own timestamp.
    """

    def __init__(self) -> None:
        self.initialized = False
        self.login_time_secs = 0
        self.login_tick = 0
        self.local_trading_day = 0

    def init_login(self, login_time: str, tick_ms: int | None = None) -> None:
        """Record the login time reported by the front and the local tick count."""
        secs = time_str_to_seconds(login_time)
        self.login_tick = _tick_count() if tick_ms is None else tick_ms
        today = date.today()
        self.local_trading_day = today.year * 10000 + today.month * 100 + today.day
        if secs >= SECS_ONE_DAY:
            self.initialized = False
        else:
            self.login_time_secs = secs
            self.initialized = True

    def check(self, time_str: str, tick_ms: int | None = None) -> bool:
        """Whether a tick stamped ``time_str`` is plausible now."""
        if not self.initialized:
            return True
        secs = time_str_to_seconds(time_str)
        if secs >= SECS_ONE_DAY:
            return False
        tick = _tick_count() if tick_ms is None else tick_ms
        local_elapsed = ticks_diff(self.login_tick, tick) // 1000
        md_elapsed = secs_diff(self.login_time_secs, secs)

        # Ticks slightly behind the login time are accepted.
        if abs(SECS_ONE_DAY - md_elapsed) < MARKETDATA_TIME_OFFSET_THRESHOLD:
            return True

        return abs(local_elapsed - md_elapsed) < MARKETDATA_TIME_OFFSET_THRESHOLD