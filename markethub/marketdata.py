"""Futures market data record and time arithmetic shared by adaptors."""

from __future__ import annotations

import sys
from dataclasses import dataclass

CTP_ADAPTOR_NAME = "CTP"
DEFAULT_FLOW_PATH = "./CtpFlowFiles/"

SECS_ONE_DAY = 24 * 3600
MARKETDATA_TIME_OFFSET_THRESHOLD = 5 * 60
TICK_COUNTER_MAX = 0xFFFFFFFF

#: Marks a price the exchange has not filled in.
UNSET_PRICE = sys.float_info.max


def second_count(h: int, m: int, s: int) -> int:
    """Seconds since midnight of ``h:m:s``."""
    return h * 3600 + m * 60 + s


def secs_diff(prev: int, cur: int) -> int:
    """Seconds from ``prev`` to ``cur``, wrapping past midnight."""
    return cur - prev if cur >= prev else (SECS_ONE_DAY - prev) + cur


def ticks_diff(prev: int, cur: int) -> int:
    """Milliseconds from ``prev`` to ``cur`` on a 32-bit tick counter that wraps."""
    return cur - prev if cur >= prev else (TICK_COUNTER_MAX - prev) + cur


@dataclass
class FutureMarketData:
    """One depth snapshot of a futures instrument.

    ``trading_day`` is ``YYYYMMDD`` and ``update_time`` is ``HHMMSS``.
    """

    instrument: str = ""
    exchange: str = ""
    trading_day: int = 0
    update_time: int = 0
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

    def prices(self) -> dict[str, float]:
        """Price fields by name, in a fixed order."""
        return {
            "open_price": self.open_price,
            "highest_price": self.highest_price,
            "lowest_price": self.lowest_price,
            "upper_limit_price": self.upper_limit_price,
            "lower_limit_price": self.lower_limit_price,
            "last_price": self.last_price,
            "close_price": self.close_price,
            "bid_price1": self.bid_price1,
            "ask_price1": self.ask_price1,
        }