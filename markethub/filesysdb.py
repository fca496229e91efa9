"""Sink adaptor that appends futures ticks to per-instrument CSV files."""

from __future__ import annotations

import calendar
import os
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO

from .marketdata import UNSET_PRICE, FutureMarketData

MARKETDATA_FLUSH_THRESHOLD = 200
MARKETDATA_CSV_HEADER = (
    "date,time,millisec,open,high,low,upperlimit,lowerlimit,last,bid,ask,"
    "bidvolume,askvolume,volume,turnover,openint"
)
_SUB_PATH_MAX = 63


def convert_str_num(num: float, reserved: int = 0) -> str | None:
    """Format ``num`` with eight decimals, then drop trailing zeros and a bare dot.

    Returns None for the unset-price marker.
    """
    if num == UNSET_PRICE:
        return None
    text = f"{num:.8f}"
    dot = text.find(".")
    if dot < 0:
        return text
    stop = dot + reserved + 1
    end = len(text)
    while end >= stop:
        end -= 1
        char = text[end]
        if char == ".":
            text = text[:end]
            break
        if char == "0":
            text = text[:end]
        else:
            break
    return text


def convert_date_time(date: int, time: int) -> int:
    """Epoch seconds of ``YYYYMMDD`` and ``HHMMSS``, read as UTC.

    Raises ValueError for an impossible date.
    """
    year, rest = divmod(date, 10000)
    month, day = divmod(rest, 100)
    hour, rest = divmod(time, 10000)
    minute, second = divmod(rest, 100)
    datetime(year, month, day, hour, minute, second)
    return calendar.timegm((year, month, day, hour, minute, second, 0, 0, 0))


def format_market_data(data: FutureMarketData) -> str | None:
    """One CSV line, ending in CRLF, for ``data``; None if a price is unset."""
    prices = (
        data.open_price,
        data.highest_price,
        data.lowest_price,
        data.upper_limit_price,
        data.lower_limit_price,
        data.last_price,
        data.bid_price1,
        data.ask_price1,
        data.open_interest,
        data.turnover,
    )
    if any(price == UNSET_PRICE for price in prices):
        return None
    hour, rest = divmod(data.update_time, 10000)
    minute, second = divmod(rest, 100)
    fields = [
        str(data.trading_day),
        f"{hour:02d}:{minute:02d}:{second:02d}",
        str(data.update_millisec),
        *(convert_str_num(price) for price in prices[:8]),
        str(data.bid_volume1),
        str(data.ask_volume1),
        str(data.volume),
        convert_str_num(data.turnover),
        convert_str_num(data.open_interest),
    ]
    return ",".join(fields) + "\r\n"


@dataclass
class _TargetFile:
    path: str
    handle: BinaryIO
    last_modified: int


def _symbol_of(instrument: str) -> str:
    symbol = ""
    for char in instrument:
        if char.isdigit() or len(symbol) >= _SUB_PATH_MAX:
            break
        symbol += char
    return symbol


class FileSysDb:
    """Buffers incoming ticks and writes them to ``TICK/<exchange>/<symbol>/<instrument>``.

    Ticks are written once more than :data:`MARKETDATA_FLUSH_THRESHOLD` are
    queued, and on :meth:`flush` or :meth:`on_stop`. A tick is skipped if
    the file already existed and was modified after the tick's time.
    """

    name = "FileSysDB"

    def __init__(
        self,
        data_path: str | os.PathLike = "./Data",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.data_path = os.fspath(data_path)
        self._clock = clock if clock is not None else datetime.now
        self._queue: deque[FutureMarketData] = deque()
        self._files: dict[str, _TargetFile] = {}
        self._lock = threading.RLock()
        self.total_market_data = 0

    def on_market_data(self, data: FutureMarketData) -> bool:
        """Queue a tick, writing the queue out once it passes the threshold."""
        with self._lock:
            self._queue.append(data)
            self.total_market_data += 1
            if len(self._queue) > MARKETDATA_FLUSH_THRESHOLD:
                self.flush()
        return True

    def flush(self) -> None:
        """Write every queued tick."""
        with self._lock:
            while self._queue:
                self.save_market_data(self._queue.popleft())

    def _target_path(self, data: FutureMarketData, key: str) -> str:
        symbol = _symbol_of(data.instrument)
        if self.data_path:
            local = self._clock()
            local_date = f"{local.year:04d}{local.month:02d}{local.day:02d}"
            directory = os.path.join(
                self.data_path, "TICK", data.exchange or "Unknown", symbol, data.instrument
            )
            os.makedirs(directory, exist_ok=True)
            return os.path.join(directory, f"{key}-{local_date}.csv")
        directory = os.path.join(symbol, data.instrument)
        os.makedirs(directory, exist_ok=True)
        return os.path.join(directory, key)

    def _open_target(self, data: FutureMarketData, key: str) -> _TargetFile:
        path = self._target_path(data, key)
        existed = os.path.exists(path)
        last_modified = int(os.stat(path).st_mtime) if existed else 0
        handle = open(path, "ab", buffering=0)
        if not existed:
            handle.write((MARKETDATA_CSV_HEADER + "\r\n").encode("ascii"))
        return _TargetFile(path, handle, last_modified)

    def save_market_data(self, data: FutureMarketData) -> bool:
        """Append one tick to its file; False if it has no instrument, day or file."""
        if not data.instrument or data.trading_day == 0:
            return False
        key = f"{data.instrument}-{data.trading_day}"
        with self._lock:
            target = self._files.get(key)
            if target is None:
                try:
                    target = self._open_target(data, key)
                except OSError:
                    return False
                self._files[key] = target

            line = format_market_data(data)
            if line:
                try:
                    newer = convert_date_time(data.trading_day, data.update_time) > target.last_modified
                except ValueError:
                    newer = False
                if newer:
                    target.handle.write(line.encode("utf-8"))
        return True

    def on_stop(self) -> bool:
        """Write out whatever is still queued."""
        self.flush()
        return True

    def close(self) -> None:
        """Flush the queue and close every open file."""
        with self._lock:
            self.on_stop()
            for target in self._files.values():
                target.handle.close()
            self._files.clear()