"""Command-line hub runner: reads the config and restarts at scheduled times."""

from __future__ import annotations

import argparse
import configparser
import logging
import os
import sys
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .restart import RESTART_SWITCH, RestartManager
from .timers import TimerManager

_log = logging.getLogger(__name__)

CONFIG_FILE = "MarketHub.ini"
_CLOCK_LENGTH = len("xx:xx:xx")
_CHECK_PERIOD_MS = 1000


def _atoi(text: str) -> int:
    """Leading integer of ``text``, 0 if there is none."""
    text = text.lstrip()
    sign = -1 if text[:1] == "-" else 1
    if text[:1] in ("+", "-"):
        text = text[1:]
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


def parse_clock_time(text: str) -> int | None:
    """Seconds of day for ``HH:MM:SS``; None if the text is not eight characters long."""
    if len(text) != _CLOCK_LENGTH:
        return None
    return _atoi(text[0:2]) * 3600 + _atoi(text[3:5]) * 60 + _atoi(text[6:8])


def seconds_of_day(moment: datetime | None = None) -> int:
    """Seconds since local midnight of ``moment``, or of now."""
    moment = datetime.now() if moment is None else moment
    return moment.hour * 3600 + moment.minute * 60 + moment.second


@dataclass
class HubConfig:
    """Adaptors to load and restart times, in seconds of day."""

    adaptors: list[str] = field(default_factory=list)
    restart_times: list[int] = field(default_factory=list)


def load_config(path: str | os.PathLike = CONFIG_FILE) -> HubConfig:
    """Read the ``[Adaptors]`` and ``[Restart]`` sections of an INI file.

    Raises FileNotFoundError if the file cannot be loaded.
    """
    parser = configparser.ConfigParser(
        delimiters=("=",), allow_no_value=True, interpolation=None, strict=False
    )
    parser.optionxform = str  # type: ignore[assignment]
    if not parser.read(Path(path), encoding="utf-8"):
        raise FileNotFoundError(f"could not load config file '{path}'")

    config = HubConfig()
    if parser.has_section("Adaptors"):
        config.adaptors.extend(parser.options("Adaptors"))
    if parser.has_section("Restart"):
        for name in parser.options("Restart"):
            secs = parse_clock_time(name)
            if secs is not None:
                config.restart_times.append(secs)
    return config


class RestartSchedule:
    """Restart times of day; a restart is due when the clock passes one."""

    def __init__(self, restart_times: Iterable[int] = ()) -> None:
        self.restart_times = list(restart_times)

    def crossed(self, previous: int, current: int) -> bool:
        """Whether a restart time lies after ``previous`` and at or before ``current``."""
        return any(previous < when <= current for when in self.restart_times)


def main(argv: list[str] | None = None) -> int:
    """Run the hub until a scheduled restart hands over to a new instance."""
    parser = argparse.ArgumentParser(prog="markethub")
    parser.add_argument("config", nargs="?", default=CONFIG_FILE)
    parser.add_argument(RESTART_SWITCH, dest="restart", action="store_true")
    args = parser.parse_args(argv)

    restarter = RestartManager()
    if args.restart:
        restarter.wait_for_previous_process_finish()

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print("Could not load config file!", file=sys.stderr)
        config = HubConfig()

    for name in config.adaptors:
        _log.info("adaptor configured: %s", name)

    schedule = RestartSchedule(config.restart_times)
    exit_event = threading.Event()
    previous = seconds_of_day()

    with TimerManager() as timers:

        def on_timer(timer_id: int, context) -> None:
            nonlocal previous
            current = seconds_of_day()
            if schedule.crossed(previous, current):
                exit_event.set()
                if not restarter.activate_restart():
                    _log.error("could not start a new instance")
                return
            previous = current
            timers.register_timer(_CHECK_PERIOD_MS, 0)

        if schedule.restart_times:
            timers.set_handler(on_timer)
            timers.register_timer(_CHECK_PERIOD_MS, 0)

        try:
            while not exit_event.wait(1.0):
                pass
        except KeyboardInterrupt:
            pass

    restarter.finish_restart()
    return 0