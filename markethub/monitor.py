"""Monitor: formats hub log messages, tracks adaptors and triggers restarts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any

from .adaptormodel import AdaptorModel, AdaptorStatus
from .scheduler import RestartSchedule, seconds_of_day

NO_RESTART_TIME_NOTICE = "Please specify restart time in the config file."


class LogLevel(IntEnum):
    """Severity of a log message."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4


_LEVEL_LETTER = {
    LogLevel.DEBUG: "D",
    LogLevel.INFO: "I",
    LogLevel.WARN: "W",
    LogLevel.ERROR: "E",
    LogLevel.FATAL: "F",
}


@dataclass
class LogRecord:
    """A log message: ``date`` is ``YYYYMMDD`` and ``time`` is ``HHMMSS``."""

    text: str
    level: int = LogLevel.INFO
    date: int = 0
    time: int = 0
    ms: int = 0


def format_log_record(record: LogRecord) -> str:
    """Render a record as ``[YYYY/MM/DD HH:MM:SS.mmm][L] text``."""
    year, rest = divmod(record.date, 10000)
    month, day = divmod(rest, 100)
    hour, rest = divmod(record.time, 10000)
    minute, second = divmod(rest, 100)
    letter = _LEVEL_LETTER.get(record.level, "I")
    return (
        f"[{year:04d}/{month:02d}/{day:02d} "
        f"{hour:02d}:{minute:02d}:{second:02d}.{record.ms:03d}][{letter}] {record.text}"
    )


class Monitor:
    """Receives hub messages and checks, once per tick, whether to restart.

    Error and fatal log lines are passed to ``mailer.send_mail``. When a
    restart time is passed, ``restarter.activate_restart()`` is called and,
    if it succeeds, :attr:`exit_requested` becomes True.
    """

    def __init__(
        self,
        model: AdaptorModel | None = None,
        mailer: Any = None,
        schedule: RestartSchedule | None = None,
        restarter: Any = None,
    ) -> None:
        self.model = model if model is not None else AdaptorModel()
        self.mailer = mailer
        self.schedule = schedule if schedule is not None else RestartSchedule()
        self.restarter = restarter
        self.lines: list[str] = []
        self.exit_requested = False
        self.last_second = seconds_of_day(datetime.now())
        if not self.schedule.restart_times:
            self.on_message(LogRecord(NO_RESTART_TIME_NOTICE))

    def on_message(self, message: LogRecord | AdaptorStatus) -> str | None:
        """Handle a log record or an adaptor status; returns the log line added."""
        if isinstance(message, LogRecord):
            line = format_log_record(message)
            self.lines.append(line)
            if message.level in (LogLevel.ERROR, LogLevel.FATAL) and self.mailer is not None:
                self.mailer.send_mail(message.text)
            return line
        if isinstance(message, AdaptorStatus):
            self.model.update_adaptor_status(message)
        return None

    def tick(self, now: datetime | None = None) -> bool:
        """Check the restart schedule at ``now``; returns whether exit is requested."""
        current = seconds_of_day(now)
        if not self.exit_requested and self.schedule.crossed(self.last_second, current):
            if self.restarter is not None and self.restarter.activate_restart():
                self.exit_requested = True
        self.last_second = current
        return self.exit_requested