from datetime import datetime

from markethub.adaptormodel import AdaptorModel, AdaptorState, AdaptorStatus, AdaptorType
from markethub.monitor import (
    NO_RESTART_TIME_NOTICE,
    LogLevel,
    LogRecord,
    Monitor,
    format_log_record,
)
from markethub.scheduler import RestartSchedule, parse_clock_time


class _FakeMailer:
    def __init__(self):
        self.sent = []

    def send_mail(self, line):
        self.sent.append(line)
        return True


class _FakeRestarter:
    def __init__(self, result=True):
        self.result = result
        self.calls = 0

    def activate_restart(self):
        self.calls += 1
        return self.result


def _monitor(times=("01:00:00",), restarter=None, mailer=None):
    schedule = RestartSchedule([parse_clock_time(t) for t in times])
    return Monitor(AdaptorModel(), mailer or _FakeMailer(), schedule, restarter)


def test_format_log_record():
    record = LogRecord("boom", LogLevel.ERROR, date=20140828, time=94704, ms=5)
    assert format_log_record(record) == "[2014/08/28 09:47:04.005][E] boom"


def test_format_unknown_level_uses_info_letter():
    line = format_log_record(LogRecord("x", level=99))
    assert "][I] x" in line


def test_error_lines_are_mailed():
    mailer = _FakeMailer()
    monitor = _monitor(mailer=mailer)
    monitor.on_message(LogRecord("bad thing", LogLevel.ERROR))
    monitor.on_message(LogRecord("fine", LogLevel.INFO))
    monitor.on_message(LogRecord("worse", LogLevel.FATAL))
    assert mailer.sent == ["bad thing", "worse"]
    assert len(monitor.lines) == 3
    assert monitor.lines[1].endswith("[I] fine")


def test_adaptor_status_updates_model():
    monitor = _monitor()
    monitor.on_message(AdaptorStatus(1, AdaptorType.INPUT, "CTP", AdaptorState.INIT))
    monitor.on_message(AdaptorStatus(1, AdaptorType.INPUT, "CTP", AdaptorState.RUNNING))
    assert monitor.model.row_count() == 1
    assert monitor.model.data(0, 3) == "Running"


def test_missing_restart_times_logs_notice():
    monitor = _monitor(times=())
    assert monitor.lines[0].endswith(NO_RESTART_TIME_NOTICE)


def test_tick_triggers_restart():
    restarter = _FakeRestarter()
    monitor = _monitor(restarter=restarter)
    monitor.last_second = parse_clock_time("00:59:59")
    assert monitor.tick(datetime(2020, 1, 1, 1, 0, 0)) is True
    assert restarter.calls == 1
    monitor.tick(datetime(2020, 1, 1, 1, 0, 1))
    assert restarter.calls == 1


def test_tick_without_crossing():
    restarter = _FakeRestarter()
    monitor = _monitor(restarter=restarter)
    monitor.last_second = parse_clock_time("02:00:00")
    assert monitor.tick(datetime(2020, 1, 1, 2, 0, 1)) is False
    assert restarter.calls == 0
    assert monitor.last_second == parse_clock_time("02:00:01")


def test_failed_restart_keeps_running():
    restarter = _FakeRestarter(result=False)
    monitor = _monitor(restarter=restarter)
    monitor.last_second = parse_clock_time("00:59:59")
    assert monitor.tick(datetime(2020, 1, 1, 1, 0, 0)) is False
    assert restarter.calls == 1
    assert monitor.last_second == parse_clock_time("01:00:00")