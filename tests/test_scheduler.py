from datetime import datetime

import pytest

from markethub.scheduler import (
    HubConfig,
    RestartSchedule,
    load_config,
    parse_clock_time,
    seconds_of_day,
)


def test_parse_clock_time_midnight_and_hour():
    assert parse_clock_time("00:00:00") == 0
    assert parse_clock_time("01:00:00") == 3600


def test_parse_clock_time_wrong_length():
    assert parse_clock_time("9:30:00") is None
    assert parse_clock_time("09:30:000") is None
    assert parse_clock_time("") is None


def test_parse_clock_time_matches_seconds_of_day():
    moment = datetime(2020, 5, 6, 21, 15, 42)
    assert parse_clock_time(moment.strftime("%H:%M:%S")) == seconds_of_day(moment)


def test_seconds_of_day_minute():
    assert seconds_of_day(datetime(2020, 1, 1, 0, 1, 0)) == 60


def test_load_config(tmp_path):
    path = tmp_path / "MarketHub.ini"
    path.write_text(
        "[Adaptors]\nCtpAdaptor.dll\nFileSysDb.dll\n\n"
        "[Restart]\n08:00:00\nbad\n20:30:00\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.adaptors == ["CtpAdaptor.dll", "FileSysDb.dll"]
    assert config.restart_times == [
        parse_clock_time("08:00:00"),
        parse_clock_time("20:30:00"),
    ]


def test_load_config_without_sections(tmp_path):
    path = tmp_path / "empty.ini"
    path.write_text("[Other]\nkey = value\n", encoding="utf-8")
    assert load_config(path) == HubConfig()


def test_load_config_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.ini")


@pytest.mark.parametrize(
    "previous, current, expected",
    [
        (3599, 3600, True),
        (3000, 4000, True),
        (3600, 3601, False),
        (0, 3599, False),
        (86399, 0, False),
    ],
)
def test_crossed(previous, current, expected):
    assert RestartSchedule([3600]).crossed(previous, current) is expected


def test_empty_schedule_never_crosses():
    schedule = RestartSchedule()
    assert schedule.crossed(0, 86399) is False
    assert schedule.restart_times == []