"""Alarm mail: queue error lines and send them out from a worker thread."""

from __future__ import annotations

import configparser
import logging
import os
import platform
import queue
import smtplib
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path

_log = logging.getLogger(__name__)

_CHECK_INTERVAL = 0.5
_CHECKS_PER_SEND = 10
_CLOCK_LENGTH = len("00:00:00")

Transport = Callable[[EmailMessage, str, int, str, str], None]


def _atoi(text: str) -> int:
    """Leading integer of ``text``, 0 if there is none."""
    text = text.lstrip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


def _clock_seconds(text: str) -> int:
    if len(text) != _CLOCK_LENGTH:
        return -1
    return _atoi(text[0:2]) * 3600 + _atoi(text[3:5]) * 60 + _atoi(text[6:8])


@dataclass(frozen=True)
class SilentPeriod:
    """Seconds-of-day interval, inclusive, during which no mail is queued."""

    start: int
    end: int

    def contains(self, second: int) -> bool:
        return self.start <= second <= self.end


def parse_silent_times(text: str) -> list[SilentPeriod]:
    """Parse ``HH:MM:SS-HH:MM:SS`` entries separated by ``;`` or ``,``.

    Entries without a dash, or whose ends are not eight characters long,
    are skipped.
    """
    periods = []
    for token in text.replace(",", ";").split(";"):
        if "-" not in token:
            continue
        start_text, end_text = token.split("-", 1)
        start, end = _clock_seconds(start_text), _clock_seconds(end_text)
        if start >= 0 and end >= 0:
            periods.append(SilentPeriod(start, end))
    return periods


def _smtp_transport(message: EmailMessage, host: str, port: int,
                    username: str, password: str) -> None:
    with smtplib.SMTP_SSL(host, port, timeout=30) as smtp:
        smtp.login(username, password)
        smtp.send_message(message)


def _as_bool(value: str | None) -> bool:
    return value is not None and value.strip().lower() in {"1", "true", "yes", "on"}


class Mailer:
    """Sends alarm mails configured in the ``[Mail]`` section of a config file.

    ``decrypt`` turns the stored password into plain text, ``clock`` returns
    the current local time and ``transport`` delivers a message as
    ``transport(message, server, port, user, password)``. Queued lines are
    sent one at a time, one every five seconds, until :meth:`stop`.
    """

    def __init__(
        self,
        decrypt: Callable[[str], str] | None = None,
        clock: Callable[[], datetime] | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._decrypt = decrypt if decrypt is not None else (lambda text: text)
        self._clock = clock if clock is not None else datetime.now
        self._transport = transport if transport is not None else _smtp_transport
        self.enabled = False
        self.sender = ""
        self.mail_from = ""
        self.mail_to = ""
        self._password = ""
        self.server = ""
        self.port = 0
        self.computer_name = ""
        self.computer_user = ""
        self.silent_periods: list[SilentPeriod] = []
        self._queue: queue.Queue[str] = queue.Queue()
        self._stopped = threading.Event()
        self._worker = threading.Thread(target=self._check_mail, name="mailer", daemon=True)
        self._worker.start()

    def read_config(self, path: str | os.PathLike) -> bool:
        """Load mail settings; returns False when mail is disabled or incomplete."""
        parser = configparser.ConfigParser(
            delimiters=("=",), allow_no_value=True, interpolation=None, strict=False
        )
        parser.optionxform = str  # type: ignore[assignment]
        try:
            loaded = parser.read(Path(path), encoding="utf-8")
        except configparser.Error:
            loaded = []
        if not loaded or not parser.has_section("Mail"):
            self.enabled = False
            return False
        section = parser["Mail"]

        self.enabled = _as_bool(section.get("Enable"))
        if not self.enabled:
            return False

        values = {}
        for key in ("Sender", "Receiver", "Password", "Server"):
            value = section.get(key)
            if not value:
                self.enabled = False
                return False
            values[key] = value
        self.mail_from = values["Sender"]
        self.mail_to = values["Receiver"]
        self._password = self._decrypt(values["Password"])
        self.server = values["Server"]
        self.port = _atoi(section.get("Port") or "")

        silent = section.get("SilentTime")
        if silent:
            self.silent_periods.extend(parse_silent_times(silent))

        self.computer_name = os.environ.get("COMPUTERNAME") or platform.node()
        self.computer_user = os.environ.get("USERNAME") or os.environ.get("USER", "")
        self.sender = "MarketHub@" + self.computer_name
        return True

    def send_mail(self, line: str) -> bool:
        """Queue ``line`` for sending unless disabled, empty or in a silent period."""
        if not self.enabled or not line:
            return False
        now = self._clock()
        second = now.hour * 3600 + now.minute * 60 + now.second
        if any(period.contains(second) for period in self.silent_periods):
            return False
        self._queue.put(line)
        return True

    def compose(self, body: str, now: datetime) -> tuple[str, str]:
        """Return the subject and text of an alarm mail sent at ``now``."""
        stamp = (
            f"{now.year:04d}/{now.month:02d}/{now.day:02d} "
            f"{now.hour:02d}:{now.minute:02d}:{now.second:02d}.{now.microsecond // 1000:03d}"
        )
        content = (
            f"Machine: {self.computer_name or 'N/A'}\r\n"
            f"User: {self.computer_user or 'N/A'}\r\n"
            f"DateTime: {stamp}\r\n\r\n"
            f"{body}"
        )
        return f"ALARM at {stamp}", content

    def send_mail_out(self, body: str) -> bool:
        """Send one alarm mail now; returns False if disabled or delivery fails."""
        if not self.enabled:
            return False
        subject, content = self.compose(body, self._clock())
        message = EmailMessage()
        message["From"] = self.mail_from
        message["Sender"] = self.sender
        message["To"] = self.mail_to
        message["Subject"] = subject
        message.set_content(content)
        try:
            self._transport(message, self.server, self.port, self.mail_from, self._password)
        except (smtplib.SMTPException, OSError):
            _log.exception("sending alarm mail failed")
            return False
        return True

    def stop(self) -> None:
        """Stop the worker thread; lines still queued are not sent."""
        self._stopped.set()
        if threading.current_thread() is not self._worker:
            self._worker.join()

    def _check_mail(self) -> None:
        count = 0
        while not self._stopped.is_set():
            if count >= _CHECKS_PER_SEND:
                count = 0
                try:
                    content = self._queue.get_nowait()
                except queue.Empty:
                    content = ""
                if content:
                    self.send_mail_out(content)
            count += 1
            self._stopped.wait(_CHECK_INTERVAL)