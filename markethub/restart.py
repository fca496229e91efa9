"""Restart the running application as a fresh process.

A lock file named after the application path plays the part of a named
system mutex: the old instance holds it while exiting, the new instance
waits for it to be released before carrying on.
"""

from __future__ import annotations

import os
import re
import subprocess
import sys
import tempfile
from pathlib import Path

from filelock import FileLock, Timeout

#: Command-line switch that marks a restarted instance.
RESTART_SWITCH = "--Restart"


def mutex_name(app_path: str) -> str:
    """Name of the restart mutex for ``app_path``: backslashes become dashes."""
    return app_path.replace("\\", "-")


def _file_safe(name: str) -> str:
    return re.sub(r"[/:]", "-", name)


class RestartManager:
    """Coordinates handing over from a running instance to its replacement."""

    def __init__(self, app_path: str | os.PathLike | None = None,
                 lock_dir: str | os.PathLike | None = None) -> None:
        self._explicit_path = app_path is not None
        self.app_path = str(app_path) if app_path is not None else os.path.abspath(sys.argv[0])
        directory = Path(lock_dir) if lock_dir is not None else Path(tempfile.gettempdir())
        self.lock_path = directory / (_file_safe(mutex_name(self.app_path)) + ".lock")
        self._was_restarted = False
        self._held: FileLock | None = None

    def was_restarted(self) -> bool:
        """Whether waiting found a previous instance that had to finish first."""
        return self._was_restarted

    def is_restart_start(self, argv: list[str] | None = None) -> bool:
        """Whether the command line carries the restart switch."""
        args = sys.argv if argv is None else argv
        return RESTART_SWITCH in " ".join(args)

    def wait_for_previous_process_finish(self) -> bool:
        """Block until a previous instance releases the restart lock."""
        lock = FileLock(str(self.lock_path))
        try:
            lock.acquire(timeout=0)
        except Timeout:
            lock.acquire()
            self._was_restarted = True
        lock.release()
        return True

    def finish_restart(self) -> bool:
        """Release the restart lock, if held, so the new instance can proceed."""
        lock, self._held = self._held, None
        if lock is None:
            return False
        lock.release()
        return True

    def activate_restart(self) -> bool:
        """Take the restart lock and start a new instance with the restart switch.

        Returns False if another restart is already in progress (after it
        completes) or if the new process could not be started. After a
        successful call the current instance should exit.
        """
        lock = FileLock(str(self.lock_path))
        try:
            lock.acquire(timeout=0)
        except Timeout:
            lock.acquire()
            lock.release()
            return False
        self._held = lock
        try:
            subprocess.Popen(self._restart_command())
        except OSError:
            return False
        return True

    def _restart_command(self) -> list[str]:
        if self._explicit_path:
            return [self.app_path, RESTART_SWITCH]
        args = [arg for arg in sys.argv if arg != RESTART_SWITCH]
        return [sys.executable, *args, RESTART_SWITCH]