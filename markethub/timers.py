"""A timer manager that runs callbacks on a single worker thread."""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

_log = logging.getLogger(__name__)


@dataclass
class TimerContext:
    """Caller data handed back to the handler when a timer fires."""

    timer_id: int = 0


Handler = Callable[[int, TimerContext], None]


@dataclass
class _Instance:
    id: int
    next: float
    period: float
    context: TimerContext = field(default_factory=TimerContext)
    running: bool = False


class TimerManager:
    """Schedules one-shot and periodic timers served by one worker thread.

    The handler is called as ``handler(timer_id, context)`` without the
    manager's lock held, so it may register or destroy timers itself.
    """

    def __init__(self, handler: Handler | None = None) -> None:
        self._handler = handler
        self._cond = threading.Condition()
        self._next_id = 1
        self._order = itertools.count()
        self._active: dict[int, _Instance] = {}
        self._queue: list[tuple[float, int, int]] = []
        self._done = False
        self._worker = threading.Thread(target=self._run, name="timer-manager", daemon=True)
        self._worker.start()

    def set_handler(self, handler: Handler | None) -> None:
        """Replace the callback invoked when timers fire."""
        with self._cond:
            self._handler = handler

    def register_timer(
        self, delay_ms: int, period_ms: int = 0, context: TimerContext | None = None
    ) -> int:
        """Schedule a timer ``delay_ms`` from now, repeating every ``period_ms`` if positive.

        Returns the new timer's id; ids start at 1.
        """
        if delay_ms < 0 or period_ms < 0:
            raise ValueError("timer delay and period must not be negative")
        with self._cond:
            instance = _Instance(
                id=self._next_id,
                next=time.monotonic() + delay_ms / 1000.0,
                period=period_ms / 1000.0,
                context=context if context is not None else TimerContext(),
            )
            self._next_id += 1
            self._active[instance.id] = instance
            self._push(instance)
            self._cond.notify_all()
            return instance.id

    def destroy(self, timer_id: int) -> bool:
        """Cancel a timer. Returns False if no such timer is active."""
        with self._cond:
            instance = self._active.get(timer_id)
            if instance is None:
                return False
            if instance.running:
                # The worker removes it once the callback returns.
                instance.running = False
            else:
                del self._active[timer_id]
            self._cond.notify_all()
            return True

    def exists(self, timer_id: int) -> bool:
        """Whether the timer is still active."""
        with self._cond:
            return timer_id in self._active

    def close(self) -> None:
        """Stop the worker thread; pending timers never fire."""
        with self._cond:
            self._done = True
            self._cond.notify_all()
        if threading.current_thread() is not self._worker:
            self._worker.join()

    def __enter__(self) -> TimerManager:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _push(self, instance: _Instance) -> None:
        heapq.heappush(self._queue, (instance.next, next(self._order), instance.id))

    def _peek(self) -> _Instance | None:
        while self._queue:
            when, _, timer_id = self._queue[0]
            instance = self._active.get(timer_id)
            if instance is None or instance.running or instance.next != when:
                heapq.heappop(self._queue)
                continue
            return instance
        return None

    def _run(self) -> None:
        with self._cond:
            while not self._done:
                instance = self._peek()
                if instance is None:
                    self._cond.wait()
                    continue
                now = time.monotonic()
                if now < instance.next:
                    self._cond.wait(instance.next - now)
                    continue

                heapq.heappop(self._queue)
                instance.running = True
                handler = self._handler
                self._cond.release()
                try:
                    if handler is not None:
                        handler(instance.id, instance.context)
                except Exception:
                    _log.exception("timer %d handler failed", instance.id)
                finally:
                    self._cond.acquire()

                if self._done:
                    break
                if not instance.running:
                    # Destroyed while the callback was in progress.
                    self._active.pop(instance.id, None)
                    continue
                instance.running = False
                if instance.period > 0:
                    instance.next += instance.period
                    self._push(instance)
                else:
                    self._active.pop(instance.id, None)