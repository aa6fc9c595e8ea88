from __future__ import annotations

import logging
import threading
from typing import Callable

from barberai.application.ports.reminder_scheduler import ReminderSchedulerPort


class ThreadingReminderScheduler(ReminderSchedulerPort):
    """One daemon threading.Timer per reminder."""

    def __init__(self) -> None:
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def arm(self, delay_ms: int, on_fire: Callable[[], None]) -> threading.Timer:
        timer: threading.Timer

        def run() -> None:
            with self._lock:
                self._timers.discard(timer)
            try:
                on_fire()
            except Exception:
                self._logger.exception("Reminder callback failed")

        timer = threading.Timer(max(delay_ms, 0) / 1000.0, run)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer) -> bool:
        with self._lock:
            pending = handle in self._timers
            self._timers.discard(handle)
        handle.cancel()
        return pending

    def pending_count(self) -> int:
        with self._lock:
            return len(self._timers)

    def shutdown(self) -> None:
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()
