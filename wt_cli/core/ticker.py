"""Cancellable periodic tasks used for live elapsed-time display."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class TickKind(str, Enum):
    EXERCISE = "exercise"
    REST = "rest"


class TaskHandle(Protocol):
    def cancel(self) -> None:
        ...


Scheduler = Callable[[float, Callable[[], None]], TaskHandle]


class PeriodicTask:
    """Run ``callback`` every ``interval`` seconds on a daemon timer thread."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.interval = interval
        self.callback = callback
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> "PeriodicTask":
        self._schedule()
        return self

    def _schedule(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._timer = threading.Timer(self.interval, self._run)
            self._timer.daemon = True
            self._timer.start()

    def _run(self) -> None:
        if self._cancelled:
            return
        try:
            self.callback()
        except Exception:
            logger.exception("Tick callback failed")
        self._schedule()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


def start_periodic(interval: float, callback: Callable[[], None]) -> PeriodicTask:
    """Default scheduler: start a threaded periodic task."""
    return PeriodicTask(interval, callback).start()
