"""Cancellable timers for recording ticks and burst pacing.

Controllers never sleep or start threads themselves; they take a
``Scheduler`` and a ``sleep`` callable so tests can drive time by hand.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Protocol


SleepFn = Callable[[float], None]

default_sleep: SleepFn = time.sleep


class TimerHandle:
    """Cancellation token for a scheduled callback."""

    def __init__(self):
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def wait(self, timeout: float) -> bool:
        """Block up to ``timeout`` seconds; True if cancelled meanwhile."""
        return self._cancelled.wait(timeout)


class Scheduler(Protocol):
    """Anything that can run a callback repeatedly until cancelled."""

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class ThreadingScheduler:
    """Runs repeating callbacks on daemon threads.

    The cancellation token is checked before every tick. A tick that is
    already executing when ``cancel()`` is called runs to completion.
    """

    def __init__(self, name: str = "omnisplat-timer"):
        self.name = name

    def call_every(self, interval_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()

        def _run():
            while not handle.wait(interval_s):
                if handle.cancelled:
                    break
                callback()

        thread = threading.Thread(target=_run, name=self.name, daemon=True)
        thread.start()
        return handle
