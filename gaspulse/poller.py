"""
Repeating timers for the poll cadence and the display tick.

Each timer is a daemon thread waiting on an Event, so cancel() wakes it
immediately instead of sleeping out the rest of the period.
"""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """
    Calls `callback` every `interval_sec` until cancelled.

    Ticks are scheduled from a monotonic deadline, so a slow callback does
    not shift later ticks. Ticks that fall entirely inside a slow callback
    are skipped rather than fired back to back.
    """

    def __init__(
        self,
        interval_sec: float,
        callback: Callable[[], None],
        name: str = "gaspulse-timer",
        fire_immediately: bool = False,
    ):
        self.interval_sec = interval_sec
        self.callback = callback
        self.name = name
        self.fire_immediately = fire_immediately
        self.tick_count = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop.is_set()

    def start(self):
        """Start the timer thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self, join_timeout: Optional[float] = 1.0):
        """Stop the timer. The current callback, if any, is not interrupted."""
        self._stop.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=join_timeout)

    def _run(self):
        next_tick = time.monotonic()
        if not self.fire_immediately:
            next_tick += self.interval_sec

        while not self._stop.is_set():
            delay = next_tick - time.monotonic()
            if delay > 0 and self._stop.wait(delay):
                break

            self._fire()

            next_tick += self.interval_sec
            now = time.monotonic()
            if next_tick <= now:
                skipped = int((now - next_tick) // self.interval_sec) + 1
                next_tick += skipped * self.interval_sec
                logger.debug(f"[{self.name}] Skipped {skipped} tick(s) behind schedule")

    def _fire(self):
        self.tick_count += 1
        try:
            self.callback()
        except Exception as e:
            # Keep ticking; the next tick is the retry
            logger.exception(f"[{self.name}] Tick failed: {e}")
