"""Pacing of timestamped data against the system clock."""

from __future__ import annotations

import time
from typing import Callable

from .common import gettime_ms

DEFAULT_JITTER_MS = 1000


def _sleep_ms(ms: int) -> None:
    time.sleep(ms / 1000)


class SyncClock:
    """Sleeps so that stream timestamps advance no faster than wall time.

    A gap between stream and system time of ``jitter`` ms or more rebases the clock.
    """

    def __init__(
        self,
        jitter: int = DEFAULT_JITTER_MS,
        clock: Callable[[], int] = gettime_ms,
        sleep: Callable[[int], None] = _sleep_ms,
    ) -> None:
        self.jitter = jitter
        self._clock = clock
        self._sleep = sleep
        self._begin_rts: int | None = None
        self._begin_sys = 0

    def wait(self, rts_tm_ms: int) -> int:
        """Wait until ``rts_tm_ms`` is due; return the milliseconds slept."""
        if self._begin_rts is None:
            self._begin_rts = rts_tm_ms
            self._begin_sys = self._clock()
            return 0
        now = self._clock()
        sys_passed = now - self._begin_sys
        rts_passed = rts_tm_ms - self._begin_rts
        delta = rts_passed - sys_passed
        if delta >= self.jitter or delta <= -self.jitter:
            self._begin_rts = rts_tm_ms
            self._begin_sys = now
            return 0
        if delta > 0:
            self._sleep(delta)
            return delta
        return 0