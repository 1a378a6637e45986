"""
Virtual-time timer queue.

The simulation never sleeps on its own: callers move time forward with
advance(dt), and every callback that falls due runs to completion before the
next one starts. The real-time driver in main_run.py feeds measured wall
time into advance(); tests feed fixed steps.

Worker threads (the thought-service fetch) must not touch simulation state;
they hand results back with call_soon_threadsafe() and the callback runs on
the next advance().
"""

from __future__ import annotations

import heapq
import threading
from collections import deque
from dataclasses import dataclass, field
from itertools import count
from typing import Callable, Deque, List, Optional, Tuple


@dataclass
class Timer:
    due: float
    callback: Callable[[], None]
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """Single-threaded cooperative scheduler over a virtual clock."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)
        self._queue: List[Tuple[float, int, Timer]] = []
        self._seq = count()
        self._inbox: Deque[Callable[[], None]] = deque()
        self._inbox_lock = threading.Lock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        timer = Timer(due=self.now + float(delay), callback=callback)
        heapq.heappush(self._queue, (timer.due, next(self._seq), timer))
        return timer

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        with self._inbox_lock:
            self._inbox.append(callback)

    def next_due(self) -> Optional[float]:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)
        return self._queue[0][0] if self._queue else None

    def pending(self) -> int:
        return sum(1 for _, _, t in self._queue if not t.cancelled)

    def _drain_inbox(self) -> int:
        with self._inbox_lock:
            ready = list(self._inbox)
            self._inbox.clear()
        for callback in ready:
            callback()
        return len(ready)

    def advance(self, dt: float) -> int:
        """Move the clock forward by dt, running due callbacks in time order.

        Callbacks scheduled while advancing run in the same call if they
        fall due before the target time. Returns the number of callbacks run.
        """
        if dt < 0:
            raise ValueError(f"dt must be >= 0, got {dt}")
        target = self.now + float(dt)
        ran = self._drain_inbox()

        while True:
            due = self.next_due()
            if due is None or due > target:
                break
            _, _, timer = heapq.heappop(self._queue)
            self.now = max(self.now, timer.due)
            timer.callback()
            ran += 1
            ran += self._drain_inbox()

        self.now = target
        return ran
