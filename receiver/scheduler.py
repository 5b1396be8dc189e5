"""
QR Drop - Cooperative Schedulers

All receiver work runs on one thread as short callbacks. A scheduler
defers a callback by a number of milliseconds and can cancel it again.

- TkScheduler rides on the tkinter event loop (UI mode).
- LoopScheduler keeps its own timer heap. In real-time mode it drives the
  headless receiver; in virtual-time mode tests step it with advance().
"""

import heapq
import itertools
import time
from typing import Callable, Optional, List, Tuple


class TkScheduler:
    """Schedules callbacks with Tk's after()/after_cancel()."""

    def __init__(self, root):
        self.root = root

    def call_later(self, delay_ms: int, callback: Callable[[], None]):
        return self.root.after(max(0, int(delay_ms)), callback)

    def cancel(self, handle):
        if handle is not None:
            self.root.after_cancel(handle)


class _Timer:
    __slots__ = ("due", "callback", "cancelled")

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False


class LoopScheduler:
    """
    Heap-ordered timer loop.

    Callbacks due at the same time run in the order they were scheduled.
    """

    def __init__(self, realtime: bool = True):
        """
        Initialize scheduler.

        Args:
            realtime: Follow the wall clock. When False, time only moves
                      through advance().
        """
        self.realtime = realtime
        self._start = time.perf_counter()
        self._virtual_ms = 0.0
        self._heap: List[Tuple[float, int, _Timer]] = []
        self._counter = itertools.count()

    def now_ms(self) -> float:
        if self.realtime:
            return (time.perf_counter() - self._start) * 1000.0
        return self._virtual_ms

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _Timer:
        timer = _Timer(self.now_ms() + max(0, delay_ms), callback)
        heapq.heappush(self._heap, (timer.due, next(self._counter), timer))
        return timer

    def cancel(self, handle: Optional[_Timer]):
        if handle is not None:
            handle.cancelled = True

    @property
    def pending(self) -> int:
        """Number of timers that are scheduled and not cancelled."""
        return sum(1 for _, _, t in self._heap if not t.cancelled)

    def next_due(self) -> Optional[float]:
        self._drop_cancelled()
        return self._heap[0][0] if self._heap else None

    def _drop_cancelled(self):
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)

    def run_due(self) -> int:
        """Run every callback that is due now. Returns how many ran."""
        ran = 0
        now = self.now_ms()
        while True:
            self._drop_cancelled()
            if not self._heap or self._heap[0][0] > now:
                return ran
            _, _, timer = heapq.heappop(self._heap)
            timer.cancelled = True
            timer.callback()
            ran += 1

    def advance(self, ms: float) -> int:
        """
        Move virtual time forward, running callbacks as they fall due.

        Callbacks scheduled while advancing run too if they fall inside
        the window.
        """
        if self.realtime:
            raise RuntimeError("advance() is only available in virtual-time mode")

        target = self._virtual_ms + ms
        ran = 0
        while True:
            due = self.next_due()
            if due is None or due > target:
                break
            self._virtual_ms = max(self._virtual_ms, due)
            ran += self.run_due()
        self._virtual_ms = target
        return ran

    def run(self, until: Callable[[], bool], timeout: Optional[float] = None,
            idle_sleep: float = 0.001):
        """
        Real-time loop: run timers until `until()` is true.

        Args:
            until: Stop condition, checked after every pass
            timeout: Give up after this many seconds (None = no limit)
            idle_sleep: Minimum sleep between passes in seconds

        Returns:
            True if the stop condition was met, False on timeout or when
            nothing is left to run
        """
        deadline = None if timeout is None else time.perf_counter() + timeout

        while not until():
            if deadline is not None and time.perf_counter() >= deadline:
                return False

            self.run_due()

            due = self.next_due()
            if due is None:
                return until()

            wait = (due - self.now_ms()) / 1000.0
            time.sleep(max(idle_sleep, min(wait, 0.05)))

        return True
