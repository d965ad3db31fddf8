"""Background timer for delayed retries."""

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerEntry:
    """Handle for one scheduled callback."""

    __slots__ = ("deadline", "callback", "cancelled")

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False


class RetryTimer:
    """
    Min-heap of wake-up times served by one daemon thread.

    Callbacks run on the timer thread and must return quickly; the scheduler's
    callbacks only hand work to its executor. Cancelled entries stay in the heap
    and are skipped when they come due.
    """

    def __init__(self, name: str = "pushline-timer", clock: Callable[[], float] = time.monotonic):
        self.name = name
        self._clock = clock
        self._heap: list[tuple[float, int, TimerEntry]] = []
        self._seq = itertools.count()
        self._condition = threading.Condition()
        self._thread: Optional[threading.Thread] = None
        self._running = False

    def start(self) -> None:
        """Start the timer thread."""
        with self._condition:
            if self._running:
                return
            self._running = True
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()

    def stop(self) -> int:
        """Stop the timer thread and discard every pending entry."""
        with self._condition:
            self._running = False
            discarded = sum(1 for _, _, entry in self._heap if not entry.cancelled)
            for _, _, entry in self._heap:
                entry.cancelled = True
            self._heap.clear()
            self._condition.notify_all()
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        return discarded

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerEntry:
        """Schedule ``callback`` to run once after ``delay`` seconds."""
        entry = TimerEntry(self._clock() + max(0.0, delay), callback)
        with self._condition:
            if not self._running:
                raise RuntimeError("Timer is not running")
            heapq.heappush(self._heap, (entry.deadline, next(self._seq), entry))
            self._condition.notify()
        return entry

    def cancel(self, handle: TimerEntry) -> bool:
        """Cancel a pending entry; False if it already fired or was cancelled."""
        with self._condition:
            if handle.cancelled:
                return False
            handle.cancelled = True
            return True

    def pending(self) -> int:
        with self._condition:
            return sum(1 for _, _, entry in self._heap if not entry.cancelled)

    def _run(self) -> None:
        while True:
            with self._condition:
                due = self._wait_for_due()
                if due is None:
                    return
            try:
                due.callback()
            except Exception:
                logger.exception("Timer callback failed")

    def _wait_for_due(self) -> Optional[TimerEntry]:
        # Caller holds self._condition.
        while self._running:
            if not self._heap:
                self._condition.wait()
                continue
            deadline, _, entry = self._heap[0]
            if entry.cancelled:
                heapq.heappop(self._heap)
                continue
            remaining = deadline - self._clock()
            if remaining > 0:
                self._condition.wait(remaining)
                continue
            heapq.heappop(self._heap)
            # Marked so a late cancel() reports that the entry already fired.
            entry.cancelled = True
            return entry
        return None
