from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import itertools
import time
from typing import Callable


@dataclass
class ManualClock:
    """Injectable monotonic clock for deterministic scheduling."""

    now_s: float = 0.0

    def __call__(self) -> float:
        return self.now_s

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        self.now_s += seconds


@dataclass
class DeferredCall:
    deadline_s: float
    callback: Callable[[], None]
    active: bool = True

    def cancel(self) -> None:
        self.active = False


@dataclass
class DeferredCallQueue:
    """Single-shot deferred callbacks run cooperatively on the caller's thread.

    Nothing fires on its own: the host event loop calls `run_due()` between input
    events. A cancelled call never runs, even when it is already due.
    """

    clock: Callable[[], float] = time.monotonic
    _heap: list[tuple[float, int, DeferredCall]] = field(default_factory=list, init=False, repr=False)
    _seq: itertools.count = field(default_factory=itertools.count, init=False, repr=False)

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> DeferredCall:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        call = DeferredCall(deadline_s=self.clock() + delay_s, callback=callback)
        heapq.heappush(self._heap, (call.deadline_s, next(self._seq), call))
        return call

    def run_due(self) -> int:
        now = self.clock()
        ran = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, call = heapq.heappop(self._heap)
            if not call.active:
                continue
            call.active = False
            call.callback()
            ran += 1
        return ran

    def pending_count(self) -> int:
        return sum(1 for _, _, call in self._heap if call.active)

    def cancel_all(self) -> None:
        for _, _, call in self._heap:
            call.active = False
        self._heap.clear()
