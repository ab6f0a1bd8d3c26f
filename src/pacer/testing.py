"""Utilities for testing code that uses debouncers and throttlers."""

from __future__ import annotations

import heapq
from typing import TYPE_CHECKING, Any

from ._timer import TimerService

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ["VirtualTimeline", "VirtualTimerHandle"]


class VirtualTimerHandle:
    """Handle returned by [`VirtualTimeline.schedule_after`][]."""

    __slots__ = ("callback", "cancelled", "due", "fired")

    def __init__(self, due: float, callback: Callable[[], Any]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self) -> str:
        state = "active" if self.active else "fired" if self.fired else "cancelled"
        return f"<VirtualTimerHandle due={self.due} {state}>"


class VirtualTimeline(TimerService):
    """A simulated clock and timer service.

    Time only moves when you move it, which makes timing behavior of debouncers and
    throttlers fully deterministic.  Callbacks become due at
    ``now() + delay_ms`` and run, in order of due time (and then scheduling order),
    when the timeline is advanced past that point.

    Exceptions raised by a callback propagate out of `advance`, `advance_to` or
    `run_all`; the clock is left at the time of the failing callback.

    Parameters
    ----------
    start : float
        The initial time, in milliseconds, by default 0.

    Examples
    --------
    ```python
    from unittest.mock import Mock

    from pacer import debounce
    from pacer.testing import VirtualTimeline

    timeline = VirtualTimeline()
    mock = Mock()
    f = debounce(mock, 100, timer=timeline)
    f(1)
    timeline.advance(50)
    f(2)
    timeline.advance(100)
    mock.assert_called_once_with(2)
    ```
    """

    def __init__(self, start: float = 0) -> None:
        self._now = float(start)
        self._seq = 0
        self._queue: list[tuple[float, int, VirtualTimerHandle]] = []

    def now(self) -> float:
        return self._now

    def schedule_after(
        self, delay_ms: float, callback: Callable[[], Any]
    ) -> VirtualTimerHandle:
        handle = VirtualTimerHandle(self._now + max(delay_ms, 0), callback)
        self._seq += 1
        heapq.heappush(self._queue, (handle.due, self._seq, handle))
        return handle

    def cancel(self, handle: VirtualTimerHandle | None) -> None:
        if handle is not None and handle.active:
            handle.cancelled = True

    @property
    def pending(self) -> int:
        """Number of callbacks scheduled and not yet fired or cancelled."""
        return sum(1 for *_, h in self._queue if h.active)

    def next_due(self) -> float | None:
        """Time at which the next active callback is due, or None."""
        self._discard_inactive()
        return self._queue[0][0] if self._queue else None

    def _discard_inactive(self) -> None:
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)

    def advance_to(self, time: float) -> None:
        """Move the clock forward to `time`, running every callback due until then.

        Callbacks scheduled by other callbacks also run, if they fall due before
        `time`.
        """
        if time < self._now:
            raise ValueError(
                f"cannot advance backwards from {self._now} to {time}. "
                "Use `set_time` to simulate a clock jump."
            )
        while (due := self.next_due()) is not None and due <= time:
            _, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            handle.fired = True
            handle.callback()
        self._now = time

    def advance(self, ms: float) -> None:
        """Move the clock forward by `ms`, running due callbacks."""
        self.advance_to(self._now + ms)

    def run_all(self) -> None:
        """Run callbacks until none are left, moving the clock as needed."""
        while (due := self.next_due()) is not None:
            self.advance_to(max(due, self._now))

    def set_time(self, time: float) -> None:
        """Set the clock without running any callback.

        `time` may be in the past, to simulate a system clock moving backwards.
        Callbacks keep their absolute due times.
        """
        self._now = float(time)
