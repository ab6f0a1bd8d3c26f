from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, overload

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable
    from typing import Literal, TypeAlias

    SupportedService: TypeAlias = Literal["thread", "asyncio"]


def monotonic_ms() -> float:
    """Return the value of a monotonic clock, in milliseconds."""
    return time.monotonic() * 1000


class TimerService(ABC):
    """Schedules one-shot callbacks and cancels them by handle.

    Controllers never touch timers directly; they go through a `TimerService`, so
    that the same controller can run on threads, an asyncio loop, or a simulated
    timeline (see [`pacer.testing.VirtualTimeline`][]).
    """

    @abstractmethod
    def schedule_after(self, delay_ms: float, callback: Callable[[], Any]) -> Any:
        """Call `callback` once, after `delay_ms` milliseconds. Return a handle."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a scheduled callback.

        Cancelling `None`, or a handle that already fired or was already cancelled,
        must be a no-op.
        """

    def now(self) -> float:
        """Current time in milliseconds, on the same scale as `schedule_after`."""
        return monotonic_ms()


class ThreadingTimerService(TimerService):
    """Timer service backed by one `threading.Timer` per scheduled callback.

    Callbacks run on the timer thread.
    """

    def schedule_after(
        self, delay_ms: float, callback: Callable[[], Any]
    ) -> threading.Timer:
        timer = threading.Timer(max(delay_ms, 0) / 1000, callback)
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer | None) -> None:
        if handle is not None:
            handle.cancel()


class AsyncioTimerService(TimerService):
    """Timer service backed by `loop.call_later` on an asyncio event loop.

    Parameters
    ----------
    loop : asyncio.AbstractEventLoop, optional
        The loop to schedule on.  If not provided, the loop running at the time of
        each `schedule_after` call is used.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        import asyncio

        self._asyncio = asyncio
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return self._asyncio.get_running_loop()

    def schedule_after(
        self, delay_ms: float, callback: Callable[[], Any]
    ) -> asyncio.TimerHandle:
        return self._get_loop().call_later(max(delay_ms, 0) / 1000, callback)

    def cancel(self, handle: asyncio.TimerHandle | None) -> None:
        if handle is not None:
            handle.cancel()

    def now(self) -> float:
        try:
            return self._get_loop().time() * 1000
        except RuntimeError:
            # no running loop: fall back to the clock asyncio itself uses
            return monotonic_ms()


_TIMER_SERVICE: TimerService | None = None


def get_timer_service() -> TimerService:
    """Get the default timer service, creating a threading one if none is set."""
    global _TIMER_SERVICE
    if _TIMER_SERVICE is None:
        _TIMER_SERVICE = ThreadingTimerService()
    return _TIMER_SERVICE


def clear_timer_service() -> None:
    """Reset the default timer service. Primarily for testing purposes."""
    global _TIMER_SERVICE
    _TIMER_SERVICE = None


@overload
def set_timer_service(service: Literal["thread"]) -> ThreadingTimerService: ...
@overload
def set_timer_service(service: Literal["asyncio"]) -> AsyncioTimerService: ...
@overload
def set_timer_service(service: TimerService) -> TimerService: ...
def set_timer_service(
    service: SupportedService | TimerService = "thread",
) -> TimerService:
    """Set the timer service used by controllers created without a `timer`.

    `service` may be a [`TimerService`][pacer.TimerService] instance, or one of:
    'thread', 'asyncio'.  Controllers resolve their timer service when they are
    created, so this should be done before creating them.
    """
    global _TIMER_SERVICE

    if isinstance(service, TimerService):
        _TIMER_SERVICE = service
    elif service == "thread":
        _TIMER_SERVICE = ThreadingTimerService()
    elif service == "asyncio":
        _TIMER_SERVICE = AsyncioTimerService()
    else:
        raise ValueError(
            f"Timer service not supported: {service!r}.  "
            "Must be a TimerService instance or one of: 'thread', 'asyncio'"
        )

    return _TIMER_SERVICE
