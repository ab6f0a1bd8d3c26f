from __future__ import annotations

import inspect
import warnings
from pathlib import Path
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ._exceptions import InvalidArgument, InvalidConfiguration
from ._timer import TimerService, get_timer_service

if TYPE_CHECKING:
    from collections.abc import Callable

    from typing_extensions import ParamSpec

    P = ParamSpec("P")
else:
    # mypyc cannot compile ParamSpec generics, so use a plain TypeVar at runtime
    P = TypeVar("P")

__all__ = [
    "Debouncer",
    "Throttler",
    "_compiled",
    "debounce",
    "debounced",
    "throttle",
    "throttled",
]

ROOT = str(Path(__file__).parent)


def _external_stacklevel() -> int:
    """Return the `stacklevel` of the first caller outside of pacer.

    Meant to be called by the function that calls `warnings.warn`.
    """
    level = 1
    frame = inspect.currentframe()
    frame = frame.f_back if frame is not None else None
    while frame is not None and frame.f_code.co_filename.startswith(ROOT):
        frame = frame.f_back
        level += 1
    return level


class _ControllerBase(Generic[P]):
    """Shared state and bookkeeping for debounce and throttle controllers."""

    def __init__(
        self,
        func: Callable[P, Any],
        wait: float = 0,
        timer: TimerService | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        wait = wait or 0
        if wait < 0:
            warnings.warn(
                f"wait must be non-negative, got {wait!r}. Using 0 instead.",
                stacklevel=_external_stacklevel(),
            )
            wait = 0

        self.__wrapped__: Callable[P, Any] = func
        self._wait: float = wait
        self._timer_service: TimerService = (
            timer if timer is not None else get_timer_service()
        )
        self._clock: Callable[[], float] = (
            clock if clock is not None else self._timer_service.now
        )
        self._timer_handle: Any = None
        # identifies the most recent scheduling. Callbacks from older schedulings
        # (superseded, flushed or cancelled) check it and do nothing.
        self._token: int = 0
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}
        self._last_result: Any = None

        # this mimics what functools.wraps does, but avoids __dict__ usage and other
        # things that won't work with mypyc... HOWEVER, most of these dynamic
        # assignments won't work in mypyc anyway (they just do nothing.)
        self.__module__: str = getattr(func, "__module__", "")
        self.__name__: str = getattr(func, "__name__", "")
        self.__qualname__: str = getattr(func, "__qualname__", "")
        self.__doc__: str | None = getattr(func, "__doc__", None)
        self.__annotations__: dict[str, Any] = getattr(func, "__annotations__", {})

    @property
    def wait(self) -> float:
        """The wait interval, in milliseconds."""
        return self._wait

    @property
    def pending(self) -> bool:
        """Whether a timer is currently scheduled."""
        return self._timer_handle is not None

    def _check_callable(self) -> None:
        if not callable(self.__wrapped__):
            raise InvalidArgument(self.__wrapped__)

    def _schedule(self, delay: float, callback: Callable[[int], Any]) -> None:
        self._token += 1
        token = self._token
        self._timer_handle = self._timer_service.schedule_after(
            delay, lambda: callback(token)
        )

    def _clear_timer(self) -> None:
        if self._timer_handle is not None:
            self._timer_service.cancel(self._timer_handle)
            self._timer_handle = None
        self._token += 1

    def _take_args(self) -> tuple[tuple[Any, ...], dict[str, Any]]:
        args, kwargs = self._args, self._kwargs
        self._args, self._kwargs = (), {}
        return args, kwargs

    def cancel(self) -> None:
        """Cancel any pending calls."""
        self._clear_timer()
        self._args, self._kwargs = (), {}

    def flush(self) -> Any:
        """Force a call if there is one pending."""
        raise NotImplementedError("Subclasses must implement this method.")

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> Any:
        raise NotImplementedError("Subclasses must implement this method.")

    @property
    def __signature__(self) -> inspect.Signature:
        return inspect.signature(self.__wrapped__)

    def __repr__(self) -> str:
        name = self.__qualname__ or repr(self.__wrapped__)
        return f"<{type(self).__name__} {name} wait={self._wait}>"


class Debouncer(_ControllerBase, Generic[P]):
    """Class that waits for `wait` ms of silence before calling `func`.

    Every call restarts the quiet period.  Without `immediate`, `func` is called
    once the quiet period ends, with the arguments of the *last* call in the burst.
    With `immediate`, `func` is called synchronously on the *first* call of a burst
    and the end of the quiet period merely re-arms it.

    Parameters
    ----------
    func : Callable[P, Any]
        a function to wrap
    wait : float, optional
        length of the quiet period in ms, by default 0
    immediate : bool, optional
        Whether to invoke the function on the leading edge of the burst instead of
        the trailing edge, by default False
    timer : TimerService, optional
        timer service used to schedule deferred calls, by default the service
        returned by `get_timer_service()`
    clock : Callable[[], float], optional
        returns the current time in ms, by default `timer.now`
    """

    def __init__(
        self,
        func: Callable[P, Any],
        wait: float = 0,
        immediate: bool = False,
        *,
        timer: TimerService | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        super().__init__(func, wait, timer, clock)
        self._immediate: bool = bool(immediate)

    @property
    def immediate(self) -> bool:
        return self._immediate

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> Any:
        """Call underlying function, or restart the quiet period."""
        self._check_callable()

        call_now = self._immediate and self._timer_handle is None
        self._clear_timer()
        if not self._immediate:
            self._args, self._kwargs = args, kwargs
        self._schedule(self._wait, self._on_quiet)

        if call_now:
            self._last_result = self.__wrapped__(*args, **kwargs)
        return self._last_result

    def _on_quiet(self, token: int) -> None:
        if token != self._token:
            return
        self._timer_handle = None
        if not self._immediate:
            self._call_saved()

    def _call_saved(self) -> None:
        args, kwargs = self._take_args()
        self._last_result = self.__wrapped__(*args, **kwargs)

    def flush(self) -> Any:
        """Force a call if there is one pending.

        In immediate mode there is never a deferred call, so this only returns the
        last result.
        """
        if self._timer_handle is not None and not self._immediate:
            self._clear_timer()
            self._call_saved()
        return self._last_result


class Throttler(_ControllerBase, Generic[P]):
    """Class that prevents calling `func` more than once per `wait` ms.

    Parameters
    ----------
    func : Callable[P, Any]
        a function to wrap
    wait : float, optional
        the minimum interval in ms that must pass before the function is called again,
        by default 0
    leading : bool, optional
        Whether to invoke the function on the first call of a window, by default True
    trailing : bool, optional
        Whether to invoke the function once more at the end of a window, if calls
        arrived during it, by default True
    timer : TimerService, optional
        timer service used to schedule trailing calls, by default the service
        returned by `get_timer_service()`
    clock : Callable[[], float], optional
        returns the current time in ms, by default `timer.now`
    """

    def __init__(
        self,
        func: Callable[P, Any],
        wait: float = 0,
        leading: bool = True,
        trailing: bool = True,
        *,
        timer: TimerService | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        super().__init__(func, wait, timer, clock)
        self._leading: bool = bool(leading)
        self._trailing: bool = bool(trailing)
        self._previous: float | None = None

    @property
    def leading(self) -> bool:
        return self._leading

    @property
    def trailing(self) -> bool:
        return self._trailing

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> Any:
        """Call underlying function, if the current window allows it."""
        self._check_callable()
        if not (self._leading or self._trailing):
            raise InvalidConfiguration()

        now = self._clock()
        if self._previous is None and not self._leading:
            self._previous = now

        if self._previous is None:
            # never fired: the window counts as elapsed
            remaining = 0.0
        else:
            remaining = self._wait - (now - self._previous)

        # remaining > wait means the clock went backwards
        if remaining <= 0 or remaining > self._wait:
            self._clear_timer()
            self._args, self._kwargs = (), {}
            self._previous = now
            self._last_result = self.__wrapped__(*args, **kwargs)
        elif self._trailing:
            self._args, self._kwargs = args, kwargs
            if self._timer_handle is None:
                self._schedule(remaining, self._on_window_end)
        return self._last_result

    def _on_window_end(self, token: int) -> None:
        if token != self._token:
            return
        self._call_trailing()

    def _call_trailing(self) -> None:
        self._previous = self._clock() if self._leading else None
        self._timer_handle = None
        args, kwargs = self._take_args()
        self._last_result = self.__wrapped__(*args, **kwargs)

    def cancel(self) -> None:
        """Cancel any pending calls and forget the current window."""
        super().cancel()
        self._previous = None

    def flush(self) -> Any:
        """Force the trailing call now, if there is one pending."""
        if self._timer_handle is not None:
            self._clear_timer()
            self._call_trailing()
        return self._last_result


def debounce(
    func: Callable[P, Any],
    wait: float = 0,
    immediate: bool = False,
    *,
    timer: TimerService | None = None,
    clock: Callable[[], float] | None = None,
) -> Debouncer[P]:
    """Create a [`Debouncer`][pacer.Debouncer] around `func`.

    `func` is only checked for callability when the debouncer is first called.
    """
    return Debouncer(func, wait, immediate, timer=timer, clock=clock)


def throttle(
    func: Callable[P, Any],
    wait: float = 0,
    leading: bool = True,
    trailing: bool = True,
    *,
    timer: TimerService | None = None,
    clock: Callable[[], float] | None = None,
) -> Throttler[P]:
    """Create a [`Throttler`][pacer.Throttler] around `func`.

    Both `func` and the `leading`/`trailing` combination are only validated when
    the throttler is first called.
    """
    return Throttler(func, wait, leading, trailing, timer=timer, clock=clock)


def throttled(
    func: Callable[P, Any] | None = None,
    timeout: float = 100,
    leading: bool = True,
    trailing: bool = True,
    *,
    timer: TimerService | None = None,
    clock: Callable[[], float] | None = None,
) -> Throttler[P] | Callable[[Callable[P, Any]], Throttler[P]]:
    """Create a throttled function that invokes func at most once per timeout.

    The throttled function comes with a `cancel` method to cancel delayed func
    invocations and a `flush` method to immediately invoke them. Options
    indicate whether func should be invoked on the leading and/or trailing
    edge of the wait timeout. The trailing call uses the last arguments provided
    to the throttled function. Calls to the throttled function return the result
    of the last func invocation.

    This decorator may be used with or without parameters.

    Parameters
    ----------
    func : Callable
        A function to throttle
    timeout : float
        Timeout in milliseconds to wait before allowing another call, by default 100
    leading : bool
        Whether to invoke the function on the leading edge of the wait timer,
        by default True
    trailing : bool
        Whether to invoke the function on the trailing edge of the wait timer,
        by default True
    timer : TimerService, optional
        Timer service to schedule trailing calls on, by default the global one.
    clock : Callable[[], float], optional
        Clock returning the current time in ms, by default `timer.now`

    Examples
    --------
    ```python
    from pacer import throttled

    @throttled(timeout=50)
    def on_scroll(position: int) -> None:
        # do something possibly expensive
        ...

    # no more than once every 50 milliseconds, plus one catch-up call
    for pos in range(1000):
        on_scroll(pos)
    ```
    """

    def deco(func: Callable[P, Any]) -> Throttler[P]:
        return Throttler(func, timeout, leading, trailing, timer=timer, clock=clock)

    return deco(func) if func is not None else deco


def debounced(
    func: Callable[P, Any] | None = None,
    timeout: float = 100,
    leading: bool = False,
    *,
    timer: TimerService | None = None,
    clock: Callable[[], float] | None = None,
) -> Debouncer[P] | Callable[[Callable[P, Any]], Debouncer[P]]:
    """Create a debounced function that delays invoking `func`.

    `func` will not be invoked until `timeout` ms have elapsed since the last time
    the debounced function was invoked.

    The debounced function comes with a `cancel` method to cancel delayed func
    invocations and a `flush` method to immediately invoke them. The func is
    invoked with the *last* arguments provided to the debounced function, or,
    with `leading=True`, with the *first* arguments of each burst. Calls to the
    debounced function return the result of the last `func` invocation.

    This decorator may be used with or without parameters.

    Parameters
    ----------
    func : Callable
        A function to debounce
    timeout : float
        Timeout in milliseconds to wait before allowing another call, by default 100
    leading : bool
        Whether to invoke the function on the leading edge of the wait timer
        (instead of the trailing edge), by default False
    timer : TimerService, optional
        Timer service to schedule deferred calls on, by default the global one.
    clock : Callable[[], float], optional
        Clock returning the current time in ms, by default `timer.now`

    Examples
    --------
    ```python
    from pacer import debounced

    @debounced(timeout=50)
    def on_resize(width: int, height: int) -> None:
        # do something possibly expensive
        ...

    # called ONCE, 50 ms after the last resize event
    for w in range(100):
        on_resize(w, w)
    ```
    """

    def deco(func: Callable[P, Any]) -> Debouncer[P]:
        return Debouncer(func, timeout, leading, timer=timer, clock=clock)

    return deco(func) if func is not None else deco


_compiled: bool


def __getattr__(name: str) -> Any:
    if name == "_compiled":
        return hasattr(Debouncer, "__mypyc_attrs__")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
