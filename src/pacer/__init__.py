"""Pacer implements debounce and throttle controllers for Python callables.

Wrap a function so that a rapid stream of calls reaches it only once per quiet
period (debounce) or at most once per interval (throttle).
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pacer")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "AsyncioTimerService",
    "Debouncer",
    "InvalidArgument",
    "InvalidConfiguration",
    "ThreadingTimerService",
    "Throttler",
    "TimerService",
    "__version__",
    "_compiled",
    "clear_timer_service",
    "debounce",
    "debounced",
    "get_timer_service",
    "monotonic_ms",
    "set_timer_service",
    "throttle",
    "throttled",
]

from ._exceptions import InvalidArgument, InvalidConfiguration
from ._throttler import (
    Debouncer,
    Throttler,
    _compiled,
    debounce,
    debounced,
    throttle,
    throttled,
)
from ._timer import (
    AsyncioTimerService,
    ThreadingTimerService,
    TimerService,
    clear_timer_service,
    get_timer_service,
    monotonic_ms,
    set_timer_service,
)
