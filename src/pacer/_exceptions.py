from __future__ import annotations

from typing import Any


class InvalidArgument(TypeError):
    """Error raised when a controller wraps something that is not callable."""

    __module__ = "pacer"

    def __init__(self, func: Any) -> None:
        self.func = func
        super().__init__(
            f"Expected a function to debounce or throttle, "
            f"got {type(func).__name__}: {func!r}"
        )


class InvalidConfiguration(ValueError):
    """Error raised when a throttle has neither edge enabled.

    A throttle with ``leading=False`` and ``trailing=False`` can never fire.
    """

    __module__ = "pacer"

    def __init__(self, msg: str = "") -> None:
        super().__init__(
            msg
            or "Throttle must fire on at least one edge: "
            "`leading` and `trailing` cannot both be False."
        )
