import time
from inspect import Parameter, signature
from typing import Callable
from unittest.mock import Mock

import pytest

from pacer import (
    Debouncer,
    ThreadingTimerService,
    Throttler,
    _compiled,
    debounce,
    debounced,
    throttle,
    throttled,
)


def test_debounced() -> None:
    mock1 = Mock()
    f1 = debounced(mock1, timeout=50, leading=False)
    f2 = Mock()

    for _ in range(10):
        f1()
        f2()

    time.sleep(0.3)
    mock1.assert_called_once()

    assert f2.call_count == 10


def test_debounced_leading() -> None:
    mock1 = Mock()
    f1 = debounced(mock1, timeout=50, leading=True)
    f2 = Mock()

    for _ in range(10):
        f1()
        f2()

    # the first call of the burst fires synchronously, the quiet period only re-arms
    mock1.assert_called_once()
    time.sleep(0.3)
    mock1.assert_called_once()
    assert f2.call_count == 10


def test_throttled() -> None:
    mock1 = Mock()
    f1 = throttled(mock1, timeout=50, leading=True)
    f2 = Mock()

    for _ in range(10):
        f1()
        f2()

    time.sleep(0.3)
    assert mock1.call_count == 2
    assert f2.call_count == 10


def test_throttled_trailing() -> None:
    mock1 = Mock()
    f1 = throttled(mock1, timeout=50, leading=False)
    f2 = Mock()

    for _ in range(10):
        f1()
        f2()

    time.sleep(0.3)
    assert mock1.call_count == 1
    assert f2.call_count == 10


def test_cancel() -> None:
    mock1 = Mock()
    f1 = debounced(mock1, timeout=50, leading=False)
    f1()
    f1()
    f1.cancel()
    time.sleep(0.2)
    mock1.assert_not_called()


def test_flush() -> None:
    mock1 = Mock()
    f1 = debounced(mock1, timeout=50, leading=False)
    f1()
    f1()
    f1.flush()
    time.sleep(0.2)
    mock1.assert_called_once()


def test_deferred_call_uses_last_args() -> None:
    mock1 = Mock()
    f1 = debounce(mock1, 20, timer=ThreadingTimerService())
    f1(1)
    f1(2)
    f1(3, key="value")
    time.sleep(0.2)
    mock1.assert_called_once_with(3, key="value")


@pytest.mark.parametrize("deco", [debounced, throttled])
def test_throttled_debounced_signature(deco: Callable) -> None:
    mock = Mock()

    @deco(timeout=0, leading=True)
    def f1(x: int) -> None:
        """Doc."""
        mock(x)

    # make sure we can still inspect the signature
    assert signature(f1).parameters["x"] == Parameter(
        "x", Parameter.POSITIONAL_OR_KEYWORD, annotation=int
    )

    f1(1)
    mock.assert_called_once_with(1)

    if not _compiled:
        # unfortunately, dynamic assignment of __doc__ and stuff isn't possible in mypyc
        assert f1.__doc__ == "Doc."
        assert f1.__name__ == "f1"


def test_bare_decorators() -> None:
    @debounced
    def f1() -> None: ...

    @throttled
    def f2() -> None: ...

    assert isinstance(f1, Debouncer)
    assert f1.wait == 100
    assert isinstance(f2, Throttler)
    assert f2.wait == 100
    assert f2.leading and f2.trailing


def test_constructor_defaults() -> None:
    f1 = debounce(Mock())
    f2 = throttle(Mock())
    assert f1.wait == 0
    assert not f1.immediate
    assert f2.wait == 0
    assert f2.leading and f2.trailing

    assert debounce(Mock(), None).wait == 0  # type: ignore[arg-type]


WARN_FACTORIES = [
    lambda: debounce(Mock(), -5),
    lambda: throttle(Mock(), -5),
    lambda: Debouncer(Mock(), -5),
    lambda: Throttler(Mock(), -5),
    lambda: debounced(Mock(), timeout=-5),
    lambda: throttled(timeout=-5)(Mock()),
]


@pytest.mark.skipif(_compiled, reason="compiled frames are not inspectable")
@pytest.mark.parametrize("factory", WARN_FACTORIES)
def test_negative_wait_warns(factory: Callable) -> None:
    with pytest.warns(UserWarning, match="non-negative") as record:
        controller = factory()
    assert controller.wait == 0
    # the warning points at the line that created the controller
    assert record[0].filename == __file__
