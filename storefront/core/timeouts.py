# storefront/core/timeouts.py
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, TypeVar

from storefront.core.errors import Timeout

T = TypeVar("T")

# Shared pool for bounded blocking work (hashing, store I/O).
_executor = ThreadPoolExecutor(max_workers=16, thread_name_prefix="storefront-bounded")


def call_with_timeout(
    fn: Callable[..., T],
    *args: Any,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """
    Run `fn(*args, **kwargs)` and wait at most `timeout` seconds.

    With `timeout=None` the call runs inline on the current thread.

    Raises:
        Timeout: if the call did not finish in time. The work is not
          interrupted; `Timeout.pending` is its future.
    """
    if timeout is None:
        return fn(*args, **kwargs)

    future = _executor.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        raise Timeout(pending=future) from None


class Deadline:
    """
    A fixed point in time shared by several bounded calls.

    Each `call(...)` gets whatever budget is left; once the deadline has
    passed, calls fail immediately with Timeout.
    """

    def __init__(self, timeout: float | None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = None if timeout is None else clock() + timeout

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise Timeout()
        return call_with_timeout(fn, *args, timeout=remaining, **kwargs)
