"""Caller-owned cancellation signal for blocking client calls.

A ``CancelToken`` is the synchronous counterpart of a context deadline: the
caller keeps a reference, passes it to ``WeatherClient.current`` and may call
``cancel()`` from any thread. A token created with a ``timeout`` also fires on
its own once the deadline passes.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from typing import Callable, Optional, TypeVar

from openmeteo.errors import CancelledError

T = TypeVar("T")

# Upper bound between cancellation checks while a request is in flight.
_POLL_INTERVAL = 0.05


class CancelToken:
    """Thread-safe, one-shot cancellation flag with an optional deadline."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, ``None`` when the token has none."""

        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or ``timeout`` elapses; return ``cancelled``."""

        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancelledError("request cancelled")


def run_cancellable(
    fn: Callable[[], T],
    token: CancelToken,
    *,
    on_abandon: Callable[[T], None],
) -> T:
    """Run ``fn`` on a worker thread and return its result unless ``token`` fires.

    On cancellation the caller gets ``CancelledError`` straight away; whatever
    ``fn`` eventually returns is handed to ``on_abandon`` so it can be released.
    Exceptions raised by ``fn`` propagate unchanged.
    """

    token.raise_if_cancelled()
    future: Future = Future()

    def _worker() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn())
        except BaseException as exc:  # re-raised on the caller's thread
            future.set_exception(exc)

    threading.Thread(target=_worker, name="openmeteo-request", daemon=True).start()

    while not future.done():
        if token.wait(_POLL_INTERVAL):
            future.add_done_callback(lambda done: _abandon(done, on_abandon))
            raise CancelledError("request cancelled")
    return future.result()


def _abandon(future: Future, on_abandon: Callable[[T], None]) -> None:
    if future.exception() is None:
        on_abandon(future.result())


__all__ = ["CancelToken", "run_cancellable"]
