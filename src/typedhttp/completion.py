r"""Fire-once delayed completion.

``after(duration)`` returns a ``Completion`` that fires once, on a
background timer thread, after ``duration`` seconds. Continuations
attached with ``then`` run once after firing, including when they are
attached after the completion already fired.

Example:
    ```pycon
    >>> import time
    >>> from typedhttp.completion import after
    >>> calls = []
    >>> after(0.05).then(lambda completion: calls.append(completion.done()))  # doctest: +ELLIPSIS
    <Completion ...>
    >>> time.sleep(0.1)
    >>> calls
    [True]

    ```
"""

from __future__ import annotations

__all__ = ["Completion", "after"]

import asyncio
import logging
import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

logger: logging.Logger = logging.getLogger(__name__)


class Completion:
    r"""A signal that fires once after a delay.

    Args:
        duration: The delay in seconds. Must be >= 0.

    Raises:
        ValueError: If ``duration`` is negative.
    """

    def __init__(self, duration: float) -> None:
        if duration < 0:
            msg = f"duration must be >= 0, got {duration}"
            raise ValueError(msg)
        self.duration = duration
        self._future: Future[None] = Future()
        self._timer = threading.Timer(duration, self._fire)
        self._timer.daemon = True

    def __repr__(self) -> str:
        if self._future.cancelled():
            state = "cancelled"
        elif self._future.done():
            state = "fired"
        else:
            state = "pending"
        return f"<{self.__class__.__qualname__} duration={self.duration} {state}>"

    def __await__(self) -> Generator[None, None, None]:
        # cancelling an awaiting task leaves the completion itself pending
        return asyncio.shield(asyncio.wrap_future(self._future)).__await__()

    def start(self) -> Completion:
        r"""Start the timer. ``after`` does this for you."""
        self._timer.start()
        return self

    def _fire(self) -> None:
        # set_running_or_notify_cancel returns False if cancel() won the race
        if self._future.set_running_or_notify_cancel():
            logger.debug(f"Completion fired after {self.duration}s")
            self._future.set_result(None)

    def then(self, continuation: Callable[[Completion], None]) -> Completion:
        r"""Attach a continuation called with this completion once it has
        fired.

        The continuation runs on the timer thread, or immediately on the
        calling thread if the completion already fired. It never runs if
        the completion is cancelled first.

        Returns:
            The completion itself, so calls can be chained.
        """

        def run(future: Future[None]) -> None:
            if future.cancelled():
                return
            continuation(self)

        self._future.add_done_callback(run)
        return self

    def cancel(self) -> bool:
        r"""Cancel the completion if it has not fired yet.

        Returns:
            ``True`` if the completion is cancelled, ``False`` if it
            already fired.
        """
        cancelled = self._future.cancel()
        if cancelled:
            self._timer.cancel()
        return cancelled

    def cancelled(self) -> bool:
        return self._future.cancelled()

    def done(self) -> bool:
        r"""Return ``True`` once the completion fired or was cancelled."""
        return self._future.done()

    def wait(self, timeout: float | None = None) -> bool:
        r"""Block until the completion fires.

        Returns:
            ``True`` if the completion fired, ``False`` on timeout or
            cancellation.
        """
        try:
            self._future.result(timeout=timeout)
        except (CancelledError, FutureTimeoutError):
            return False
        return True


def after(duration: float) -> Completion:
    r"""Return a started completion firing after ``duration`` seconds.

    Args:
        duration: The delay in seconds. Must be >= 0.

    Returns:
        The completion.
    """
    return Completion(duration).start()
