"""Pacing and bounded-concurrency primitives for the batch job.

Two patterns are exposed:

1. **Pacer** -- inserts a fixed delay between units of work (one artist).
   The delay runs from whichever came last: the previous start or the
   previous finish.  With one worker that is a plain sleep after each
   artist; with several workers starts are still spaced apart, so raising
   the worker count never raises the request rate against upstream APIs.
   Waits are interruptible by a stop signal so a graceful drain does not
   sit out the remainder of a pacing delay.

2. **throttled_gather** -- a drop-in replacement for ``asyncio.gather`` that
   wraps each awaitable in a semaphore acquire/release, bounding how many
   artists are in flight at once.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


class Pacer:
    """Fixed-delay gate shared across workers.

    Parameters
    ----------
    interval_seconds:
        Seconds that must pass after the most recent :meth:`wait` return or
        :meth:`mark_finished` call before the next :meth:`wait` returns.
        The first call never waits.
    """

    def __init__(self, interval_seconds: float) -> None:
        if interval_seconds < 0:
            msg = f"interval_seconds must be >= 0, got {interval_seconds}"
            raise ValueError(msg)
        self._interval = interval_seconds
        self._last_mark: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def mark_finished(self) -> None:
        """Record that a unit of work just ended; the delay restarts from now."""
        self._last_mark = time.monotonic()

    async def wait(self, stop_event: asyncio.Event | None = None) -> bool:
        """Block until the next slot opens.

        Returns ``False`` if *stop_event* was set while waiting (the caller
        should not start new work), ``True`` otherwise.
        """
        async with self._lock:
            if stop_event is not None and stop_event.is_set():
                return False

            # Re-read after every sleep: a finish may land while we wait.
            while self._last_mark > 0:
                remaining = self._interval - (time.monotonic() - self._last_mark)
                if remaining <= 0:
                    break
                if stop_event is None:
                    await asyncio.sleep(remaining)
                    continue
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=remaining)
                except asyncio.TimeoutError:
                    continue
                return False

            self._last_mark = time.monotonic()
            return True


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore,
    return_exceptions: bool = False,
) -> list[_T | BaseException]:
    """Run awaitables concurrently, at most ``semaphore`` slots at a time.

    Results come back in input order, mirroring ``asyncio.gather``.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)
