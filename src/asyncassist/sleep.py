"""Cancellable delay future."""

from __future__ import annotations

import asyncio


class DelayTimer:
    """A future resolved with ``None`` once ``ms`` milliseconds have passed."""

    def __init__(self, ms: float, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.ms = ms
        self._loop = loop or asyncio.get_running_loop()
        self.future: asyncio.Future[None] = self._loop.create_future()
        self._handle = self._loop.call_later(max(ms, 0) / 1000, self._fire)
        self.future.add_done_callback(lambda _: self._handle.cancel())

    def _fire(self) -> None:
        if not self.future.done():
            self.future.set_result(None)

    def cancel(self) -> None:
        self._handle.cancel()
        self.future.cancel()


def sleep(ms: float) -> asyncio.Future[None]:
    """Return a future that resolves with ``None`` after ``ms`` milliseconds.

    The timer is armed immediately. Cancelling the returned future also
    cancels the timer, so a sleep that loses a race keeps nothing scheduled.
    """
    return DelayTimer(ms).future
