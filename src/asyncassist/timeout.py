"""Deadline guards and the standalone ``timeout`` wrapper."""

from __future__ import annotations

import asyncio
import logging as py_logging
from collections.abc import Awaitable, Callable
from typing import TypeVar, Union

from asyncassist.errors import OperationTimeoutError, timed_out_message
from asyncassist.race import mark_retrieved, race

logger = py_logging.getLogger(__name__)

T = TypeVar("T")

Reason = Union[str, BaseException]
ReasonOverride = Union[Reason, Callable[[], Reason], None]


class DeadlineGuard:
    """A timer whose future fails once ``ms`` milliseconds have elapsed.

    ``reason`` overrides the failure: a string message, an exception instance,
    or a zero-argument callable producing either one, evaluated when the timer
    fires. Whoever creates a guard owns it and must call :meth:`cancel`.
    """

    def __init__(
        self,
        ms: float,
        reason: ReasonOverride = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.ms = ms
        self._reason = reason
        self._loop = loop or asyncio.get_running_loop()
        self.future: asyncio.Future[None] = self._loop.create_future()
        self.error: BaseException | None = None
        self._handle = self._loop.call_later(max(ms, 0) / 1000, self._expire)

    @property
    def expired(self) -> bool:
        return self.error is not None

    def _build_error(self) -> BaseException:
        reason = self._reason() if callable(self._reason) else self._reason
        if isinstance(reason, BaseException):
            return reason
        if reason is None:
            return OperationTimeoutError(timed_out_message(self.ms), timeout_ms=self.ms)
        return OperationTimeoutError(reason, timeout_ms=self.ms)

    def _expire(self) -> None:
        self.error = self._build_error()
        logger.debug("Deadline expired after %sms", self.ms)
        if not self.future.done():
            self.future.set_exception(self.error)

    def cancel(self) -> None:
        self._handle.cancel()
        if not self.future.done():
            self.future.cancel()
        elif not self.future.cancelled():
            self.future.exception()


async def _guarded(source: asyncio.Future[T], guard: DeadlineGuard) -> T:
    return await race(source, guard.future)


def timeout(
    awaitable: Awaitable[T],
    ms: float,
    message: ReasonOverride = None,
) -> asyncio.Future[T]:
    """Wrap ``awaitable`` so it fails if it has not settled within ``ms``.

    The deadline is armed right away. If the awaitable settles first the
    returned future settles the same way; otherwise it fails with
    ``"timed out after <ms>ms"`` or with ``message``. The wrapped awaitable is
    left running either way.
    """
    source = asyncio.ensure_future(awaitable)
    source.add_done_callback(mark_retrieved)
    guard = DeadlineGuard(ms, message)
    wrapped = asyncio.ensure_future(_guarded(source, guard))
    # Also covers a wrapper cancelled before its first step.
    wrapped.add_done_callback(lambda _: guard.cancel())
    return wrapped
