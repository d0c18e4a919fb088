"""Externally settled futures.

Useful where a callback-style API has to hand its outcome to code that awaits
it. The three handles live on one object and only the first settle counts.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Generator, Iterator
from typing import Any, Generic, TypeVar

from asyncassist.errors import RejectedError

T = TypeVar("T")


class Deferred(Generic[T]):
    def __init__(self, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self.future: asyncio.Future[T] = self._loop.create_future()
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled or self.future.done()

    def resolve(self, value: Any = None) -> None:
        if self.settled:
            return
        self._settled = True
        if inspect.isawaitable(value):
            source = asyncio.ensure_future(value)
            source.add_done_callback(self._adopt)
            return
        self.future.set_result(value)

    def reject(self, reason: object = None) -> None:
        if self.settled:
            return
        self._settled = True
        if isinstance(reason, BaseException):
            self.future.set_exception(reason)
        else:
            self.future.set_exception(RejectedError("" if reason is None else str(reason)))

    def _adopt(self, source: asyncio.Future[T]) -> None:
        if self.future.done():
            if not source.cancelled():
                source.exception()
            return
        if source.cancelled():
            self.future.cancel()
            return
        error = source.exception()
        if error is not None:
            self.future.set_exception(error)
        else:
            self.future.set_result(source.result())

    def __iter__(self) -> Iterator[Any]:
        return iter((self.future, self.resolve, self.reject))

    def __await__(self) -> Generator[Any, None, T]:
        return self.future.__await__()


def deferred() -> Deferred[Any]:
    """Create a :class:`Deferred` bound to the running loop."""
    return Deferred()
