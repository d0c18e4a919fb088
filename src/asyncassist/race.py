"""First-to-settle-wins combinator."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

T = TypeVar("T")


def mark_retrieved(future: asyncio.Future[Any]) -> None:
    if not future.cancelled():
        future.exception()


async def race(*awaitables: Awaitable[T]) -> T:
    """Settle like whichever awaitable settles first.

    Ties go to the earliest argument. Losing awaitables keep running. Late
    failures of the tasks wrapped here are marked as retrieved; futures passed
    in as-is stay the caller's to observe, and are left without callbacks.
    """
    if not awaitables:
        raise ValueError("race() requires at least one awaitable")

    futures = []
    for item in awaitables:
        future = asyncio.ensure_future(item)
        if future is not item:
            future.add_done_callback(mark_retrieved)
        futures.append(future)

    if not any(future.done() for future in futures):
        await asyncio.wait(futures, return_when=asyncio.FIRST_COMPLETED)

    winner = next(future for future in futures if future.done())
    return winner.result()
