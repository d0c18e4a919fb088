"""Retry engine with attempt budget, inter-attempt delay and session deadline."""

from __future__ import annotations

import asyncio
import inspect
import logging as py_logging
import math
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from asyncassist.errors import (
    AsyncAssistError,
    ErrorCode,
    OperationTimeoutError,
    RetryExhaustedError,
    exhausted_message,
    is_empty_reason,
    timed_out_message,
)
from asyncassist.race import race
from asyncassist.sleep import DelayTimer
from asyncassist.timeout import DeadlineGuard

logger = py_logging.getLogger(__name__)

T = TypeVar("T")

Action = Callable[[], Union[T, Awaitable[T]]]

UNBOUNDED = math.inf


class RetryPolicy(BaseModel):
    """How many times to try, how long to pause, and when to give up.

    ``retries`` counts re-tries after the first attempt; ``math.inf`` (or any
    negative number) retries until the deadline. ``delay_ms`` and
    ``timeout_ms`` are milliseconds, ``0`` disables either one.
    """

    model_config = ConfigDict(frozen=True)

    retries: Union[int, float] = 3
    delay_ms: float = Field(default=0, ge=0, allow_inf_nan=False)
    timeout_ms: float = Field(default=0, ge=0, allow_inf_nan=False)

    @field_validator("retries")
    @classmethod
    def _normalize_retries(cls, value: float) -> float:
        if math.isnan(value):
            raise ValueError("retries must be a number")
        if value < 0 or math.isinf(value):
            return UNBOUNDED
        if not float(value).is_integer():
            raise ValueError(f"retries must be a whole number: {value}")
        return int(value)

    @property
    def max_attempts(self) -> float:
        return self.retries + 1

    @property
    def unbounded(self) -> bool:
        return math.isinf(self.retries)


DEFAULT_POLICY = RetryPolicy()
WAIT_FOR_POLICY = RetryPolicy(retries=UNBOUNDED, delay_ms=10, timeout_ms=500)


def resolve_policy(
    base: RetryPolicy,
    policy: RetryPolicy | None = None,
    **overrides: float | None,
) -> RetryPolicy:
    """Layer explicitly set fields of ``policy`` and non-``None`` overrides on ``base``."""
    merged = base.model_dump()
    if policy is not None:
        merged.update(policy.model_dump(exclude_unset=True))
    merged.update({name: value for name, value in overrides.items() if value is not None})
    try:
        return RetryPolicy.model_validate(merged)
    except ValidationError as exc:
        raise AsyncAssistError(
            "Invalid retry policy.",
            code=ErrorCode.INVALID_POLICY,
            hint="; ".join(str(error["msg"]) for error in exc.errors()),
        ) from exc


@dataclass
class _RetrySession:
    policy: RetryPolicy
    attempts: int = 0
    timed_out: bool = False
    last_error: BaseException | None = None
    last_empty: BaseException | None = None
    deadline_error: BaseException | None = None

    @property
    def keep_trying(self) -> bool:
        return not self.timed_out and self.attempts < self.policy.max_attempts

    def capture(self, error: BaseException) -> None:
        # Empty reasons never replace a meaningful one.
        if is_empty_reason(error):
            self.last_empty = error
        else:
            self.last_error = error

    def capture_outcome(self, future: asyncio.Future[object]) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self.capture(error)

    def expire(self) -> OperationTimeoutError:
        self.timed_out = True
        error = OperationTimeoutError(
            timed_out_message(self.policy.timeout_ms),
            timeout_ms=self.policy.timeout_ms,
        )
        if self.last_error is None:
            self.last_error = error
        self.deadline_error = error
        return error


async def _execute(action: Action[T], policy: RetryPolicy) -> T:
    session = _RetrySession(policy=policy)
    guard = DeadlineGuard(policy.timeout_ms, session.expire) if policy.timeout_ms > 0 else None
    watched = [guard.future] if guard is not None else []
    try:
        while True:
            session.attempts += 1
            logger.debug("Running attempt=%s/%s", session.attempts, policy.max_attempts)
            try:
                result = action()
                if inspect.isawaitable(result):
                    outcome = asyncio.ensure_future(result)
                    if not outcome.done():
                        # Keeps the reason even when the deadline wins the race.
                        outcome.add_done_callback(session.capture_outcome)
                    result = await race(outcome, *watched)
                logger.debug("Attempt %s succeeded", session.attempts)
                return result
            except Exception as exc:
                if exc is not session.deadline_error:
                    session.capture(exc)
                    logger.debug("Attempt %s failed: %r", session.attempts, exc)

            # The pause also follows the final attempt; the deadline cuts it short.
            if policy.delay_ms > 0:
                pause = DelayTimer(policy.delay_ms)
                try:
                    with suppress(OperationTimeoutError):
                        await race(pause.future, *watched)
                finally:
                    pause.cancel()
            if not session.keep_trying:
                break

        logger.info(
            "Giving up after %s attempts timed_out=%s",
            session.attempts,
            session.timed_out,
        )
        if session.last_error is not None:
            raise session.last_error
        raise RetryExhaustedError(
            exhausted_message(session.attempts),
            attempts=session.attempts,
        ) from session.last_empty
    finally:
        if guard is not None:
            guard.cancel()


async def retry(
    action: Action[T],
    policy: RetryPolicy | None = None,
    *,
    retries: float | None = None,
    delay_ms: float | None = None,
    timeout_ms: float | None = None,
) -> T:
    """Run ``action`` and return its value, retrying while it fails.

    ``action`` may be sync or async. Without a policy it gets 3 re-tries, no
    delay and no deadline. On failure the last meaningful error raised by
    ``action`` propagates unchanged; when there is none the call fails with
    ``OperationTimeoutError`` if the deadline fired, otherwise with
    ``RetryExhaustedError``.
    """
    resolved = resolve_policy(
        DEFAULT_POLICY,
        policy,
        retries=retries,
        delay_ms=delay_ms,
        timeout_ms=timeout_ms,
    )
    return await _execute(action, resolved)


async def wait_for(
    action: Action[T],
    policy: RetryPolicy | None = None,
    *,
    retries: float | None = None,
    delay_ms: float | None = None,
    timeout_ms: float | None = None,
) -> T:
    """:func:`retry` polling every 10ms for up to 500ms, unbounded attempts."""
    resolved = resolve_policy(
        WAIT_FOR_POLICY,
        policy,
        retries=retries,
        delay_ms=delay_ms,
        timeout_ms=timeout_ms,
    )
    return await _execute(action, resolved)
