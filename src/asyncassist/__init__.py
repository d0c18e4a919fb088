"""Async control-flow helpers: sleep, timeout, deferred and retry."""

from .config import AsyncAssistConfig, load_config
from .deferred import Deferred, deferred
from .errors import (
    AsyncAssistError,
    ErrorCode,
    OperationTimeoutError,
    RejectedError,
    RetryExhaustedError,
)
from .logging import configure_logging
from .race import race
from .retry import DEFAULT_POLICY, UNBOUNDED, WAIT_FOR_POLICY, RetryPolicy, retry, wait_for
from .sleep import DelayTimer, sleep
from .timeout import DeadlineGuard, timeout

__all__ = [
    "AsyncAssistConfig",
    "AsyncAssistError",
    "configure_logging",
    "DeadlineGuard",
    "DEFAULT_POLICY",
    "DelayTimer",
    "Deferred",
    "deferred",
    "ErrorCode",
    "load_config",
    "OperationTimeoutError",
    "race",
    "RejectedError",
    "retry",
    "RetryExhaustedError",
    "RetryPolicy",
    "sleep",
    "timeout",
    "UNBOUNDED",
    "WAIT_FOR_POLICY",
    "wait_for",
]
