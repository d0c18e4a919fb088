"""Deterministic error model for async helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCode(IntEnum):
    OPERATION_FAILED = 1
    TIMED_OUT = 2
    EXHAUSTED = 3
    REJECTED = 4
    INVALID_POLICY = 5


@dataclass
class AsyncAssistError(Exception):
    message: str
    code: ErrorCode = ErrorCode.OPERATION_FAILED
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class OperationTimeoutError(AsyncAssistError):
    """A deadline elapsed before the guarded work settled."""

    code: ErrorCode = ErrorCode.TIMED_OUT
    timeout_ms: float = 0


@dataclass
class RetryExhaustedError(AsyncAssistError):
    """Every attempt failed and none of them left a meaningful reason."""

    code: ErrorCode = ErrorCode.EXHAUSTED
    attempts: int = 0


@dataclass
class RejectedError(AsyncAssistError):
    message: str = ""
    code: ErrorCode = ErrorCode.REJECTED


def format_ms(ms: float) -> str:
    value = float(ms)
    if value.is_integer():
        return str(int(value))
    return str(value)


def timed_out_message(ms: float) -> str:
    return f"timed out after {format_ms(ms)}ms"


def exhausted_message(attempts: int) -> str:
    return f"failed after {attempts} tries"


def is_empty_reason(error: BaseException) -> bool:
    """True for a rejection that carried no reason at all."""
    return isinstance(error, RejectedError) and not error.message and not error.hint
