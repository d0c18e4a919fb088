from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

_TIMING_TEST_FILES = {
    "test_retry_timeout.py",
    "test_sleep.py",
    "test_timeout.py",
}


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))
        name = path.name

        if "property" in path.parts:
            item.add_marker(pytest.mark.property)

        if name in _TIMING_TEST_FILES:
            item.add_marker(pytest.mark.slow)


@dataclass(frozen=True)
class StubCall:
    called_at: float


@dataclass
class Stub:
    """Records calls with loop timestamps and forwards the 1-based call number."""

    callback: Callable[[int], Any]
    calls: list[StubCall] = field(default_factory=list)

    def __call__(self) -> Any:
        self.calls.append(StubCall(called_at=asyncio.get_running_loop().time()))
        return self.callback(len(self.calls))


@pytest.fixture
def stub() -> type[Stub]:
    return Stub


@dataclass
class TimerTracker:
    handles: list[asyncio.TimerHandle] = field(default_factory=list)

    def pending(self) -> list[asyncio.TimerHandle]:
        now = asyncio.get_running_loop().time()
        return [handle for handle in self.handles if not handle.cancelled() and handle.when() > now]


@pytest.fixture
def track_timers(monkeypatch: pytest.MonkeyPatch) -> Callable[[], TimerTracker]:
    """Patch ``call_later`` on the running loop and collect every handle it returns."""

    def install() -> TimerTracker:
        loop = asyncio.get_running_loop()
        original = loop.call_later
        tracker = TimerTracker()

        def recording_call_later(*args: Any, **kwargs: Any) -> asyncio.TimerHandle:
            handle = original(*args, **kwargs)
            tracker.handles.append(handle)
            return handle

        monkeypatch.setattr(loop, "call_later", recording_call_later)
        return tracker

    return install


class CountingFuture(asyncio.Future):
    """Future that tracks how many done callbacks are still registered."""

    def __init__(self, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        super().__init__(loop=loop)
        self.live_callbacks = 0

    def add_done_callback(self, fn: Callable[..., Any], *, context: Any = None) -> None:
        self.live_callbacks += 1
        super().add_done_callback(fn, context=context)

    def remove_done_callback(self, fn: Callable[..., Any]) -> int:
        removed = super().remove_done_callback(fn)
        self.live_callbacks -= removed
        return removed


@pytest.fixture
def counting_future() -> Callable[[], CountingFuture]:
    def build() -> CountingFuture:
        return CountingFuture(loop=asyncio.get_running_loop())

    return build
