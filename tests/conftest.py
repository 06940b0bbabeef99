"""Shared test helpers: a simulated clock and an in-memory transport."""

import asyncio
from typing import Callable, Optional, Union

import pytest

from meerkat_client.api.transport import HttpResponse


class FakeTimerHandle:
    """Stand-in for asyncio.TimerHandle."""

    def __init__(self, when: float, delay: float, callback: Callable[[], None]):
        self.when = when
        self.delay = delay
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class FakeClock:
    """Simulated clock whose call_later records timers instead of sleeping."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimerHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay, delay, callback)
        self.timers.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [t for t in self.timers if not t.cancelled()]

    @property
    def delays_ms(self) -> list[int]:
        """Every delay ever armed, in milliseconds."""
        return [round(t.delay * 1000) for t in self.timers]

    def fire_next(self) -> FakeTimerHandle:
        """Jump to the earliest pending timer and run it."""
        handle = min(self.pending, key=lambda t: t.when)
        self.now = handle.when
        handle.cancel()
        handle.callback()
        return handle

    def advance(self, seconds: float) -> None:
        """Move time forward, running every timer that falls due."""
        target = self.now + seconds
        while True:
            due = [t for t in self.pending if t.when <= target]
            if not due:
                break
            self.fire_next()
        self.now = target


class FakeTransport:
    """In-memory transport keyed by URL (query string ignored)."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, Optional[dict]]] = []
        self.responses: dict[str, list[Union[HttpResponse, Exception]]] = {}
        self.default = HttpResponse(status=200, reason="OK", body="{}")
        self.closed = False

    def add(self, url: str, *results: Union[HttpResponse, Exception]) -> None:
        self.responses.setdefault(url, []).extend(results)

    async def get(self, url: str, headers: Optional[dict] = None) -> HttpResponse:
        self.requests.append((url, headers))
        queued = self.responses.get(url.split("?")[0])
        result = queued.pop(0) if queued else self.default
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.requests]


async def _drain(scheduler) -> None:
    """Wait for the scheduler's in-flight fetch, if any."""
    task = scheduler._fetch_task
    if task is not None:
        await task
    await asyncio.sleep(0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def drain() -> Callable:
    """Awaitable helper that lets an in-flight refresh finish."""
    return _drain
