"""Shared fakes for the analyzer test suite."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

import pytest

from keyword_analyzer.config import Settings


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Records requested delays, advances an optional clock and yields once."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.calls: list[float] = []
        self.clock = clock

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)
        await asyncio.sleep(0)


class ScriptedOracle:
    """Answers from per-keyword scripts; exceptions in a script are raised.

    The last entry of a script repeats once the script is exhausted.
    """

    def __init__(self, scripts: dict[str, list[Any]] | None = None, default: Any = "false") -> None:
        self.scripts = {key: list(value) for key, value in (scripts or {}).items()}
        self.default = default
        self.calls: dict[str, int] = defaultdict(int)
        self.ready_error: Exception | None = None
        self.closed = False

    def check_ready(self) -> None:
        if self.ready_error is not None:
            raise self.ready_error

    async def answer(self, keyword: str, topic: str) -> str:
        self.calls[keyword] += 1
        await asyncio.sleep(0)
        script = self.scripts.get(keyword)
        if script:
            outcome = script.pop(0) if len(script) > 1 else script[0]
        else:
            outcome = self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


class CountingPacer:
    def __init__(self) -> None:
        self.acquired = 0

    async def acquire(self) -> None:
        self.acquired += 1


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def publish(self, event: dict[str, Any]) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [event["type"] for event in self.events]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def clocked_sleep(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def scripted_oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture()
def pacer() -> CountingPacer:
    return CountingPacer()


@pytest.fixture()
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture()
def fast_settings() -> Settings:
    return Settings(
        openrouter_api_key="test-key",
        item_delay=0,
        batch_delay=0,
        retry_base_delay=0,
        rate_limit_pause=0,
        consecutive_error_pause=0,
        keepalive_interval=60,
    )
