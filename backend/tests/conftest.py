"""
Shared fixtures for the round engine tests.

Provides:
  - ``fake_time`` — a controllable monotonic time source.
  - ``recorder`` — a ``Broadcaster`` that records every event.
  - ``scheduler`` — a ``TimerScheduler`` whose timers only fire on demand.
  - ``make_round`` — factory building a ``CrashRound`` wired to the above.
"""

from __future__ import annotations

from typing import Any

import pytest

from crashgame.runtime_broadcast import Broadcaster
from crashgame.runtime_clock import MultiplierClock
from crashgame.runtime_round import CrashRound
from crashgame.runtime_timers import TimerHandle, TimerScheduler


class FakeTime:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubRandom:
    """Stands in for ``random.Random``; ``random()`` returns a fixed fraction."""

    def __init__(self, value: float = 0.5) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


class RecordingBroadcaster(Broadcaster):
    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []
        self.sent: list[tuple[str, str, Any]] = []

    def emit(self, event: str, data: Any) -> None:
        self.events.append((event, data))

    def send(self, peer_id: str, event: str, data: Any) -> None:
        self.sent.append((peer_id, event, data))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def last(self, event: str) -> Any:
        for name, data in reversed(self.events):
            if name == event:
                return data
        raise AssertionError(f"event {event!r} was never emitted")

    def clear(self) -> None:
        self.events.clear()
        self.sent.clear()


class ManualScheduler(TimerScheduler):
    """Timers never start a task; tests fire them explicitly."""

    def __init__(self) -> None:
        super().__init__(post=lambda command: command())

    def _spawn(self, handle: TimerHandle, delay_s: float) -> None:
        handle.delay_s = delay_s

    def fire(self, key: str, times: int = 1) -> None:
        for _ in range(times):
            handle = self.timers.get(key)
            if handle is None:
                raise AssertionError(f"no active timer {key!r}")
            self._fire(handle)


@pytest.fixture()
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture()
def recorder() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def make_round(recorder, scheduler, fake_time):
    """
    Factory fixture building a round with a fixed crash fraction.

    Usage::

        def test_something(make_round):
            game = make_round(crash_fraction=0.5)  # crash point 17.5s
    """

    def factory(crash_fraction: float = 0.5) -> CrashRound:
        return CrashRound(
            recorder,
            scheduler,
            clock=MultiplierClock(time_source=fake_time),
            rng=StubRandom(crash_fraction),
        )

    return factory


@pytest.fixture()
def running_round(make_round, scheduler):
    """A round with player ``p1`` betting 100 that has just entered running."""
    game = make_round()
    game.join("p1", user_id="u1", name="alice")
    game.place_bet("p1", 100)
    scheduler.fire("countdown", times=5)
    assert game.phase == "running"
    return game


class FakeWebSocket:
    """Collects frames sent by a ``ConnectionHub`` writer task."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed_with: int | None = None

    async def send_json(self, data: dict[str, Any]) -> None:
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code

    def types(self) -> list[str]:
        return [message["type"] for message in self.sent]
