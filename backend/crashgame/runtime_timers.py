from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)

Command = Callable[[], object]


class TimerHandle:
    def __init__(self, key: str, callback: Command, interval_s: float | None = None) -> None:
        self.key = key
        self.callback = callback
        self.interval_s = interval_s
        self.cancelled = False
        self.fired = False
        self.task: asyncio.Task[None] | None = None

    @property
    def repeating(self) -> bool:
        return self.interval_s is not None

    @property
    def active(self) -> bool:
        if self.cancelled:
            return False
        return self.repeating or not self.fired

    def cancel(self) -> None:
        self.cancelled = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


class TimerScheduler:
    """Keyed, cancellable timers whose firings are posted to a command stream.

    A timer never runs its callback directly: when due it posts a command
    through ``post`` and the callback executes on whatever consumes that
    stream. A firing that is already queued when the timer gets cancelled is
    dropped on arrival.
    """

    def __init__(self, post: Callable[[Command], None]) -> None:
        self._post = post
        self.timers: dict[str, TimerHandle] = {}

    def schedule(
        self,
        key: str,
        delay_ms: int,
        callback: Command,
        repeat: bool = False,
    ) -> TimerHandle:
        self.cancel(key)
        delay_s = max(0.0, (delay_ms or 0) / 1000)
        handle = TimerHandle(key, callback, interval_s=delay_s if repeat else None)
        self.timers[key] = handle
        self._spawn(handle, delay_s)
        return handle

    def cancel(self, key: str) -> None:
        handle = self.timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def clear(self) -> None:
        for key in list(self.timers):
            self.cancel(key)

    def is_active(self, key: str) -> bool:
        handle = self.timers.get(key)
        return handle is not None and handle.active

    def _fire(self, handle: TimerHandle) -> None:
        if not handle.active:
            logger.debug("timer.stale key=%s", handle.key)
            return
        if not handle.repeating:
            handle.fired = True
            if self.timers.get(handle.key) is handle:
                self.timers.pop(handle.key, None)
        handle.callback()

    def _spawn(self, handle: TimerHandle, delay_s: float) -> None:
        loop = asyncio.get_running_loop()

        async def runner() -> None:
            deadline = loop.time() + delay_s
            try:
                while True:
                    await asyncio.sleep(max(0.0, deadline - loop.time()))
                    self._post(lambda: self._fire(handle))
                    if handle.interval_s is None:
                        return
                    deadline += handle.interval_s
                    # Skip deadlines already missed instead of firing a burst.
                    while handle.interval_s > 0 and deadline <= loop.time():
                        deadline += handle.interval_s
            except asyncio.CancelledError:
                return

        handle.task = loop.create_task(runner(), name=f"timer:{handle.key}")
