from __future__ import annotations

import math
import time
from typing import Callable

from .runtime_constants import GROWTH_RATE


def multiplier_at(elapsed_seconds: float, growth_rate: float = GROWTH_RATE) -> float:
    """Multiplier reached after ``elapsed_seconds`` of a running round."""
    return math.exp(growth_rate * max(0.0, elapsed_seconds))


class MultiplierClock:
    """Wall-clock based multiplier for one running round.

    The multiplier is always derived from the time elapsed since ``start()``
    so a late or skipped tick never shifts the curve.
    """

    def __init__(
        self,
        time_source: Callable[[], float] = time.monotonic,
        growth_rate: float = GROWTH_RATE,
    ) -> None:
        self._time_source = time_source
        self.growth_rate = growth_rate
        self.start_time: float | None = None

    def start(self) -> float:
        self.start_time = self._time_source()
        return self.start_time

    def stop(self) -> None:
        self.start_time = None

    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return max(0.0, self._time_source() - self.start_time)

    def multiplier(self) -> float:
        return multiplier_at(self.elapsed(), self.growth_rate)
