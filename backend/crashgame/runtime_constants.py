from __future__ import annotations

from .config import settings
from .runtime_types import RoundPhase

COUNTDOWN_SECONDS = settings.countdown_seconds
COUNTDOWN_TICK_MS = settings.countdown_tick_ms
MULTIPLIER_TICK_MS = settings.multiplier_tick_ms
RESET_DELAY_MS = settings.reset_delay_ms
CRASH_POINT_MIN = settings.crash_point_min
CRASH_POINT_MAX = settings.crash_point_max
GROWTH_RATE = settings.multiplier_growth_rate
HISTORY_LIMIT = settings.history_limit
OUTBOX_LIMIT = settings.outbox_limit

DEFAULT_PLAYER_NAME = "Player"

BETTING_PHASES: frozenset[RoundPhase] = frozenset({"waiting", "counting"})

