from __future__ import annotations

import math
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from .runtime_constants import DEFAULT_PLAYER_NAME


def now_ms() -> int:
    return int(time.time() * 1000)


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def random_id() -> str:
    return str(uuid.uuid4())


def optional_str(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value)
    return normalized or None


def normalize_player_name(value: Any) -> str:
    return optional_str(value) or DEFAULT_PLAYER_NAME


def format_multiplier(multiplier: float) -> str:
    return f"{multiplier:.2f}x"


def compute_win_amount(bet: Any, multiplier: float) -> Any:
    # Bets are stored unvalidated; an amount that cannot be floored pays None (null on the wire).
    try:
        return math.floor(bet * multiplier)
    except (TypeError, ValueError, OverflowError):
        return None
