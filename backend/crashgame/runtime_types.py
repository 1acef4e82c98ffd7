from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

RoundPhase = Literal["waiting", "counting", "running", "crashed"]
PlayerStatus = Literal["waiting", "betting", "cashed-out", "lost"]


@dataclass
class PlayerState:
    peer_id: str
    user_id: str
    name: str
    bet: Any = 0
    status: PlayerStatus = "waiting"
    win_amount: Any = 0

    def reset_bet(self) -> None:
        self.bet = 0
        self.status = "waiting"
        self.win_amount = 0

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.peer_id,
            "userId": self.user_id,
            "name": self.name,
            "bet": self.bet,
            "status": self.status,
            "winAmount": self.win_amount,
        }


@dataclass(frozen=True)
class HistoryEntry:
    multiplier: str
    timestamp: str

    def to_payload(self) -> dict[str, str]:
        return {"multiplier": self.multiplier, "timestamp": self.timestamp}


@dataclass
class RoundState:
    phase: RoundPhase = "waiting"
    multiplier: float = 1.0
    countdown: int = 5
    crash_point: float | None = None
