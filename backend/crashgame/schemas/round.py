from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class PlayerView(BaseModel):
    id: str
    userId: str
    name: str
    bet: Any = 0
    status: Literal["waiting", "betting", "cashed-out", "lost"] = "waiting"
    winAmount: Any = 0


class HistoryEntryView(BaseModel):
    multiplier: str = Field(pattern=r"^\d+\.\d{2}x$")
    timestamp: str


class HistoryResponse(BaseModel):
    entries: list[HistoryEntryView] = Field(default_factory=list)


class RoundStateResponse(BaseModel):
    state: Literal["waiting", "counting", "running", "crashed"]
    multiplier: float = Field(ge=1.0)
    countdown: int
    players: list[PlayerView] = Field(default_factory=list)
    history: list[HistoryEntryView] = Field(default_factory=list)
