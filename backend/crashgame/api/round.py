from __future__ import annotations

from fastapi import APIRouter, HTTPException

from crashgame.runtime import runtime
from crashgame.schemas.round import HistoryResponse, RoundStateResponse

router = APIRouter(tags=["round"])


def _require_running() -> None:
    if not runtime.running:
        raise HTTPException(status_code=503, detail="Round runtime is not running")


@router.get("/api/state", response_model=RoundStateResponse)
async def round_state() -> dict[str, object]:
    _require_running()
    return await runtime.get_snapshot()


@router.get("/api/history", response_model=HistoryResponse)
async def round_history() -> dict[str, object]:
    _require_running()
    return {"entries": await runtime.get_history()}
