from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from crashgame.runtime import runtime

router = APIRouter(tags=["system"])


@router.get("/")
async def root() -> dict[str, object]:
    return {"message": "Crash Game Server is running"}


@router.get("/health")
async def liveness() -> dict[str, object]:
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/api/health")
async def health() -> dict[str, object]:
    snapshot = await runtime.get_snapshot() if runtime.running else None
    return {
        "ok": runtime.running,
        "state": snapshot["state"] if snapshot else None,
        "players": len(snapshot["players"]) if snapshot else 0,
        "activeConnections": runtime.active_connections_count,
    }


@router.get("/api/ws-stats")
async def websocket_stats() -> dict[str, object]:
    return await runtime.get_ws_stats()
