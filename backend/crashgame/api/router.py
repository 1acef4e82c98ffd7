from __future__ import annotations

from fastapi import APIRouter

from crashgame.api.round import router as round_router
from crashgame.api.system import router as system_router
from crashgame.api.ws import router as ws_router

api_router = APIRouter()
api_router.include_router(system_router)
api_router.include_router(round_router)
api_router.include_router(ws_router)
