from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from fastapi import WebSocket

from .runtime_constants import OUTBOX_LIMIT

logger = logging.getLogger(__name__)


class Broadcaster:
    """Outbound event port used by the round engine.

    Every method is fire-and-forget: it must not block and must not raise
    into the caller. Implementations provide ``emit`` (all clients) and
    ``send`` (one client).
    """

    def emit(self, event: str, data: Any) -> None:
        raise NotImplementedError

    def send(self, peer_id: str, event: str, data: Any) -> None:
        raise NotImplementedError

    def game_state(self, peer_id: str, snapshot: dict[str, Any]) -> None:
        self.send(peer_id, "gameState", snapshot)

    def pong(self, peer_id: str, server_time: int) -> None:
        self.send(peer_id, "pong", {"serverTime": server_time})

    def players_update(self, players: list[dict[str, Any]]) -> None:
        self.emit("playersUpdate", players)

    def countdown_started(self, countdown: int) -> None:
        self.emit("countdownStarted", countdown)

    def countdown_update(self, countdown: int) -> None:
        self.emit("countdownUpdate", countdown)

    def game_started(self) -> None:
        self.emit("gameStarted", {})

    def multiplier_update(self, multiplier: float) -> None:
        self.emit("multiplierUpdate", multiplier)

    def player_cashed_out(self, player_id: str, multiplier: float, win_amount: Any) -> None:
        self.emit(
            "playerCashedOut",
            {"playerId": player_id, "multiplier": multiplier, "winAmount": win_amount},
        )

    def game_crashed(self, multiplier: float, players: list[dict[str, Any]]) -> None:
        self.emit("gameCrashed", {"multiplier": multiplier, "players": players})

    def game_reset(self, players: list[dict[str, Any]]) -> None:
        self.emit("gameReset", players)


@dataclass
class ClientConnection:
    peer_id: str
    websocket: WebSocket
    outbox: asyncio.Queue[dict[str, Any]] = field(
        default_factory=lambda: asyncio.Queue(maxsize=OUTBOX_LIMIT)
    )
    writer: asyncio.Task[None] | None = None


class ConnectionHub(Broadcaster):
    """WebSocket fan-out: each connection gets a bounded outbox and a writer task."""

    def __init__(self, on_stat: Callable[[str], None] | None = None) -> None:
        self.connections: dict[str, ClientConnection] = {}
        self._on_stat = on_stat or (lambda key: None)

    @property
    def active_connections(self) -> int:
        return len(self.connections)

    def register(self, peer_id: str, websocket: WebSocket) -> ClientConnection:
        connection = ClientConnection(peer_id=peer_id, websocket=websocket)
        connection.writer = asyncio.create_task(
            self._drain(connection),
            name=f"ws-writer:{peer_id}",
        )
        self.connections[peer_id] = connection
        return connection

    def unregister(self, peer_id: str) -> None:
        connection = self.connections.pop(peer_id, None)
        if connection is not None and connection.writer is not None:
            connection.writer.cancel()

    async def close_all(self) -> None:
        connections = list(self.connections.values())
        self.connections.clear()
        for connection in connections:
            if connection.writer is not None:
                connection.writer.cancel()
            try:
                await connection.websocket.close(code=1001)
            except Exception:
                # Socket may already be closed by the client.
                logger.debug("close failed peer=%s", connection.peer_id)

    def emit(self, event: str, data: Any) -> None:
        message = {"type": event, "data": data}
        for connection in list(self.connections.values()):
            self._enqueue(connection, message)

    def send(self, peer_id: str, event: str, data: Any) -> None:
        connection = self.connections.get(peer_id)
        if connection is None:
            return
        self._enqueue(connection, {"type": event, "data": data})

    def _enqueue(self, connection: ClientConnection, message: dict[str, Any]) -> None:
        try:
            connection.outbox.put_nowait(message)
        except asyncio.QueueFull:
            self._on_stat("sendDropped")
            logger.debug(
                "[SEND_DROP] peer=%s type=%s outbox_full=%s",
                connection.peer_id,
                message.get("type"),
                connection.outbox.maxsize,
            )

    async def _drain(self, connection: ClientConnection) -> None:
        while True:
            message = await connection.outbox.get()
            await self._send_safe(connection.websocket, message, peer_id=connection.peer_id)

    async def _send_safe(
        self,
        websocket: WebSocket,
        data: dict[str, Any],
        peer_id: str | None = None,
    ) -> None:
        try:
            await websocket.send_json(data)
        except Exception as exc:
            # Connection may already be closed.
            self._on_stat("sendFailures")
            logger.debug(
                "[SEND_FAIL] peer=%s reason=%s ws_client_state=%s ws_application_state=%s",
                peer_id or "-",
                repr(exc),
                getattr(websocket, "client_state", None),
                getattr(websocket, "application_state", None),
            )
