from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable

from fastapi import WebSocket, WebSocketDisconnect

from .runtime_broadcast import ConnectionHub
from .runtime_message_handlers import handle_message as handle_round_message
from .runtime_round import CrashRound
from .runtime_timers import TimerScheduler
from .runtime_utils import now_ms, random_id

logger = logging.getLogger(__name__)

Command = Callable[[], Any]


class CrashRuntime:
    """Owns the shared round and the single task that mutates it.

    Client messages, timer firings and read queries are all queued as
    commands and executed one at a time, in arrival order, by the owner task.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[tuple[Command, asyncio.Future[Any] | None]] | None = None
        self._owner: asyncio.Task[None] | None = None
        self._ws_stats: dict[str, int] = {
            "connectAttempts": 0,
            "connectSuccess": 0,
            "connectRejected": 0,
            "disconnects": 0,
            "messageReceived": 0,
            "pingReceived": 0,
            "invalidMessages": 0,
            "ignoredCommands": 0,
            "commandFailures": 0,
            "sendFailures": 0,
            "sendDropped": 0,
            "roundsStarted": 0,
            "roundsCrashed": 0,
            "cashOuts": 0,
            "activeConnections": 0,
            "peakConnections": 0,
        }
        self.hub = ConnectionHub(on_stat=self._increment_stat)
        self.scheduler = TimerScheduler(self.post)
        self.game = self._create_game()

    def _create_game(self) -> CrashRound:
        return CrashRound(self.hub, self.scheduler, on_stat=self._increment_stat)

    @property
    def running(self) -> bool:
        return self._owner is not None and not self._owner.done()

    @property
    def active_connections_count(self) -> int:
        return self.hub.active_connections

    def _increment_stat(self, key: str, amount: int = 1) -> None:
        self._ws_stats[key] = int(self._ws_stats.get(key, 0)) + amount

    def _on_connect(self) -> None:
        self._increment_stat("connectSuccess")
        active_connections = int(self._ws_stats.get("activeConnections", 0)) + 1
        self._ws_stats["activeConnections"] = active_connections
        if active_connections > int(self._ws_stats.get("peakConnections", 0)):
            self._ws_stats["peakConnections"] = active_connections

    def _on_disconnect(self) -> None:
        self._increment_stat("disconnects")
        active_connections = max(0, int(self._ws_stats.get("activeConnections", 0)) - 1)
        self._ws_stats["activeConnections"] = active_connections

    def _log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    async def start(self) -> None:
        if self.running:
            return
        self._queue = asyncio.Queue()
        self.hub = ConnectionHub(on_stat=self._increment_stat)
        self.scheduler = TimerScheduler(self.post)
        self.game = self._create_game()
        self._owner = asyncio.create_task(self._consume(), name="crash-round-owner")
        logger.info("Crash round runtime started")

    async def shutdown(self) -> None:
        if self.running:
            await self.submit(self.game.close)
            owner = self._owner
            if owner is not None:
                owner.cancel()
                try:
                    await owner
                except asyncio.CancelledError:
                    pass
        else:
            self.game.close()
        queue = self._queue
        self._owner = None
        self._queue = None
        if queue is not None:
            self._fail_pending(queue)
        await self.hub.close_all()
        self._ws_stats["activeConnections"] = 0
        logger.info("Crash round runtime stopped")

    def _fail_pending(self, queue: asyncio.Queue[tuple[Command, asyncio.Future[Any] | None]]) -> None:
        dropped = 0
        while True:
            try:
                _, future = queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            dropped += 1
            if future is not None and not future.done():
                future.set_exception(RuntimeError("Crash runtime is not started"))
        if dropped:
            logger.info("Dropped %s queued round commands on shutdown", dropped)

    def post(self, command: Command) -> None:
        if self._queue is None:
            raise RuntimeError("Crash runtime is not started")
        self._queue.put_nowait((command, None))

    async def submit(self, command: Command) -> Any:
        if self._queue is None:
            raise RuntimeError("Crash runtime is not started")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((command, future))
        return await future

    async def _consume(self) -> None:
        queue = self._queue
        assert queue is not None
        while True:
            command, future = await queue.get()
            try:
                result = command()
            except Exception as exc:
                self._increment_stat("commandFailures")
                logger.exception("Round command failed: %r", command)
                if future is not None and not future.done():
                    future.set_exception(exc)
                continue
            if future is not None and not future.done():
                future.set_result(result)

    async def get_snapshot(self) -> dict[str, Any]:
        return await self.submit(self.game.snapshot)

    async def get_history(self) -> list[dict[str, Any]]:
        return await self.submit(self.game.history.to_payload)

    async def get_ws_stats(self) -> dict[str, Any]:
        phase = await self.submit(lambda: self.game.phase) if self.running else None
        return {
            "generatedAt": now_ms(),
            "phase": phase,
            "stats": dict(self._ws_stats),
        }

    async def handle_websocket(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._increment_stat("connectAttempts")

        if not self.running:
            self._increment_stat("connectRejected")
            await websocket.close(code=1013)
            self._log_ws_event("connect_rejected", level=logging.WARNING, code="NOT_RUNNING")
            return

        peer_id = random_id()
        self._on_connect()
        self._log_ws_event("connect", peerId=peer_id)
        self.post(lambda: self._open_session(peer_id, websocket))

        disconnect_code: int | None = None
        disconnect_reason = "unknown"

        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    self._increment_stat("invalidMessages")
                    continue
                if not isinstance(data, dict):
                    self._increment_stat("invalidMessages")
                    continue
                self._increment_stat("messageReceived")
                self.post(lambda data=data: handle_round_message(self, peer_id, data))
        except WebSocketDisconnect as exc:
            disconnect_code = exc.code
            disconnect_reason = "websocket_disconnect"
        except Exception:
            disconnect_reason = "server_error"
            logger.exception("Unexpected websocket error for peer %s", peer_id)
        finally:
            self._cleanup_connection(peer_id, reason=disconnect_reason, close_code=disconnect_code)

    def _open_session(self, peer_id: str, websocket: WebSocket) -> None:
        # Fan-out for this peer starts at its gameState snapshot.
        self.hub.register(peer_id, websocket)
        self.game.connect(peer_id)

    def _close_session(self, peer_id: str) -> None:
        self.hub.unregister(peer_id)
        self.game.leave(peer_id)

    def _cleanup_connection(
        self,
        peer_id: str,
        reason: str = "unknown",
        close_code: int | None = None,
    ) -> None:
        self._on_disconnect()
        if self.running:
            self.post(lambda: self._close_session(peer_id))
        else:
            self.hub.unregister(peer_id)
        self._log_ws_event(
            "disconnect",
            peerId=peer_id,
            reason=reason,
            closeCode=close_code,
        )


runtime = CrashRuntime()
