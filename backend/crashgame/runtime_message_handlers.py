from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .runtime import CrashRuntime


def handle_message(
    runtime: "CrashRuntime",
    peer_id: str,
    data: dict[str, Any],
) -> None:
    message_type = data.get("type")
    game = runtime.game

    if message_type == "ping":
        runtime._increment_stat("pingReceived")
        game.ping(peer_id)
        return

    if message_type == "joinGame":
        game.join(peer_id, user_id=data.get("userId"), name=data.get("userName"))
        return

    if message_type == "placeBet":
        game.place_bet(peer_id, data.get("amount"))
        return

    if message_type == "cashOut":
        game.cash_out(peer_id)
        return

    runtime._increment_stat("invalidMessages")
