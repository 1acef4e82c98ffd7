from __future__ import annotations

from typing import Any, Iterator

from .runtime_types import PlayerState
from .runtime_utils import compute_win_amount, normalize_player_name, optional_str


class PlayerLedger:
    """Connected players keyed by connection id.

    The ledger checks player-level preconditions only; round phase checks
    belong to the state machine that owns it.
    """

    def __init__(self) -> None:
        self._players: dict[str, PlayerState] = {}

    def __contains__(self, peer_id: object) -> bool:
        return peer_id in self._players

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[PlayerState]:
        return iter(list(self._players.values()))

    def get(self, peer_id: str) -> PlayerState | None:
        return self._players.get(peer_id)

    def join(self, peer_id: str, user_id: Any = None, name: Any = None) -> PlayerState:
        existing = self._players.get(peer_id)
        if existing is not None:
            return existing
        player = PlayerState(
            peer_id=peer_id,
            user_id=optional_str(user_id) or peer_id,
            name=normalize_player_name(name),
        )
        self._players[peer_id] = player
        return player

    def place_bet(self, peer_id: str, amount: Any) -> PlayerState | None:
        player = self._players.get(peer_id)
        if player is None:
            return None
        player.bet = amount
        player.status = "betting"
        return player

    def cash_out(self, peer_id: str, multiplier: float) -> PlayerState | None:
        player = self._players.get(peer_id)
        if player is None or player.status != "betting":
            return None
        player.win_amount = compute_win_amount(player.bet, multiplier)
        player.status = "cashed-out"
        return player

    def leave(self, peer_id: str) -> PlayerState | None:
        return self._players.pop(peer_id, None)

    def mark_lost(self) -> list[PlayerState]:
        lost: list[PlayerState] = []
        for player in self._players.values():
            if player.status == "betting":
                player.status = "lost"
                lost.append(player)
        return lost

    def reset_all(self) -> None:
        for player in self._players.values():
            player.reset_bet()

    def to_payload(self) -> list[dict[str, Any]]:
        return [player.to_payload() for player in self._players.values()]
