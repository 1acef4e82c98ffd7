from __future__ import annotations

import logging
import random
from typing import Any, Callable

from .runtime_broadcast import Broadcaster
from .runtime_clock import MultiplierClock
from .runtime_constants import (
    BETTING_PHASES,
    COUNTDOWN_SECONDS,
    COUNTDOWN_TICK_MS,
    CRASH_POINT_MAX,
    CRASH_POINT_MIN,
    MULTIPLIER_TICK_MS,
    RESET_DELAY_MS,
)
from .runtime_history import HistoryLog
from .runtime_ledger import PlayerLedger
from .runtime_timers import TimerScheduler
from .runtime_types import RoundPhase, RoundState
from .runtime_utils import format_multiplier, iso_now, now_ms

logger = logging.getLogger(__name__)


class CrashRound:
    """The shared crash round: waiting -> counting -> running -> crashed -> waiting.

    Every public method is a command and must be called from the single task
    that owns the round. Timer callbacks reach the round the same way, through
    the scheduler's command stream.
    """

    def __init__(
        self,
        broadcaster: Broadcaster,
        scheduler: TimerScheduler,
        clock: MultiplierClock | None = None,
        rng: random.Random | None = None,
        history: HistoryLog | None = None,
        ledger: PlayerLedger | None = None,
        on_stat: Callable[[str], None] | None = None,
    ) -> None:
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.clock = clock or MultiplierClock()
        self.history = history or HistoryLog()
        self.ledger = ledger or PlayerLedger()
        self.state = RoundState(countdown=COUNTDOWN_SECONDS)
        self._rng = rng or random.Random()
        self._on_stat = on_stat or (lambda key: None)

    @property
    def phase(self) -> RoundPhase:
        return self.state.phase

    def snapshot(self) -> dict[str, Any]:
        return {
            "state": self.state.phase,
            "multiplier": self.state.multiplier,
            "countdown": self.state.countdown,
            "players": self.ledger.to_payload(),
            "history": self.history.to_payload(),
        }

    # ---- client commands -------------------------------------------------

    def connect(self, peer_id: str) -> None:
        self.broadcaster.game_state(peer_id, self.snapshot())

    def ping(self, peer_id: str) -> None:
        self.broadcaster.pong(peer_id, now_ms())

    def join(self, peer_id: str, user_id: Any = None, name: Any = None) -> None:
        self.ledger.join(peer_id, user_id=user_id, name=name)
        self.broadcaster.players_update(self.ledger.to_payload())

    def place_bet(self, peer_id: str, amount: Any) -> bool:
        if self.state.phase not in BETTING_PHASES:
            return self._ignore("placeBet", peer_id, "phase")
        if self.ledger.place_bet(peer_id, amount) is None:
            return self._ignore("placeBet", peer_id, "unknown-player")

        self.broadcaster.players_update(self.ledger.to_payload())
        if self.state.phase == "waiting":
            self._start_countdown()
        return True

    def cash_out(self, peer_id: str) -> bool:
        if self.state.phase != "running":
            return self._ignore("cashOut", peer_id, "phase")
        if self._crash_due():
            # The tick has not caught up with the crash point yet.
            self._crash()
            return self._ignore("cashOut", peer_id, "crashed")

        multiplier = self.clock.multiplier()
        player = self.ledger.cash_out(peer_id, multiplier)
        if player is None:
            return self._ignore("cashOut", peer_id, "not-betting")

        self._on_stat("cashOuts")
        self.broadcaster.player_cashed_out(peer_id, multiplier, player.win_amount)
        self.broadcaster.players_update(self.ledger.to_payload())
        return True

    def leave(self, peer_id: str) -> bool:
        removed = self.ledger.leave(peer_id)
        if removed is None:
            return False
        if removed.status == "betting":
            logger.info("round.forfeit peer=%s bet=%r", peer_id, removed.bet)
        self.broadcaster.players_update(self.ledger.to_payload())
        return True

    def close(self) -> None:
        self.scheduler.clear()

    # ---- transitions -----------------------------------------------------

    def _start_countdown(self) -> None:
        self.state.phase = "counting"
        self.state.countdown = COUNTDOWN_SECONDS
        logger.info("round.countdown_started countdown=%s", self.state.countdown)
        self.broadcaster.countdown_started(self.state.countdown)
        self.scheduler.schedule("countdown", COUNTDOWN_TICK_MS, self._on_countdown_tick, repeat=True)

    def _on_countdown_tick(self) -> None:
        if self.state.phase != "counting":
            return
        self.state.countdown -= 1
        self.broadcaster.countdown_update(self.state.countdown)
        if self.state.countdown <= 0:
            self.scheduler.cancel("countdown")
            self._start_running()

    def _start_running(self) -> None:
        self.state.phase = "running"
        self.clock.start()
        self.state.crash_point = self._draw_crash_point()
        self.state.multiplier = 1.0
        self._on_stat("roundsStarted")
        logger.info("round.started crash_point=%.4f", self.state.crash_point)
        self.broadcaster.game_started()
        self.scheduler.schedule("multiplier", MULTIPLIER_TICK_MS, self._on_multiplier_tick, repeat=True)

    def _on_multiplier_tick(self) -> None:
        if self.state.phase != "running":
            return
        self.state.multiplier = self.clock.multiplier()
        self.broadcaster.multiplier_update(self.state.multiplier)
        if self._crash_due():
            self._crash()

    def _crash_due(self) -> bool:
        crash_point = self.state.crash_point
        return crash_point is not None and self.clock.elapsed() >= crash_point

    def _crash(self) -> None:
        self.scheduler.cancel("multiplier")
        self.state.phase = "crashed"
        self.state.multiplier = self.clock.multiplier()
        lost = self.ledger.mark_lost()
        self._on_stat("roundsCrashed")
        logger.info(
            "round.crashed multiplier=%.4f crash_point=%.4f lost=%s",
            self.state.multiplier,
            self.state.crash_point or 0.0,
            len(lost),
        )
        self.broadcaster.game_crashed(self.state.multiplier, self.ledger.to_payload())
        self.history.record(format_multiplier(self.state.multiplier), iso_now())
        self.scheduler.schedule("reset", RESET_DELAY_MS, self._reset)

    def _reset(self) -> None:
        if self.state.phase != "crashed":
            return
        self.state.phase = "waiting"
        self.state.multiplier = 1.0
        self.state.crash_point = None
        self.state.countdown = COUNTDOWN_SECONDS
        self.clock.stop()
        self.ledger.reset_all()
        logger.info("round.reset players=%s", len(self.ledger))
        self.broadcaster.game_reset(self.ledger.to_payload())

    def _draw_crash_point(self) -> float:
        return CRASH_POINT_MIN + self._rng.random() * (CRASH_POINT_MAX - CRASH_POINT_MIN)

    def _ignore(self, command: str, peer_id: str, reason: str) -> bool:
        self._on_stat("ignoredCommands")
        logger.debug(
            "round.ignored command=%s peer=%s phase=%s reason=%s",
            command,
            peer_id,
            self.state.phase,
            reason,
        )
        return False
