"""Match coordinator with per-match telemetry."""

from __future__ import annotations

import time
from typing import Any

from salvo.engine.coordinator import GamePhase, MatchCoordinator
from salvo.engine.player import AttackReport
from salvo.engine.ship import Coordinate
from salvo.telemetry import get_logger, get_tracer, record_match_metric


class InstrumentedMatchCoordinator(MatchCoordinator):
    """Wraps MatchCoordinator with a span per match plus attack and outcome metrics."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("salvo.engine")
        self._tracer = get_tracer("salvo.engine")
        self._match_span_cm = None
        self._match_span = None
        self._match_start_time: float | None = None
        self._match_id_counter = 0
        self._match_attacks = 0
        self.attack_reports.subscribe(self._on_attack_report)
        self.winners.subscribe(self._on_winner)

    def start_game(self) -> None:
        if self.phase is GamePhase.PLAYING:
            return
        self._start_match_span()
        rounds_before = self.rounds_played
        with self._tracer.start_as_current_span("salvo.engine.start_game") as span:
            super().start_game()
            # An all-computer table can finish the whole round inside start_game.
            started = self.phase is GamePhase.PLAYING or self.rounds_played > rounds_before
            span.set_attribute("started", started)
            span.set_attribute("participants", len(self.participant_ids))
        if started:
            record_match_metric(
                "salvo_match_started_total", 1, {"participants": len(self.participant_ids)}
            )
            self._logger.info(
                "Match %d started with %d participants",
                self._match_id_counter,
                len(self.participant_ids),
            )
        else:
            self._close_match_span()

    def attack(self, attacker_id: int | None, victim_id: int | None, point: Coordinate | None) -> None:
        with self._tracer.start_as_current_span("salvo.engine.attack") as span:
            span.set_attribute("match.id", self._match_id_counter)
            before = self._match_attacks
            super().attack(attacker_id, victim_id, point)
            span.set_attribute("attacks_resolved", self._match_attacks - before)

    def new_round(self) -> None:
        self._abandon_match("new_round")
        super().new_round()

    def new_game(self) -> None:
        self._abandon_match("new_game")
        super().new_game()

    def _on_attack_report(self, report: AttackReport) -> None:
        self._match_attacks += 1
        record_match_metric("salvo_attacks_total", 1, {"result": "hit" if report.is_hit else "miss"})
        if report.has_victim_lost:
            record_match_metric("salvo_participants_lost_total", 1)

    def _on_winner(self, winner_id: int) -> None:
        duration = (time.perf_counter() - self._match_start_time) if self._match_start_time else 0.0
        kind = self.get_player_kind(winner_id)
        winner_kind = kind.value if kind is not None else "unknown"

        record_match_metric("salvo_match_completed_total", 1, {"winner_kind": winner_kind})
        record_match_metric("salvo_match_duration_seconds", duration, {"winner_kind": winner_kind})

        with self._tracer.start_as_current_span("salvo.engine.match_complete") as span:
            span.set_attribute("match.id", self._match_id_counter)
            span.set_attribute("winner.id", winner_id)
            span.set_attribute("attacks", self._match_attacks)
            span.set_attribute("duration_ms", duration * 1000)

        if self._match_span is not None:
            self._match_span.set_attribute("winner.id", winner_id)
            self._match_span.set_attribute("attacks", self._match_attacks)

        self._logger.info(
            "Match %d finished. Winner=%s attacks=%d duration_s=%.3f",
            self._match_id_counter,
            self.get_player_name(winner_id),
            self._match_attacks,
            duration,
        )
        self._close_match_span()

    def _abandon_match(self, reason: str) -> None:
        if self._match_span is None:
            return
        record_match_metric("salvo_match_abandoned_total", 1, {"reason": reason})
        self._match_span.set_attribute("abandoned", reason)
        self._close_match_span()

    def _start_match_span(self) -> None:
        self._close_match_span()
        self._match_start_time = time.perf_counter()
        self._match_id_counter += 1
        self._match_attacks = 0
        self._match_span_cm = self._tracer.start_as_current_span("salvo.engine.match")
        self._match_span = self._match_span_cm.__enter__()
        self._match_span.set_attribute("match.id", self._match_id_counter)

    def _close_match_span(self) -> None:
        if self._match_span_cm is not None:
            self._match_span_cm.__exit__(None, None, None)
            self._match_span_cm = None
            self._match_span = None
