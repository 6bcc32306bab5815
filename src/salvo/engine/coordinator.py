"""Match orchestration: participants, phases, turns and attack resolution."""

from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import cast

from salvo.settings import MatchSettings
from salvo.telemetry import get_meter, get_tracer

from .board import Cell, Gameboard
from .errors import PlacementError, PlayerError
from .identity import IdentityAllocator
from .messages import MessageService
from .player import AttackReport, AutomatedParticipant, Participant, ParticipantKind
from .ship import ALL_SHIPS, Coordinate, Direction, ShipSpec, ShipType
from .streams import Stream, ValueStream

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.coordinator")
meter = get_meter("salvo.engine.coordinator")

ATTACK_COUNTER = meter.create_counter(
    "salvo_match_attacks",
    unit="1",
    description="Attacks resolved by the match coordinator",
)

ROUND_COUNTER = meter.create_counter(
    "salvo_match_rounds_finished",
    unit="1",
    description="Rounds that ended with a winner",
)


class GamePhase(Enum):
    """Session-wide lifecycle of a match."""

    NOT_PLAYING = "not_playing"
    PLAYING = "playing"


@dataclass(frozen=True)
class Credential:
    """Pairs a participant identity with the key that authorises changes to its board."""

    id: int
    key: str


@dataclass
class Seat:
    """One participant at the table together with its board."""

    participant: Participant
    board: Gameboard
    kind: ParticipantKind
    key: str

    @property
    def eliminated(self) -> bool:
        return self.board.are_all_ships_sunk()


def _new_key() -> str:
    return str(uuid.uuid4())


class MatchCoordinator:
    """Runs a match between any number of people and computer participants.

    Every public operation returns normally: rule violations are reported on
    :attr:`messages` instead of being raised. Computer turns are played
    synchronously, so by the time :meth:`attack` returns it is either a
    person's turn again or the round is over.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        allocator: IdentityAllocator | None = None,
        key_factory: Callable[[], str] | None = None,
        messages: MessageService | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._allocator = allocator or IdentityAllocator()
        self._key_factory = key_factory or _new_key
        self.messages = messages or MessageService()
        self._seats: list[Seat] = []
        self._current_index: int | None = None
        self._rounds_played = 0

        self.game_phase: ValueStream[GamePhase] = ValueStream(GamePhase.NOT_PLAYING, "game_phase")
        self.current_participant: Stream[int] = Stream("current_participant")
        self.attack_reports: Stream[AttackReport] = Stream("attack_reports")
        self.losers: Stream[int] = Stream("losers")
        self.winners: Stream[int] = Stream("winners")

    @classmethod
    def from_settings(cls, settings: MatchSettings | None = None) -> MatchCoordinator:
        resolved = settings or MatchSettings.from_env()
        return cls(rng=random.Random(resolved.rng_seed))

    @property
    def phase(self) -> GamePhase:
        return self.game_phase.value

    @property
    def current_participant_id(self) -> int | None:
        seat = self._current_seat()
        return seat.participant.id if seat is not None else None

    @property
    def participant_ids(self) -> list[int]:
        """Identities in turn order."""
        return [seat.participant.id for seat in self._seats]

    @property
    def rounds_played(self) -> int:
        return self._rounds_played

    def get_player_name(self, participant_id: int | None) -> str | None:
        seat = self._seat_by_id(participant_id)
        return seat.participant.name if seat is not None else None

    def get_player_kind(self, participant_id: int | None) -> ParticipantKind | None:
        seat = self._seat_by_id(participant_id)
        return seat.kind if seat is not None else None

    def get_player_score(self, participant_id: int | None) -> int | None:
        seat = self._seat_by_id(participant_id)
        return seat.participant.wins if seat is not None else None

    def get_scores(self) -> dict[int, int]:
        return {seat.participant.id: seat.participant.wins for seat in self._seats}

    def get_player_board(self, credential: Credential | None) -> list[list[Cell]] | None:
        """Return a copy of the participant's board, or None for a bad credential."""
        seat = self._find_seat(credential)
        return seat.board.get_board_copy() if seat is not None else None

    def create_participant(
        self, name: str | None, kind: ParticipantKind | None = ParticipantKind.PERSON
    ) -> Credential | None:
        """Register a participant and return its credential, or None on failure.

        Computer participants get a full fleet placed at random straight away.
        """
        with tracer.start_as_current_span("match.create_participant") as span:
            if kind is None:
                self.messages.error("The participant kind is missing.")
                return None
            if not isinstance(kind, ParticipantKind):
                self.messages.error(f"Unknown participant kind: {kind!r}.")
                return None
            if self.phase is GamePhase.PLAYING:
                self.messages.error("Participants cannot join while a game is in progress.")
                return None
            if name and self._seat_by_name(name) is not None:
                self.messages.warning(f'The name "{name}" is already in use.')
                return None

            try:
                if kind is ParticipantKind.COMPUTER:
                    participant: Participant = AutomatedParticipant(name, self._allocator, self._rng)
                else:
                    participant = Participant(name, self._allocator)
            except PlayerError as exc:
                self.messages.error(str(exc))
                return None

            seat = Seat(
                participant=participant,
                board=Gameboard(self._allocator, owner=str(participant.id)),
                kind=kind,
                key=self._key_factory(),
            )
            for other in self._seats:
                if other.kind is ParticipantKind.COMPUTER:
                    self._automated(other).acknowledge_enemy(participant.id)
                if kind is ParticipantKind.COMPUTER:
                    self._automated(seat).acknowledge_enemy(other.participant.id)
            self._seats.append(seat)

            if kind is ParticipantKind.COMPUTER:
                self._place_fleet(seat, ALL_SHIPS)

            span.set_attribute("participant.id", participant.id)
            span.set_attribute("participant.kind", kind.value)
            logger.info(
                "participant_joined",
                extra={"participant_id": participant.id, "kind": kind.value},
            )
            self.messages.send(f"{participant.name} has just joined the game")
            return Credential(participant.id, seat.key)

    def rename_participant(self, credential: Credential | None, name: str | None) -> None:
        seat = self._find_seat(credential)
        if seat is None:
            self.messages.error("Cannot rename a participant that does not exist.")
            return
        other = self._seat_by_name(name) if name else None
        if other is not None and other is not seat:
            self.messages.warning(f'The name "{name}" is already in use.')
            return
        try:
            seat.participant.name = name
        except PlayerError as exc:
            self.messages.error(str(exc))

    def add_ship(self, credential: Credential | None, ship_spec: ShipSpec | None) -> None:
        """Place one ship on a person's board.

        Errors are reported on :attr:`messages`; a successful placement is silent.
        """
        with tracer.start_as_current_span("match.add_ship"):
            seat = self._authorise_placement(credential)
            if seat is None:
                return
            if ship_spec is None:
                self.messages.error("The ship specification is missing.")
                return
            if seat.board.has_ship(ship_spec.ship_type):
                self.messages.error(f'There is already a "{ship_spec.ship_type.label}" on the board.')
                return
            try:
                seat.board.add_ship(ship_spec.ship_type, ship_spec.position, ship_spec.direction)
            except PlacementError as exc:
                self.messages.error(str(exc))

    def auto_place_fleet(self, credential: Credential | None) -> None:
        """Place every ship type still missing from a person's board at random."""
        with tracer.start_as_current_span("match.auto_place_fleet"):
            seat = self._authorise_placement(credential)
            if seat is None:
                return
            self._place_fleet(seat, [ship for ship in ALL_SHIPS if not seat.board.has_ship(ship)])

    def _authorise_placement(self, credential: Credential | None) -> Seat | None:
        if credential is None:
            self.messages.error("The credentials are missing.")
            return None
        seat = self._find_seat(credential)
        if seat is None:
            self.messages.error("Cannot add a ship to a participant that does not exist.")
            return None
        if seat.kind is ParticipantKind.COMPUTER:
            self.messages.error("Cannot add a ship to a computer participant.")
            return None
        if self.phase is GamePhase.PLAYING:
            self.messages.error("Ships cannot be placed while a game is in progress.")
            return None
        return seat

    def _place_fleet(self, seat: Seat, ship_types: Iterable[ShipType]) -> None:
        directions = list(Direction)
        for ship_type in ship_types:
            attempts = 0
            while True:
                attempts += 1
                point = Coordinate(
                    self._rng.randrange(seat.board.height), self._rng.randrange(seat.board.width)
                )
                try:
                    seat.board.add_ship(ship_type, point, self._rng.choice(directions))
                except PlacementError:
                    continue
                break
            logger.debug(
                "random_ship_placed",
                extra={
                    "participant_id": seat.participant.id,
                    "ship_type": ship_type.label,
                    "attempts": attempts,
                },
            )

    def start_game(self) -> None:
        """Enter the playing phase once everybody has a complete fleet."""
        with tracer.start_as_current_span("match.start_game") as span:
            if self.phase is GamePhase.PLAYING:
                return
            if len(self._seats) < 2:
                self.messages.error("There must be at least 2 participants to start a game.")
                return
            for seat in self._seats:
                if not self._has_complete_fleet(seat.board):
                    self.messages.error(f"{seat.participant.name} does not have all the ships.")
                    return
            if any(seat.eliminated for seat in self._seats):
                self.messages.error("The round is over. Start a new round before playing again.")
                return

            self._change_phase(GamePhase.PLAYING)
            self._current_index = 0
            first = self._seats[0].participant
            span.set_attribute("participants", len(self._seats))
            logger.info(
                "game_started",
                extra={"participants": len(self._seats), "first_participant_id": first.id},
            )
            self.current_participant.publish(first.id)
            self._play_automated_turns()

    def new_round(self) -> None:
        """Clear every board, keep the scores, and go back to setup."""
        with tracer.start_as_current_span("match.new_round"):
            for seat in self._seats:
                seat.board.reset()
                if seat.kind is ParticipantKind.COMPUTER:
                    self._automated(seat).reset_tracking()
                    self._place_fleet(seat, ALL_SHIPS)
            logger.info("round_reset", extra={"participants": len(self._seats)})
            self._change_phase(GamePhase.NOT_PLAYING)

    def new_game(self) -> None:
        """Clear every board and every score, and go back to setup."""
        with tracer.start_as_current_span("match.new_game"):
            for seat in self._seats:
                seat.board.reset()
                seat.participant.reset()
                if seat.kind is ParticipantKind.COMPUTER:
                    self._automated(seat).reset_tracking()
                    self._place_fleet(seat, ALL_SHIPS)
            self._rounds_played = 0
            logger.info("game_reset", extra={"participants": len(self._seats)})
            self._change_phase(GamePhase.NOT_PLAYING)

    @staticmethod
    def _has_complete_fleet(board: Gameboard) -> bool:
        return board.ships_count == len(ALL_SHIPS) and all(
            board.has_ship(ship_type) == 1 for ship_type in ALL_SHIPS
        )

    def _change_phase(self, phase: GamePhase) -> None:
        if phase is GamePhase.NOT_PLAYING:
            self._current_index = None
        logger.info("phase_changed", extra={"phase": phase.value})
        self.game_phase.publish(phase)

    def attack(self, attacker_id: int | None, victim_id: int | None, point: Coordinate | None) -> None:
        """Resolve an attack by the current participant, then any computer turns that follow.

        Attacks from unknown participants, on oneself, or out of turn are
        ignored without a message.
        """
        with tracer.start_as_current_span("match.attack") as span:
            if attacker_id is not None:
                span.set_attribute("attacker.id", attacker_id)
            if victim_id is not None:
                span.set_attribute("victim.id", victim_id)
            if not self._resolve_attack(attacker_id, victim_id, point):
                return
            self._play_automated_turns()

    def _play_automated_turns(self) -> None:
        while self.phase is GamePhase.PLAYING:
            seat = self._current_seat()
            if seat is None or seat.kind is not ParticipantKind.COMPUTER:
                return
            try:
                move = self._automated(seat).attack()
            except PlayerError as exc:
                self.messages.error(f"{seat.participant.name} cannot attack: {exc}")
                return
            if not self._resolve_attack(seat.participant.id, move.victim_id, move.attack_point):
                logger.error(
                    "automated_attack_rejected",
                    extra={"participant_id": seat.participant.id, "victim_id": move.victim_id},
                )
                return

    def _resolve_attack(
        self, attacker_id: int | None, victim_id: int | None, point: Coordinate | None
    ) -> bool:
        attacker = self._seat_by_id(attacker_id)
        victim = self._seat_by_id(victim_id)
        if attacker is None or victim is None or attacker is victim:
            logger.debug("attack_ignored", extra={"attacker_id": attacker_id, "victim_id": victim_id})
            return False
        if attacker is not self._current_seat():
            logger.debug("attack_out_of_turn", extra={"attacker_id": attacker_id})
            return False
        if victim.eliminated:
            self.messages.warning(f"{victim.participant.name} has already lost.")
            return False
        if victim.board.was_cell_attacked(point):
            self.messages.warning("This cell was already attacked.")
            return False
        try:
            struck = victim.board.receive_attack(point)
        except PlacementError as exc:
            self.messages.error(str(exc))
            return False

        report = AttackReport(
            victim_id=victim.participant.id,
            attack_point=point,
            has_victim_lost=victim.board.are_all_ships_sunk(),
            is_hit=struck is not None,
        )
        ATTACK_COUNTER.add(1, attributes={"outcome": "hit" if report.is_hit else "miss"})
        logger.info(
            "attack_resolved",
            extra={
                "attacker_id": attacker.participant.id,
                "victim_id": report.victim_id,
                "row": point.row,
                "col": point.col,
                "hit": report.is_hit,
                "victim_lost": report.has_victim_lost,
            },
        )
        for seat in self._seats:
            if seat.kind is ParticipantKind.COMPUTER:
                self._automated(seat).receive_attack_report(report)
        self.attack_reports.publish(report)

        survivors = [seat for seat in self._seats if not seat.eliminated]
        if len(survivors) == 1:
            self._declare_winner(survivors[0])
        if report.has_victim_lost:
            logger.info("participant_lost", extra={"participant_id": report.victim_id})
            self.losers.publish(report.victim_id)
        if self.phase is GamePhase.PLAYING:
            self._advance_turn()
        return True

    def _declare_winner(self, seat: Seat) -> None:
        seat.participant.add_win()
        self._rounds_played += 1
        ROUND_COUNTER.add(1, attributes={"winner_kind": seat.kind.value})
        logger.info(
            "round_won",
            extra={"participant_id": seat.participant.id, "wins": seat.participant.wins},
        )
        self.winners.publish(seat.participant.id)
        self._change_phase(GamePhase.NOT_PLAYING)

    def _advance_turn(self) -> None:
        count = len(self._seats)
        index = self._current_index if self._current_index is not None else -1
        for _ in range(count):
            index = (index + 1) % count
            if not self._seats[index].eliminated:
                break
        self._current_index = index
        self.current_participant.publish(self._seats[index].participant.id)

    def _current_seat(self) -> Seat | None:
        if self._current_index is None:
            return None
        return self._seats[self._current_index]

    def _seat_by_id(self, participant_id: int | None) -> Seat | None:
        if participant_id is None:
            return None
        for seat in self._seats:
            if seat.participant.id == participant_id:
                return seat
        return None

    def _seat_by_name(self, name: str) -> Seat | None:
        for seat in self._seats:
            if seat.participant.name == name:
                return seat
        return None

    def _find_seat(self, credential: Credential | None) -> Seat | None:
        if credential is None:
            return None
        seat = self._seat_by_id(credential.id)
        if seat is None or seat.key != credential.key:
            return None
        return seat

    @staticmethod
    def _automated(seat: Seat) -> AutomatedParticipant:
        return cast(AutomatedParticipant, seat.participant)
