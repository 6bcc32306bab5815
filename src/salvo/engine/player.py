"""Participants: people and automated opponents."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum

import numpy as np
import numpy.typing as npt

from .errors import PlayerError, TrackingError
from .identity import IdentityAllocator
from .ship import Coordinate
from .tracking import TrackingBoard

logger = logging.getLogger(__name__)


class ParticipantKind(Enum):
    """Who drives a participant's moves."""

    PERSON = "person"
    COMPUTER = "computer"


@dataclass(frozen=True)
class Attack:
    """A move chosen by an automated participant."""

    victim_id: int
    attack_point: Coordinate


@dataclass(frozen=True)
class AttackReport:
    """The outcome of a resolved attack, broadcast to every observer."""

    victim_id: int
    attack_point: Coordinate | None
    has_victim_lost: bool
    is_hit: bool = False


def _validate_name(name: str | None) -> str:
    if not name or not name.strip():
        raise PlayerError("The name is missing or empty.")
    return name


class Participant:
    """A player of the match, identified for the whole session."""

    def __init__(self, name: str | None, allocator: IdentityAllocator) -> None:
        self._name = _validate_name(name)
        self._id = allocator.next_id()
        self._wins = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id}, name={self._name!r}, wins={self._wins})"

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str | None) -> None:
        self._name = _validate_name(value)

    @property
    def wins(self) -> int:
        """The number of rounds won."""
        return self._wins

    def add_win(self) -> None:
        self._wins += 1

    def reset(self) -> None:
        """Reset the win counter."""
        self._wins = 0


class AutomatedParticipant(Participant):
    """A computer participant choosing uniformly random legal attacks."""

    def __init__(
        self,
        name: str | None,
        allocator: IdentityAllocator,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(name, allocator)
        self._rng = rng or random.Random()
        self._enemies: dict[int, TrackingBoard] = {}

    @property
    def enemy_ids(self) -> list[int]:
        """Identities of every acknowledged opponent, in acknowledgment order."""
        return list(self._enemies)

    def get_tracking_copy(self, enemy_id: int) -> npt.NDArray[np.bool_] | None:
        """Return a copy of the tracking grid kept for ``enemy_id``, or None."""
        board = self._enemies.get(enemy_id)
        return board.get_board_copy() if board is not None else None

    def is_enemy_alive(self, enemy_id: int) -> bool:
        board = self._enemies.get(enemy_id)
        return board is not None and board.is_enemy_alive()

    def reset(self) -> None:
        """Reset the win counter and the enemy tracking."""
        super().reset()
        self.reset_tracking()

    def reset_tracking(self) -> None:
        """Forget every tracked attack; acknowledged opponents are kept."""
        for board in self._enemies.values():
            board.reset()

    def acknowledge_enemy(self, enemy_id: int | None) -> None:
        """Start tracking a new opponent.

        Missing identities, this participant's own identity, and opponents
        already tracked are ignored.
        """
        if not enemy_id or enemy_id == self.id or enemy_id in self._enemies:
            return
        self._enemies[enemy_id] = TrackingBoard(enemy_id)
        logger.debug("enemy_acknowledged", extra={"participant_id": self.id, "enemy_id": enemy_id})

    def attack(self) -> Attack:
        """Pick a living opponent and a cell not yet targeted against it.

        Both picks are rejection sampled: random opponents are drawn until a
        living one with untargeted cells comes up, then random cells are
        drawn until an untargeted one does.

        Raises:
            PlayerError: if no opponent is tracked, or none is left to attack.
        """
        if not self._enemies:
            raise PlayerError("There are no enemies to attack.")
        boards = list(self._enemies.values())
        if not any(board.is_enemy_alive() and board.untargeted_count for board in boards):
            raise PlayerError("There are no enemies left to attack.")

        while True:
            board = self._rng.choice(boards)
            if board.is_enemy_alive() and board.untargeted_count:
                break

        while True:
            point = Coordinate(self._rng.randrange(board.height), self._rng.randrange(board.width))
            if not board.was_cell_hit(point):
                break

        return Attack(victim_id=board.enemy_id, attack_point=point)

    def receive_attack_report(self, report: AttackReport | None) -> None:
        """Record an attack made by anyone against one of the tracked opponents.

        Reports about this participant, about unknown opponents, or carrying
        an invalid point are ignored.
        """
        if report is None or report.victim_id == self.id:
            return
        board = self._enemies.get(report.victim_id)
        if board is None:
            return
        try:
            board.track_attack(report.attack_point)
        except TrackingError:
            logger.debug(
                "attack_report_point_ignored",
                extra={"participant_id": self.id, "enemy_id": report.victim_id},
            )
        if report.has_victim_lost:
            board.kill_enemy()
