"""Per-opponent attack tracking for automated participants."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt

from .board import Board
from .errors import TrackingError
from .ship import Coordinate


class TrackingBoard(Board):
    """Remembers which cells of one opponent were already targeted."""

    def __init__(self, enemy_id: int | None) -> None:
        if not enemy_id:
            raise TrackingError("The enemy's identity is missing.")
        self._enemy_id = enemy_id
        self._enemy_alive = True
        self._targeted: npt.NDArray[np.bool_] = np.zeros((self.height, self.width), dtype=bool)

    def __repr__(self) -> str:
        return (
            f"TrackingBoard(enemy_id={self._enemy_id}, alive={self._enemy_alive}, "
            f"untargeted={self.untargeted_count})"
        )

    @property
    def enemy_id(self) -> int:
        return self._enemy_id

    def is_enemy_alive(self) -> bool:
        return self._enemy_alive

    def kill_enemy(self) -> None:
        """Record that the tracked enemy has lost."""
        self._enemy_alive = False

    def track_attack(self, point: Coordinate | None) -> None:
        """Mark a cell as targeted.

        Raises:
            TrackingError: if the point is missing or off the grid.
        """
        if point is None:
            raise TrackingError("The attack point is missing.")
        if not self.is_valid_point(point):
            raise TrackingError("Cannot track an attack in an invalid point.")
        self._targeted[point.row, point.col] = True

    def was_cell_hit(self, point: Coordinate | None) -> bool:
        """Return True if the cell was targeted; never raises."""
        if not self.is_valid_point(point):
            return False
        return bool(self._targeted[point.row, point.col])

    @property
    def untargeted_count(self) -> int:
        return int(self._targeted.size - np.count_nonzero(self._targeted))

    def get_board_copy(self) -> npt.NDArray[np.bool_]:
        """Return an independent copy of the targeted-cells grid."""
        return self._targeted.copy()

    def reset(self) -> None:
        """Forget every tracked attack and mark the enemy alive again."""
        self._enemy_alive = True
        self._targeted.fill(False)
