"""Grid boards: bounds checking and a participant's own fleet."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass

from salvo.telemetry import get_meter, get_tracer

from .errors import PlacementError
from .identity import IdentityAllocator
from .ship import Coordinate, Direction, Ship, ShipType

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.board")
meter = get_meter("salvo.engine.board")

PLACEMENT_COUNTER = meter.create_counter(
    "salvo_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

ATTACK_COUNTER = meter.create_counter(
    "salvo_engine_attacks_received",
    unit="1",
    description="Attacks resolved on a gameboard",
)

BOARD_HEIGHT = 10
BOARD_WIDTH = 10


class Board:
    """A fixed 10×10 coordinate space.

    Rows go from 0 to ``height - 1`` and columns from 0 to ``width - 1``.
    Only subclasses hold any cell state.
    """

    @property
    def height(self) -> int:
        """The number of rows."""
        return BOARD_HEIGHT

    @property
    def width(self) -> int:
        """The number of columns."""
        return BOARD_WIDTH

    def is_valid_point(self, point: Coordinate | None) -> bool:
        """Check whether a point is present and lies inside the grid."""
        if point is None:
            return False
        return 0 <= point.row < self.height and 0 <= point.col < self.width


@dataclass(frozen=True)
class ShipInfo:
    """Which ship, and which of its segments, occupies a cell."""

    ship_id: int
    ship_segment: int


@dataclass
class Cell:
    """State of one gameboard cell."""

    hit: bool = False
    ship_info: ShipInfo | None = None


class Gameboard(Board):
    """A participant's own grid: ship placement and attack resolution."""

    def __init__(self, allocator: IdentityAllocator | None = None, owner: str = "unknown") -> None:
        self.owner = owner
        self._allocator = allocator or IdentityAllocator()
        self._ships: dict[int, Ship] = {}
        self._grid = [[Cell() for _ in range(self.width)] for _ in range(self.height)]

    def add_ship(
        self,
        ship_type: ShipType | None,
        point: Coordinate | None,
        direction: Direction | None,
    ) -> Ship:
        """Place a new ship whose bow sits on ``point`` and extends towards ``direction``.

        Raises:
            PlacementError: if an argument is missing, the point is off the
                grid, the ship does not fit, or it overlaps another ship. The
                board is left untouched in every failing case.
        """
        with tracer.start_as_current_span("board.add_ship") as span:
            span.set_attribute("board.owner", self.owner)
            if ship_type is None:
                raise PlacementError("The type of the ship is missing.")
            if point is None:
                raise PlacementError("The point is missing.")
            if direction is None:
                raise PlacementError("The direction is missing.")
            span.set_attribute("ship.type", ship_type.label)
            span.set_attribute("ship.row", point.row)
            span.set_attribute("ship.col", point.col)
            span.set_attribute("ship.direction", direction.value)

            if not self.is_valid_point(point):
                self._placement_failed(ship_type, point, direction, "point_out_of_grid")
                raise PlacementError("The point to add the ship is out of the grid.")

            cells = [point.step(direction, index) for index in range(ship_type.length)]
            for cell in cells:
                if not self.is_valid_point(cell):
                    self._placement_failed(ship_type, point, direction, "out_of_board")
                    raise PlacementError("The ship goes out of the board.")
                if self._grid[cell.row][cell.col].ship_info is not None:
                    self._placement_failed(ship_type, point, direction, "overlap")
                    raise PlacementError("The ship overlaps with another ship.")

            ship = Ship(ship_type, self._allocator)
            self._ships[ship.id] = ship
            for segment, cell in enumerate(cells):
                self._grid[cell.row][cell.col].ship_info = ShipInfo(ship.id, segment)

            PLACEMENT_COUNTER.add(1, attributes={"result": "success"})
            logger.info(
                "ship_placed",
                extra={
                    "owner": self.owner,
                    "ship_id": ship.id,
                    "ship_type": ship_type.label,
                    "direction": direction.value,
                    "row": point.row,
                    "col": point.col,
                },
            )
            return ship

    def _placement_failed(
        self, ship_type: ShipType, point: Coordinate, direction: Direction, reason: str
    ) -> None:
        PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "reason": reason})
        logger.debug(
            "ship_placement_failed",
            extra={
                "owner": self.owner,
                "ship_type": ship_type.label,
                "direction": direction.value,
                "row": point.row,
                "col": point.col,
                "reason": reason,
            },
        )

    def receive_attack(self, point: Coordinate | None) -> Ship | None:
        """Register an attack and return the ship that was struck, if any.

        Attacking the same cell twice is allowed; it only marks the cell again.

        Raises:
            PlacementError: if the point is missing or off the grid.
        """
        with tracer.start_as_current_span("board.receive_attack") as span:
            span.set_attribute("board.owner", self.owner)
            if point is None:
                raise PlacementError("The attack point is missing.")
            if not self.is_valid_point(point):
                logger.warning(
                    "attack_out_of_bounds",
                    extra={"row": point.row, "col": point.col, "owner": self.owner},
                )
                raise PlacementError("Cannot receive an attack in a point outside the grid.")
            span.set_attribute("attack.row", point.row)
            span.set_attribute("attack.col", point.col)

            cell = self._grid[point.row][point.col]
            cell.hit = True
            if cell.ship_info is None:
                span.set_attribute("attack.outcome", "miss")
                ATTACK_COUNTER.add(1, attributes={"outcome": "miss"})
                logger.debug(
                    "attack_missed", extra={"row": point.row, "col": point.col, "owner": self.owner}
                )
                return None

            ship = self._ships[cell.ship_info.ship_id]
            ship.hit(cell.ship_info.ship_segment)
            span.set_attribute("attack.outcome", "hit")
            ATTACK_COUNTER.add(1, attributes={"outcome": "hit"})
            logger.debug(
                "attack_hit",
                extra={
                    "row": point.row,
                    "col": point.col,
                    "owner": self.owner,
                    "ship_type": ship.ship_type.label,
                    "sunk": ship.is_sunk(),
                },
            )
            return ship

    def was_cell_attacked(self, point: Coordinate | None) -> bool:
        """Return True if the cell was attacked; False for missing or off-grid points."""
        if not self.is_valid_point(point):
            return False
        return self._grid[point.row][point.col].hit

    def has_ship(self, ship_type: ShipType | None) -> int:
        """Return how many ships of ``ship_type`` are on the board."""
        if ship_type is None:
            return 0
        return sum(1 for ship in self._ships.values() if ship.ship_type is ship_type)

    @property
    def ships_count(self) -> int:
        return len(self._ships)

    @property
    def sunk_ships_count(self) -> int:
        return sum(1 for ship in self._ships.values() if ship.is_sunk())

    @property
    def alive_ships_count(self) -> int:
        return self.ships_count - self.sunk_ships_count

    def are_all_ships_sunk(self) -> bool:
        """True when no ship is afloat.

        A board without ships also counts as sunk, so a participant who has
        not placed a fleet is treated as defeated.
        """
        return self.alive_ships_count == 0

    def reset(self) -> None:
        """Remove every ship and clear every attack."""
        self._ships.clear()
        for row in self._grid:
            for cell in row:
                cell.hit = False
                cell.ship_info = None
        logger.debug("board_reset", extra={"owner": self.owner})

    def get_board_copy(self) -> list[list[Cell]]:
        """Return a deep copy of the grid, indexed ``[row][col]``."""
        return copy.deepcopy(self._grid)
