"""Ship domain model for the salvo engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .identity import IdentityAllocator


@dataclass(frozen=True)
class Coordinate:
    """Immutable grid coordinate."""

    row: int
    col: int

    def step(self, direction: Direction, distance: int = 1) -> Coordinate:
        """Return the coordinate ``distance`` cells away in ``direction``."""
        delta_row, delta_col = direction.delta
        return Coordinate(self.row + delta_row * distance, self.col + delta_col * distance)


class Direction(Enum):
    """Directions a ship extends in from its placement point."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> tuple[int, int]:
        """Row and column offsets of a single step."""
        return _DELTAS[self]


_DELTAS = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}


class ShipType(Enum):
    """All supported ship classes and their lengths."""

    CARRIER = ("carrier", 5)
    BATTLESHIP = ("battleship", 4)
    CRUISER = ("cruiser", 3)
    SUBMARINE = ("submarine", 3)
    DESTROYER = ("destroyer", 2)

    def __init__(self, label: str, length: int) -> None:
        self.label = label
        self.length = length


ALL_SHIPS: tuple[ShipType, ...] = tuple(ShipType)


@dataclass(frozen=True)
class ShipSpec:
    """A placement request: which ship, where it starts and where it points."""

    ship_type: ShipType | None
    position: Coordinate | None
    direction: Direction | None


class Ship:
    """A single placed vessel tracking which of its segments were hit."""

    def __init__(self, ship_type: ShipType, allocator: IdentityAllocator) -> None:
        self.ship_type = ship_type
        self.id = allocator.next_id()
        self._segments = [False] * ship_type.length

    def __repr__(self) -> str:
        return f"Ship(id={self.id}, type={self.ship_type.label}, segments={self._segments})"

    @property
    def length(self) -> int:
        return len(self._segments)

    @property
    def segments(self) -> tuple[bool, ...]:
        """Hit state of every segment, bow first."""
        return tuple(self._segments)

    def hit(self, segment: int) -> bool:
        """Mark a segment as hit; return False if the index is not part of the ship."""
        if not 0 <= segment < self.length:
            return False
        self._segments[segment] = True
        return True

    def is_sunk(self) -> bool:
        """Determine whether every segment of the ship has been hit."""
        return all(self._segments)
