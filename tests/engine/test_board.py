"""Tests for the Board and Gameboard mechanics."""

import pytest

from salvo.engine.board import Board, Cell, Gameboard, ShipInfo
from salvo.engine.errors import PlacementError
from salvo.engine.ship import Coordinate, Direction, ShipType


@pytest.fixture
def gameboard() -> Gameboard:
    return Gameboard()


def test_is_valid_point_rejects_missing_and_outside_points() -> None:
    board = Board()
    assert board.is_valid_point(None) is False
    assert board.is_valid_point(Coordinate(-12, 6)) is False
    assert board.is_valid_point(Coordinate(board.height, 4)) is False
    assert board.is_valid_point(Coordinate(3, -5)) is False
    assert board.is_valid_point(Coordinate(5, board.width)) is False


def test_is_valid_point_accepts_points_inside_the_grid() -> None:
    board = Board()
    assert board.is_valid_point(Coordinate(0, 0))
    assert board.is_valid_point(Coordinate(7, 2))
    assert board.is_valid_point(Coordinate(9, 9))


def test_new_gameboard_is_empty(gameboard: Gameboard) -> None:
    grid = gameboard.get_board_copy()
    assert len(grid) == 10
    assert all(len(row) == 10 for row in grid)
    assert all(cell == Cell() for row in grid for cell in row)
    assert gameboard.ships_count == 0


def test_changing_board_copy_does_not_affect_the_board(gameboard: Gameboard) -> None:
    gameboard.add_ship(ShipType.DESTROYER, Coordinate(3, 7), Direction.RIGHT)
    copy = gameboard.get_board_copy()
    copy[3][8].hit = True
    copy[3][8].ship_info = ShipInfo(ship_id=99, ship_segment=4)
    copy[0][0] = Cell(hit=True)

    fresh = gameboard.get_board_copy()
    assert fresh[3][8].hit is False
    assert fresh[3][8].ship_info is not None and fresh[3][8].ship_info.ship_id != 99
    assert fresh[0][0] == Cell()


@pytest.mark.parametrize(
    ("ship_type", "point", "direction"),
    [
        (None, Coordinate(0, 0), Direction.UP),
        (ShipType.CRUISER, None, Direction.UP),
        (ShipType.CRUISER, Coordinate(0, 0), None),
    ],
)
def test_add_ship_rejects_missing_arguments(gameboard: Gameboard, ship_type, point, direction) -> None:
    with pytest.raises(PlacementError):
        gameboard.add_ship(ship_type, point, direction)
    assert gameboard.ships_count == 0


@pytest.mark.parametrize(
    "point",
    [Coordinate(-1, 0), Coordinate(0, -1), Coordinate(10, 0), Coordinate(0, 10)],
)
def test_add_ship_rejects_points_outside_the_grid(gameboard: Gameboard, point: Coordinate) -> None:
    with pytest.raises(PlacementError):
        gameboard.add_ship(ShipType.CARRIER, point, Direction.UP)


@pytest.mark.parametrize(
    ("ship_type", "point", "direction"),
    [
        (ShipType.SUBMARINE, Coordinate(0, 4), Direction.UP),
        (ShipType.CARRIER, Coordinate(9, 5), Direction.DOWN),
        (ShipType.BATTLESHIP, Coordinate(0, 0), Direction.LEFT),
        (ShipType.DESTROYER, Coordinate(0, 9), Direction.RIGHT),
    ],
)
def test_add_ship_rejects_ships_leaving_the_board(
    gameboard: Gameboard, ship_type: ShipType, point: Coordinate, direction: Direction
) -> None:
    before = gameboard.get_board_copy()
    with pytest.raises(PlacementError):
        gameboard.add_ship(ship_type, point, direction)
    assert gameboard.get_board_copy() == before
    assert gameboard.has_ship(ship_type) == 0


def test_add_ship_rejects_overlaps_without_partial_writes(gameboard: Gameboard) -> None:
    gameboard.add_ship(ShipType.SUBMARINE, Coordinate(3, 3), Direction.RIGHT)
    before = gameboard.get_board_copy()

    with pytest.raises(PlacementError):
        gameboard.add_ship(ShipType.SUBMARINE, Coordinate(3, 3), Direction.RIGHT)
    with pytest.raises(PlacementError):
        gameboard.add_ship(ShipType.CARRIER, Coordinate(7, 5), Direction.UP)

    assert gameboard.get_board_copy() == before
    assert gameboard.ships_count == 1


def test_add_ship_occupies_contiguous_cells_in_walk_order(gameboard: Gameboard) -> None:
    ship = gameboard.add_ship(ShipType.CRUISER, Coordinate(4, 6), Direction.DOWN)

    grid = gameboard.get_board_copy()
    for segment in range(ShipType.CRUISER.length):
        cell = grid[4 + segment][6]
        assert cell.hit is False
        assert cell.ship_info == ShipInfo(ship_id=ship.id, ship_segment=segment)
    occupied = [cell for row in grid for cell in row if cell.ship_info is not None]
    assert len(occupied) == ShipType.CRUISER.length
    assert gameboard.has_ship(ShipType.CRUISER) == 1
    assert gameboard.ships_count == 1
    assert gameboard.alive_ships_count == 1


def test_add_ship_walks_upwards_and_leftwards(gameboard: Gameboard) -> None:
    up = gameboard.add_ship(ShipType.DESTROYER, Coordinate(5, 5), Direction.UP)
    left = gameboard.add_ship(ShipType.CRUISER, Coordinate(9, 9), Direction.LEFT)

    grid = gameboard.get_board_copy()
    assert grid[5][5].ship_info == ShipInfo(up.id, 0)
    assert grid[4][5].ship_info == ShipInfo(up.id, 1)
    assert grid[9][9].ship_info == ShipInfo(left.id, 0)
    assert grid[9][7].ship_info == ShipInfo(left.id, 2)


def test_each_valid_placement_adds_exactly_one_ship(gameboard: Gameboard) -> None:
    for row, ship_type in enumerate(ShipType):
        before = gameboard.has_ship(ship_type)
        gameboard.add_ship(ship_type, Coordinate(row * 2, 0), Direction.RIGHT)
        assert gameboard.has_ship(ship_type) == before + 1
    assert gameboard.ships_count == 5


def test_receive_attack_rejects_missing_and_outside_points(gameboard: Gameboard) -> None:
    with pytest.raises(PlacementError):
        gameboard.receive_attack(None)
    for point in (Coordinate(-1, 0), Coordinate(0, -1), Coordinate(10, 0), Coordinate(0, 10)):
        with pytest.raises(PlacementError):
            gameboard.receive_attack(point)


def test_receive_attack_marks_cells_and_returns_struck_ship(gameboard: Gameboard) -> None:
    ship = gameboard.add_ship(ShipType.DESTROYER, Coordinate(0, 0), Direction.RIGHT)

    assert gameboard.receive_attack(Coordinate(5, 5)) is None
    assert gameboard.receive_attack(Coordinate(0, 1)) is ship
    assert gameboard.was_cell_attacked(Coordinate(5, 5))
    assert gameboard.was_cell_attacked(Coordinate(0, 1))
    assert not gameboard.was_cell_attacked(Coordinate(0, 0))
    assert not gameboard.was_cell_attacked(None)
    assert not gameboard.was_cell_attacked(Coordinate(10, 10))

    grid = gameboard.get_board_copy()
    assert grid[5][5].hit and grid[5][5].ship_info is None
    assert grid[0][1].hit and grid[0][1].ship_info is not None


def test_repeated_attack_on_a_segment_has_no_further_effect(gameboard: Gameboard) -> None:
    gameboard.add_ship(ShipType.DESTROYER, Coordinate(0, 0), Direction.RIGHT)
    gameboard.receive_attack(Coordinate(0, 0))
    gameboard.receive_attack(Coordinate(0, 0))
    assert gameboard.sunk_ships_count == 0
    assert not gameboard.are_all_ships_sunk()


def test_detects_sunk_ships() -> None:
    gameboard = Gameboard()
    gameboard.add_ship(ShipType.SUBMARINE, Coordinate(8, 8), Direction.LEFT)
    gameboard.add_ship(ShipType.SUBMARINE, Coordinate(2, 2), Direction.DOWN)

    for point in (Coordinate(2, 2), Coordinate(3, 2), Coordinate(4, 2), Coordinate(8, 8), Coordinate(8, 7)):
        gameboard.receive_attack(point)
    gameboard.receive_attack(Coordinate(8, 2))  # miss

    assert not gameboard.are_all_ships_sunk()
    assert gameboard.alive_ships_count == 1
    assert gameboard.ships_count == 2

    gameboard.receive_attack(Coordinate(8, 6))
    assert gameboard.are_all_ships_sunk()
    assert gameboard.alive_ships_count == 0
    assert gameboard.sunk_ships_count == 2


def test_board_without_ships_counts_as_sunk(gameboard: Gameboard) -> None:
    assert gameboard.are_all_ships_sunk()


def test_reset_clears_ships_and_attacks(gameboard: Gameboard) -> None:
    gameboard.add_ship(ShipType.SUBMARINE, Coordinate(2, 2), Direction.DOWN)
    gameboard.add_ship(ShipType.SUBMARINE, Coordinate(8, 8), Direction.LEFT)
    gameboard.receive_attack(Coordinate(4, 5))
    gameboard.receive_attack(Coordinate(8, 8))

    gameboard.reset()

    assert gameboard.ships_count == 0
    assert gameboard.alive_ships_count == 0
    assert all(cell == Cell() for row in gameboard.get_board_copy() for cell in row)
    gameboard.add_ship(ShipType.SUBMARINE, Coordinate(2, 2), Direction.DOWN)
    assert gameboard.ships_count == 1


def test_has_ship_counts_by_type(gameboard: Gameboard) -> None:
    assert gameboard.has_ship(None) == 0
    gameboard.add_ship(ShipType.CRUISER, Coordinate(0, 0), Direction.RIGHT)
    gameboard.add_ship(ShipType.CRUISER, Coordinate(1, 0), Direction.RIGHT)
    gameboard.add_ship(ShipType.BATTLESHIP, Coordinate(2, 0), Direction.RIGHT)

    assert gameboard.has_ship(ShipType.DESTROYER) == 0
    assert gameboard.has_ship(ShipType.SUBMARINE) == 0
    assert gameboard.has_ship(ShipType.CRUISER) == 2
    assert gameboard.has_ship(ShipType.BATTLESHIP) == 1
