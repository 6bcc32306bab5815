"""Tests for participants and the automated targeting strategy."""

import random

import numpy as np
import pytest

from salvo.engine.errors import PlayerError
from salvo.engine.identity import IdentityAllocator
from salvo.engine.player import AttackReport, AutomatedParticipant, Participant
from salvo.engine.ship import Coordinate


@pytest.fixture
def allocator() -> IdentityAllocator:
    return IdentityAllocator()


@pytest.fixture
def computer(allocator: IdentityAllocator) -> AutomatedParticipant:
    return AutomatedParticipant("computer player", allocator, rng=random.Random(7))


def test_participant_requires_a_name(allocator: IdentityAllocator) -> None:
    for name in (None, "", "   "):
        with pytest.raises(PlayerError):
            Participant(name, allocator)


def test_participant_identity_and_rename(allocator: IdentityAllocator) -> None:
    first = Participant("first", allocator)
    second = Participant("second", allocator)
    assert 0 < first.id < second.id

    first.name = "renamed"
    assert first.name == "renamed"
    with pytest.raises(PlayerError):
        first.name = ""
    assert first.name == "renamed"


def test_wins_accumulate_until_reset(computer: AutomatedParticipant) -> None:
    for _ in range(3):
        computer.add_win()
    assert computer.wins == 3
    computer.reset()
    assert computer.wins == 0


def test_attack_without_enemies_fails(computer: AutomatedParticipant) -> None:
    with pytest.raises(PlayerError):
        computer.attack()


def test_acknowledge_enemy_ignores_self_missing_and_duplicates(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    other = Participant("other", allocator)
    computer.acknowledge_enemy(None)
    computer.acknowledge_enemy(0)
    computer.acknowledge_enemy(computer.id)
    computer.acknowledge_enemy(other.id)
    computer.acknowledge_enemy(other.id)
    assert computer.enemy_ids == [other.id]


def test_attack_targets_the_acknowledged_enemy(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    other = Participant("other", allocator)
    computer.acknowledge_enemy(other.id)

    move = computer.attack()

    assert move.victim_id == other.id
    assert 0 <= move.attack_point.row < 10
    assert 0 <= move.attack_point.col < 10


def test_attack_finds_the_only_untargeted_cell(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    other = Participant("other", allocator)
    empty_point = Coordinate(4, 7)
    computer.acknowledge_enemy(other.id)
    for row in range(10):
        for col in range(10):
            point = Coordinate(row, col)
            if point != empty_point:
                computer.receive_attack_report(AttackReport(other.id, point, has_victim_lost=False))

    for _ in range(5):
        assert computer.attack().attack_point == empty_point


def test_attack_never_repeats_reported_cells(allocator: IdentityAllocator) -> None:
    computer = AutomatedParticipant("computer", allocator, rng=random.Random(11))
    other = Participant("other", allocator)
    computer.acknowledge_enemy(other.id)
    reported = {Coordinate(row, col) for row in range(10) for col in range(10) if (row + col) % 3}
    for point in reported:
        computer.receive_attack_report(AttackReport(other.id, point, has_victim_lost=False))

    for _ in range(200):
        assert computer.attack().attack_point not in reported


def test_attack_skips_enemies_that_lost(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    second = Participant("second", allocator)
    third = Participant("third", allocator)
    computer.acknowledge_enemy(second.id)
    computer.acknowledge_enemy(third.id)

    computer.receive_attack_report(AttackReport(second.id, Coordinate(0, 0), has_victim_lost=True))

    assert not computer.is_enemy_alive(second.id)
    for _ in range(50):
        assert computer.attack().victim_id == third.id


def test_attack_fails_when_every_enemy_lost(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    other = Participant("other", allocator)
    computer.acknowledge_enemy(other.id)
    computer.receive_attack_report(AttackReport(other.id, Coordinate(1, 1), has_victim_lost=True))
    with pytest.raises(PlayerError):
        computer.attack()


def test_reports_about_self_missing_or_unknown_are_ignored(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    other = Participant("other", allocator)
    computer.acknowledge_enemy(other.id)

    computer.receive_attack_report(None)
    computer.receive_attack_report(AttackReport(computer.id, Coordinate(1, 1), has_victim_lost=True))
    computer.receive_attack_report(AttackReport(999, Coordinate(1, 1), has_victim_lost=True))

    assert computer.is_enemy_alive(other.id)
    assert not computer.get_tracking_copy(other.id).any()
    assert computer.get_tracking_copy(999) is None


def test_invalid_report_points_are_swallowed(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    other = Participant("other", allocator)
    computer.acknowledge_enemy(other.id)

    computer.receive_attack_report(AttackReport(other.id, None, has_victim_lost=False))
    computer.receive_attack_report(AttackReport(other.id, Coordinate(12, 3), has_victim_lost=True))

    assert not computer.get_tracking_copy(other.id).any()
    assert not computer.is_enemy_alive(other.id)


def test_reset_tracking_keeps_enemies(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    other = Participant("other", allocator)
    computer.acknowledge_enemy(other.id)
    computer.receive_attack_report(AttackReport(other.id, Coordinate(2, 2), has_victim_lost=True))
    computer.add_win()

    computer.reset_tracking()

    assert computer.wins == 1
    assert computer.enemy_ids == [other.id]
    assert computer.is_enemy_alive(other.id)
    assert computer.attack().victim_id == other.id


def test_tracking_copy_is_a_boolean_grid(
    computer: AutomatedParticipant, allocator: IdentityAllocator
) -> None:
    other = Participant("other", allocator)
    computer.acknowledge_enemy(other.id)
    computer.receive_attack_report(AttackReport(other.id, Coordinate(3, 4), has_victim_lost=False))

    grid = computer.get_tracking_copy(other.id)

    assert grid.shape == (10, 10)
    assert grid.dtype == np.bool_
    assert grid[3, 4] and grid.sum() == 1
    grid[0, 0] = True
    assert not computer.get_tracking_copy(other.id)[0, 0]
