"""Simple command-line driver for playing salvo against computer opponents."""

from __future__ import annotations

import argparse
from typing import Sequence

from salvo.engine.board import Cell
from salvo.engine.coordinator import Credential, GamePhase, MatchCoordinator
from salvo.engine.messages import Message, MessageStatus
from salvo.engine.player import AttackReport, ParticipantKind
from salvo.engine.ship import ALL_SHIPS, Coordinate, Direction, ShipSpec, ShipType
from salvo.settings import MatchSettings
from salvo.telemetry import TelemetryConfig, init_telemetry

ROW_LABELS = "ABCDEFGHIJ"
DIRECTION_KEYS = {
    "U": Direction.UP,
    "D": Direction.DOWN,
    "L": Direction.LEFT,
    "R": Direction.RIGHT,
}


def _coordinate_from_input(text: str) -> Coordinate:
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    if cleaned[0].isalpha():
        if cleaned[0] not in ROW_LABELS:
            raise ValueError("Row must be between A and J.")
        row = ROW_LABELS.index(cleaned[0])
        try:
            col = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError("Column must be a number between 1 and 10.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '3 7'.")
        row, col = map(int, parts)
    if row not in range(10) or col not in range(10):
        raise ValueError("Coordinates must be within the 10x10 board.")
    return Coordinate(row, col)


def _label(coord: Coordinate) -> str:
    return f"{ROW_LABELS[coord.row]}{coord.col + 1}"


def _format_grid(symbol_at, size: int = 10) -> str:
    header = "    " + " ".join(f"{col+1:>2}" for col in range(size))
    rows = [header]
    for row in range(size):
        symbols = [f"{symbol_at(Coordinate(row, col)):>2}" for col in range(size)]
        rows.append(f"{ROW_LABELS[row]} |" + " ".join(symbols))
    return "\n".join(rows)


def _format_own_board(cells: list[list[Cell]]) -> str:
    def symbol(coord: Coordinate) -> str:
        cell = cells[coord.row][coord.col]
        if cell.hit:
            return "X" if cell.ship_info else "o"
        return "S" if cell.ship_info else "."

    return _format_grid(symbol, len(cells))


def _format_enemy_waters(shots: dict[Coordinate, bool]) -> str:
    def symbol(coord: Coordinate) -> str:
        if coord not in shots:
            return "."
        return "X" if shots[coord] else "o"

    return _format_grid(symbol)


class _Table:
    """Console-side view of the match assembled from the coordinator's streams."""

    def __init__(self, coordinator: MatchCoordinator) -> None:
        self.coordinator = coordinator
        self.current_id: int | None = None
        self.shots: dict[int, dict[Coordinate, bool]] = {}
        self.lost: set[int] = set()
        self.errors: list[str] = []
        coordinator.current_participant.subscribe(self._on_turn)
        coordinator.attack_reports.subscribe(self._on_attack)
        coordinator.losers.subscribe(self._on_loser)
        coordinator.winners.subscribe(self._on_winner)
        coordinator.messages.subscribe(self._on_message)

    def reset(self) -> None:
        self.current_id = None
        self.shots.clear()
        self.lost.clear()

    def _on_turn(self, participant_id: int) -> None:
        self.current_id = participant_id

    def _on_attack(self, report: AttackReport) -> None:
        if report.attack_point is None:
            return
        self.shots.setdefault(report.victim_id, {})[report.attack_point] = report.is_hit
        attacker = self.coordinator.get_player_name(self.current_id)
        victim = self.coordinator.get_player_name(report.victim_id)
        outcome = "hit" if report.is_hit else "miss"
        print(f"{attacker} fired at {victim} {_label(report.attack_point)}: {outcome}")

    def _on_loser(self, participant_id: int) -> None:
        self.lost.add(participant_id)
        print(f"{self.coordinator.get_player_name(participant_id)} has lost all ships!")

    def _on_winner(self, participant_id: int) -> None:
        print(f"\n{self.coordinator.get_player_name(participant_id)} wins the round!")

    def _on_message(self, message: Message) -> None:
        if message.status is not MessageStatus.OK:
            self.errors.append(message.body)
            print(f"[{message.status.value}] {message.body}")


def _prompt_yes_no(question: str, default: bool) -> bool:
    suffix = "[Y/n]" if default else "[y/N]"
    while True:
        raw = input(f"{question} {suffix}: ").strip().lower()
        if not raw:
            return default
        if raw in {"y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def _prompt_direction(ship_type: ShipType) -> Direction:
    while True:
        raw = (
            input(
                f"Place your {ship_type.label.title()} (length {ship_type.length}). "
                "Direction [U/D/L/R]: "
            )
            .strip()
            .upper()
        )
        if raw[:1] in DIRECTION_KEYS:
            return DIRECTION_KEYS[raw[:1]]
        print("Please enter U, D, L or R.")


def _manual_ship_placement(table: _Table, credential: Credential) -> None:
    coordinator = table.coordinator
    for ship_type in ALL_SHIPS:
        while True:
            print("\nCurrent layout:")
            print(_format_own_board(coordinator.get_player_board(credential)))
            direction = _prompt_direction(ship_type)
            try:
                start = _coordinate_from_input(input("Enter starting coordinate (e.g., A1): "))
            except ValueError as exc:
                print(f"Invalid coordinate: {exc}")
                continue
            table.errors.clear()
            coordinator.add_ship(credential, ShipSpec(ship_type, start, direction))
            if not table.errors:
                break


def _prompt_victim(table: _Table, player_id: int) -> int:
    coordinator = table.coordinator
    enemies = [
        pid for pid in coordinator.participant_ids if pid != player_id and pid not in table.lost
    ]
    if len(enemies) == 1:
        return enemies[0]
    for index, pid in enumerate(enemies, start=1):
        print(f"  {index}) {coordinator.get_player_name(pid)}")
    while True:
        raw = input("Choose the enemy to attack: ").strip()
        if raw.isdigit() and 1 <= int(raw) <= len(enemies):
            return enemies[int(raw) - 1]
        print(f"Enter a number between 1 and {len(enemies)}.")


def _prompt_for_coordinate(targeted: Sequence[Coordinate]) -> Coordinate:
    targeted_set = set(targeted)
    while True:
        raw = input("Enter target coordinate (e.g., A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            coord = _coordinate_from_input(raw)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        if coord in targeted_set:
            print("That cell has already been targeted. Choose another.")
            continue
        return coord


def _play_round(table: _Table, credential: Credential) -> None:
    coordinator = table.coordinator
    if _prompt_yes_no("Would you like to place your ships manually?", default=True):
        _manual_ship_placement(table, credential)
    else:
        coordinator.auto_place_fleet(credential)
        print("\nYour ships have been positioned automatically.")

    coordinator.start_game()
    while coordinator.phase is GamePhase.PLAYING:
        print("\nYour Board:")
        print(_format_own_board(coordinator.get_player_board(credential)))
        victim_id = _prompt_victim(table, credential.id)
        shots = table.shots.get(victim_id, {})
        print(f"\n{coordinator.get_player_name(victim_id)}'s waters:")
        print(_format_enemy_waters(shots))
        coord = _prompt_for_coordinate(list(shots))
        coordinator.attack(credential.id, victim_id, coord)


def _load_settings(seed: int | None) -> MatchSettings:
    return MatchSettings.from_env() if seed is None else MatchSettings.from_env(rng_seed=seed)


def play_game(
    seed: int | None = None,
    computers: int = 1,
    name: str = "Player",
    settings: MatchSettings | None = None,
) -> MatchCoordinator:
    print("Welcome to salvo!\n")
    if settings is None:
        settings = _load_settings(seed)
    coordinator = MatchCoordinator.from_settings(settings)
    table = _Table(coordinator)

    credential = coordinator.create_participant(name)
    if credential is None:
        raise SystemExit("Could not join the game.")
    for index in range(1, computers + 1):
        label = settings.computer_name if computers == 1 else f"{settings.computer_name} {index}"
        coordinator.create_participant(label, ParticipantKind.COMPUTER)

    while True:
        _play_round(table, credential)
        scores = ", ".join(
            f"{coordinator.get_player_name(pid)}={wins}" for pid, wins in coordinator.get_scores().items()
        )
        print(f"Scores: {scores}")
        if not _prompt_yes_no("Play another round?", default=False):
            return coordinator
        coordinator.new_round()
        table.reset()


def main() -> None:
    parser = argparse.ArgumentParser(description="Play salvo via the CLI.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--computers", type=int, default=1, help="Number of computer opponents (default 1)."
    )
    parser.add_argument("--name", default="Player", help="Your display name.")
    parser.add_argument(
        "--log-level", default="WARNING", help="Log level for engine output (default WARNING)."
    )
    args = parser.parse_args()
    if args.computers < 1:
        parser.error("--computers must be at least 1")
    try:
        settings = _load_settings(args.seed)
        config = TelemetryConfig.from_env(log_level=args.log_level)
    except ValueError as exc:
        parser.error(str(exc))
    init_telemetry(config)
    play_game(computers=args.computers, name=args.name, settings=settings)


if __name__ == "__main__":
    main()
