"""salvo: a Battleship rules engine for people and computer opponents."""

__version__ = "0.1.0"
