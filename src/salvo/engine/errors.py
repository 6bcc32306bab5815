"""Exceptions raised by the low-level game components."""

from __future__ import annotations


class GameError(ValueError):
    """Base class for rule violations detected by boards and participants."""


class PlacementError(GameError):
    """A ship placement or an attack on a gameboard is not valid."""


class TrackingError(GameError):
    """A tracking board received an invalid enemy or point."""


class PlayerError(GameError):
    """A participant was created or used in an invalid way."""
