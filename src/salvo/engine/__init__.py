"""Rules engine: boards, ships, participants and match coordination."""

from .board import Board, Cell, Gameboard, ShipInfo
from .coordinator import Credential, GamePhase, MatchCoordinator
from .errors import GameError, PlacementError, PlayerError, TrackingError
from .identity import IdentityAllocator
from .messages import Message, MessageService, MessageStatus
from .player import Attack, AttackReport, AutomatedParticipant, Participant, ParticipantKind
from .ship import ALL_SHIPS, Coordinate, Direction, Ship, ShipSpec, ShipType
from .streams import Stream, Subscription, ValueStream
from .tracking import TrackingBoard

__all__ = [
    "ALL_SHIPS",
    "Attack",
    "AttackReport",
    "AutomatedParticipant",
    "Board",
    "Cell",
    "Coordinate",
    "Credential",
    "Direction",
    "GameError",
    "GamePhase",
    "Gameboard",
    "IdentityAllocator",
    "MatchCoordinator",
    "Message",
    "MessageService",
    "MessageStatus",
    "Participant",
    "ParticipantKind",
    "PlacementError",
    "PlayerError",
    "Ship",
    "ShipInfo",
    "ShipSpec",
    "ShipType",
    "Stream",
    "Subscription",
    "TrackingBoard",
    "TrackingError",
    "ValueStream",
]
