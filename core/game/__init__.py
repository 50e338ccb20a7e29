"""Game engine and state management."""

from core.game.events import GameEvent, EventType
from core.game.state import Outcome, TurnState
from core.game.engine import DEALER, GameSession, PlayerState, DealerState, start_session
from core.game.view import project

__all__ = [
    "GameEvent",
    "EventType",
    "Outcome",
    "TurnState",
    "DEALER",
    "GameSession",
    "PlayerState",
    "DealerState",
    "start_session",
    "project",
]
