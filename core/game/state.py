"""Turn state enumeration."""

from enum import Enum, auto


class TurnState(Enum):
    """
    Per-session turn state machine states.

    Flow: PLAYER_TURN → (PLAYER_TURN)* → DEALER_TURN → ROUND_OVER
    """

    # One of the two seated players is acting
    PLAYER_TURN = auto()

    # Dealer draws to 17 automatically
    DEALER_TURN = auto()

    # Outcomes resolved, terminal for the session
    ROUND_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


class Outcome(Enum):
    """Result of one player's hand against the dealer."""

    WIN = "win"
    LOSE = "lose"
    PUSH = "push"
    BUSTED = "busted"

    def __str__(self) -> str:
        return self.value
