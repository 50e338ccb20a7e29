"""Per-recipient projections of a session's state."""

from typing import Any

from core.cards import card_value
from core.game.engine import GameSession, PlayerState

# Stand-in for the dealer's face-down card
HIDDEN_CARD: dict[str, Any] = {"rank": "?", "suit": "?", "hidden": True}


def _player_view(player: PlayerState, include_chips: bool = True) -> dict[str, Any]:
    view: dict[str, Any] = {
        "id": player.player_id,
        "hand": player.hand.to_list(),
        "total": player.total,
        "is_standing": player.is_standing,
        "is_busted": player.is_busted,
    }
    if include_chips:
        view["chips"] = player.chips
    return view


def _dealer_view(session: GameSession) -> dict[str, Any]:
    """
    Dealer hand as players may see it.

    Until the round is over only the up card and its value are exposed;
    the hole card and the true total stay on the server.
    """
    dealer = session.dealer
    if session.is_over:
        return {
            "hand": dealer.hand.to_list(),
            "total": dealer.total,
            "is_busted": dealer.is_busted,
            "hide_second_card": False,
        }

    up_card = dealer.hand[0]
    return {
        "hand": [up_card.to_dict(), dict(HIDDEN_CARD)],
        "total": card_value(up_card, 0),
        "is_busted": False,
        "hide_second_card": True,
    }


def project(session: GameSession, recipient_id: str) -> dict[str, Any]:
    """
    Build the view of a session sent to one participant.

    Both player hands are visible to both players; only the dealer's hole
    card is masked, and only while the round is in progress.

    Raises:
        UnknownPlayerError: if recipient_id is not seated in the session
    """
    recipient = session.player(recipient_id)
    opponent = session.players[session.opponent_of(recipient_id)]
    outcome = session.outcomes.get(recipient_id)

    return {
        "player_state": _player_view(recipient),
        "opponent_state": _player_view(opponent, include_chips=False),
        "dealer_state": _dealer_view(session),
        "current_turn": session.current_turn,
        "message": session.message,
        "is_over": session.is_over,
        "outcome_message": session.outcome_message,
        "outcome_type": session.outcome_type,
        "outcome": outcome.value if outcome else "",
    }
