"""PvP blackjack session engine with state machine."""

from dataclasses import dataclass, field
from random import Random
from typing import Sequence

from transitions import Machine

from config import TableConfig, config
from core.cards import Card, Deck
from core.hand import Hand
from core.game.events import EventEmitter, EventType
from core.game.state import Outcome, TurnState

# Sentinel actor occupying the last slot of every turn order
DEALER = "dealer"


class UnknownPlayerError(KeyError):
    """Raised when an id is not seated at the table."""


@dataclass
class PlayerState:
    """One seated player's state during the round."""

    player_id: str
    hand: Hand = field(default_factory=Hand)
    is_standing: bool = False
    is_busted: bool = False
    chips: int = 1000

    @property
    def total(self) -> int:
        """Current hand total."""
        return self.hand.total

    @property
    def is_done(self) -> bool:
        """A standing or busted player takes no further turns this round."""
        return self.is_standing or self.is_busted


@dataclass
class DealerState:
    """Dealer state. The dealer never stands by choice, only by total."""

    hand: Hand = field(default_factory=Hand)
    is_busted: bool = False

    @property
    def total(self) -> int:
        """Current (true) hand total, including the hole card."""
        return self.hand.total


class GameSession:
    """
    One two-player-versus-dealer round.

    Turn order is fixed at creation: first player, second player, dealer.
    Player actions are synchronous; once both players are standing or
    busted the dealer plays out and the round resolves in the same call.
    Invalid actions return False and change nothing.
    """

    # State machine states
    STATES = [s.name.lower() for s in TurnState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "player_action", "source": "player_turn", "dest": "player_turn"},
        {"trigger": "players_done", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "dealer_done", "source": "dealer_turn", "dest": "round_over"},
    ]

    def __init__(
        self,
        room_id: str,
        player_ids: Sequence[str],
        deck: Deck | None = None,
        rules: TableConfig | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a new session. Cards are not dealt until deal() is called.

        Args:
            room_id: Room identifier shared by both participants
            player_ids: The two seated connection ids, in turn order
            deck: Deck to deal from (a freshly shuffled one if omitted)
            rules: Table rules (uses the global config if not provided)
            rng: Random number generator used to shuffle a fresh deck
        """
        if len(player_ids) != 2 or player_ids[0] == player_ids[1]:
            raise ValueError("A table seats exactly two distinct players")

        self.room_id = room_id
        self.rules = rules or config.table
        self.deck = deck if deck is not None else Deck(rng=rng)

        self.player_order: list[str] = list(player_ids)
        self.players: dict[str, PlayerState] = {
            pid: PlayerState(player_id=pid, chips=self.rules.starting_chips)
            for pid in self.player_order
        }
        self.dealer = DealerState()

        self.turn_order: list[str] = [*self.player_order, DEALER]
        self.turn_index = 0
        self.current_turn = self.player_order[0]

        self.is_over = False
        self.message = ""
        self.outcome_message = ""
        self.outcome_type = ""
        self.outcomes: dict[str, Outcome] = {}
        self.transcript: list[str] = []
        self.events = EventEmitter()

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="player_turn",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def state(self) -> TurnState:
        """Get current turn state as enum."""
        return TurnState[self._machine_state.upper()]  # type: ignore

    def player(self, player_id: str) -> PlayerState:
        """Look up a seated player."""
        try:
            return self.players[player_id]
        except KeyError:
            raise UnknownPlayerError(player_id) from None

    def opponent_of(self, player_id: str) -> str:
        """Return the other seated player's id."""
        self.player(player_id)
        return next(pid for pid in self.player_order if pid != player_id)

    def deal(self) -> None:
        """Deal two cards each, one at a time: players first, dealer last."""
        for _ in range(2):
            for pid in self.player_order:
                self._deal_card(self.players[pid].hand, owner=pid)
            self._deal_card(self.dealer.hand, owner=DEALER)

        self.message = "Game started! Player 1's turn."
        self._record(self.message)
        self.events.emit_new(
            EventType.ROUND_STARTED,
            room_id=self.room_id,
            players=list(self.player_order),
        )

    def _deal_card(self, hand: Hand, owner: str) -> Card:
        """Pop one card off the deck onto a hand."""
        card = self.deck.draw()
        hand.add_card(card)
        hole_card = owner == DEALER and len(hand) == 2
        self.events.emit_new(
            EventType.CARD_DEALT,
            card="??" if hole_card else str(card),
            hand=owner,
        )
        return card

    def _record(self, line: str) -> None:
        self.transcript.append(line)

    def can_act(self, actor_id: str) -> bool:
        """Check whether actor_id may hit or stand right now."""
        if self.state != TurnState.PLAYER_TURN or self.current_turn != actor_id:
            return False
        player = self.players.get(actor_id)
        return player is not None and not player.is_done

    def hit(self, actor_id: str) -> bool:
        """
        Actor takes another card.

        Returns:
            True if the action was applied, False if it was ignored
        """
        if not self.can_act(actor_id):
            self.events.emit_new(EventType.INVALID_ACTION, player_id=actor_id, action="hit")
            return False

        player = self.players[actor_id]
        card = self._deal_card(player.hand, owner=actor_id)
        self.events.emit_new(EventType.PLAYER_HIT, player_id=actor_id, total=player.total)

        if player.hand.is_busted:
            player.is_busted = True
            self.message = f"{actor_id} busted!"
            self._record(self.message)
            self.events.emit_new(EventType.PLAYER_BUSTS, player_id=actor_id, total=player.total)
            self.advance_turn()
        else:
            self.message = f"{actor_id} hits and gets {card}."
            self._record(self.message)
            self.player_action()  # Stay in player turn
        return True

    def stand(self, actor_id: str) -> bool:
        """
        Actor keeps their hand for the rest of the round.

        Returns:
            True if the action was applied, False if it was ignored
        """
        if not self.can_act(actor_id):
            self.events.emit_new(EventType.INVALID_ACTION, player_id=actor_id, action="stand")
            return False

        player = self.players[actor_id]
        player.is_standing = True
        self.message = f"{actor_id} stands."
        self._record(self.message)
        self.events.emit_new(EventType.PLAYER_STAND, player_id=actor_id, total=player.total)
        self.advance_turn()
        return True

    def advance_turn(self) -> None:
        """Move to the next eligible player, or hand over to the dealer."""
        if self.state != TurnState.PLAYER_TURN:
            return

        index = (self.turn_index + 1) % len(self.turn_order)
        actor = self.turn_order[index]

        # Skip players who have busted or stood
        while actor != DEALER and self.players[actor].is_done:
            index = (index + 1) % len(self.turn_order)
            actor = self.turn_order[index]

        self.turn_index = index
        self.current_turn = actor
        self.events.emit_new(EventType.TURN_CHANGED, current_turn=actor)

        if actor == DEALER:
            self.players_done()
            self.play_dealer()
            self.resolve_outcome()
        else:
            self.message = f"It's {actor}'s turn."
            self.player_action()

    def play_dealer(self) -> None:
        """Reveal the hole card and draw until the stand total is reached."""
        if self.state != TurnState.DEALER_TURN:
            return

        hand = self.dealer.hand
        self.message = "Dealer's turn..."
        self._record(f"Dealer reveals {hand[1]} ({hand.total}).")
        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=str(hand[1]),
            total=hand.total,
        )

        while hand.total < self.rules.dealer_stand_total:
            card = self._deal_card(hand, owner=DEALER)
            line = f"Dealer hits and gets {card}."
            self.message += f" {line}"
            self._record(line)
            self.events.emit_new(EventType.DEALER_HITS, card=str(card), total=hand.total)

        if hand.is_busted:
            self.dealer.is_busted = True
            self.message += " Dealer busts!"
            self._record("Dealer busts!")
            self.events.emit_new(EventType.DEALER_BUSTS, total=hand.total)
        else:
            self.message += " Dealer stands."
            self._record(f"Dealer stands on {hand.total}.")
            self.events.emit_new(EventType.DEALER_STANDS, total=hand.total)

    def _compare(self, player: PlayerState) -> Outcome:
        """Settle one player's hand against the dealer's."""
        if player.is_busted:
            return Outcome.BUSTED
        if self.dealer.is_busted or player.total > self.dealer.total:
            return Outcome.WIN
        if player.total < self.dealer.total:
            return Outcome.LOSE
        return Outcome.PUSH

    def resolve_outcome(self) -> None:
        """
        Settle both players independently and end the round.

        outcome_type keeps the legacy single flag: it is "info" unless a
        player won or lost, and the second player's result overrides the
        first. Use outcomes for the per-player result.
        """
        if self.state != TurnState.DEALER_TURN:
            return

        message = "Round over! "
        outcome_type = "info"
        phrases = {
            Outcome.BUSTED: "busted.",
            Outcome.WIN: "wins!",
            Outcome.LOSE: "loses.",
            Outcome.PUSH: "pushes.",
        }

        for pid in self.player_order:
            outcome = self._compare(self.players[pid])
            self.outcomes[pid] = outcome
            message += f"{pid} {phrases[outcome]} "
            if outcome in (Outcome.WIN, Outcome.LOSE):
                outcome_type = outcome.value

        self.outcome_message = message
        self.outcome_type = outcome_type
        self.is_over = True
        self._record(message.strip())
        self.events.emit_new(
            EventType.ROUND_ENDED,
            outcomes={pid: str(o) for pid, o in self.outcomes.items()},
            dealer_total=self.dealer.total,
        )
        self.dealer_done()


def start_session(
    room_id: str,
    player_ids: Sequence[str],
    rng: Random | None = None,
    rules: TableConfig | None = None,
) -> GameSession:
    """Create a session with a freshly shuffled deck and deal it."""
    session = GameSession(room_id, player_ids, rules=rules, rng=rng)
    session.deal()
    return session
