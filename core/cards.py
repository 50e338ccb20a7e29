"""Card and Deck classes plus blackjack card arithmetic."""

from dataclasses import dataclass
from enum import Enum
from random import Random
from typing import Iterator

from config import config


class Suit(Enum):
    """Card suits, in dealing-order of a fresh deck."""

    HEARTS = "Hearts"
    DIAMONDS = "Diamonds"
    CLUBS = "Clubs"
    SPADES = "Spades"

    def __str__(self) -> str:
        return self.value


class Rank(Enum):
    """Card ranks keyed by their printed label."""

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"

    def __str__(self) -> str:
        return self.value

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE

    @property
    def is_face(self) -> bool:
        """Check if this rank is a Jack, Queen or King."""
        return self in (Rank.JACK, Rank.QUEEN, Rank.KING)


class DeckExhaustedError(IndexError):
    """Raised when a card is requested from an empty deck."""


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank} of {self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    def to_dict(self) -> dict[str, str]:
        """Wire representation, e.g. {"rank": "10", "suit": "Hearts"}."""
        return {"rank": self.rank.value, "suit": self.suit.value}

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a short string like 'AS', '10h', 'Kd'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        suit_map = {
            "H": Suit.HEARTS,
            "D": Suit.DIAMONDS,
            "C": Suit.CLUBS,
            "S": Suit.SPADES,
        }

        try:
            rank = Rank(rank_str)
        except ValueError:
            raise ValueError(f"Invalid rank: {rank_str}") from None
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank, suit_map[suit_str])


def new_deck() -> list[Card]:
    """Return a fresh 52-card list, suit-major and rank-minor."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


def shuffle(cards: list[Card], rng: Random | None = None) -> list[Card]:
    """
    Shuffle cards in place with Fisher-Yates.

    Args:
        cards: The cards to permute
        rng: Random source (a fresh Random if omitted)

    Returns:
        The same list, for chaining
    """
    rng = rng or Random()
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def card_value(card: Card, current_total: int) -> int:
    """
    Value of one card given the running total before it.

    Face cards count 10 and numerals their face value. An Ace counts 11
    unless that would push the running total past 21, in which case it
    counts 1.
    """
    limit = config.table.blackjack_limit
    if card.is_ace:
        return 1 if current_total + 11 > limit else 11
    if card.rank.is_face:
        return 10
    return int(card.rank.value)


def hand_total(cards: list[Card]) -> int:
    """
    Fold card_value left to right, then demote soft Aces while busting.

    Only Aces that were actually counted as 11 can be demoted, so a hand
    like K-5-A-K stays at 26 instead of being pulled back under 21.
    """
    limit = config.table.blackjack_limit
    total = 0
    soft_aces = 0

    for card in cards:
        value = card_value(card, total)
        if card.is_ace and value == 11:
            soft_aces += 1
        total += value

    while total > limit and soft_aces > 0:
        total -= 10
        soft_aces -= 1

    return total


class Deck:
    """A single 52-card deck owned by one game session."""

    def __init__(self, cards: list[Card] | None = None, rng: Random | None = None) -> None:
        """
        Initialize a deck.

        Args:
            cards: Explicit card order (top of deck is the last element).
                When omitted, a fresh deck is built and shuffled.
            rng: Random number generator for shuffling
        """
        self._rng = rng or Random()
        if cards is None:
            cards = shuffle(new_deck(), self._rng)
        self._cards: list[Card] = list(cards)

    def draw(self) -> Card:
        """Draw a card from the top of the deck."""
        if not self._cards:
            raise DeckExhaustedError("Cannot draw from empty deck")
        return self._cards.pop()

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)
