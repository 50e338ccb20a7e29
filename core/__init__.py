"""Core PvP blackjack engine - transport-agnostic."""

from core.cards import Card, Deck, DeckExhaustedError, Rank, Suit, card_value, hand_total
from core.hand import Hand

__all__ = [
    "Card",
    "Deck",
    "DeckExhaustedError",
    "Rank",
    "Suit",
    "Hand",
    "card_value",
    "hand_total",
]
