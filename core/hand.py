"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from typing import Iterator

from config import config
from core.cards import Card, hand_total


@dataclass
class Hand:
    """An append-only blackjack hand whose total is always derived."""

    cards: list[Card] = field(default_factory=list)

    def add_card(self, card: Card) -> None:
        """Add a card to the hand."""
        self.cards.append(card)

    @property
    def total(self) -> int:
        """Current hand total with soft Aces demoted as needed."""
        return hand_total(self.cards)

    @property
    def is_busted(self) -> bool:
        """Check if the hand total exceeds 21."""
        return self.total > config.table.blackjack_limit

    def to_list(self) -> list[dict[str, str]]:
        """Serialize cards for the wire."""
        return [card.to_dict() for card in self.cards]

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __getitem__(self, index: int) -> Card:
        return self.cards[index]

    def __str__(self) -> str:
        cards_str = ", ".join(str(card) for card in self.cards)
        return f"{cards_str} ({self.total})"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, total={self.total})"
