"""Pytest fixtures for PvP blackjack tests."""

import pytest
from random import Random

from core.cards import Card, Deck
from core.game import GameSession
from core.hand import Hand
from core.lobby import Lobby


def cards_from(*codes: str) -> list[Card]:
    """Build cards from short codes like 'AS', '10H'."""
    return [Card.from_string(code) for code in codes]


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def make_cards():
    """Factory for card lists from short codes."""
    return cards_from


@pytest.fixture
def make_hand():
    """Factory for hands from short codes."""

    def _make(*codes: str) -> Hand:
        return Hand(cards=cards_from(*codes))

    return _make


@pytest.fixture
def stacked_deck():
    """
    Factory for a deck that deals the given codes in order.

    The first code is the first card dealt.
    """

    def _make(*codes: str) -> Deck:
        return Deck(cards=list(reversed(cards_from(*codes))))

    return _make


@pytest.fixture
def stacked_session(stacked_deck):
    """
    Factory for a dealt alice-vs-bob session with a fixed card order.

    Deal order is alice, bob, dealer, alice, bob, dealer, then any
    hits in sequence.
    """

    def _make(*codes: str, players: tuple[str, str] = ("alice", "bob")) -> GameSession:
        session = GameSession(
            f"game-{players[0]}-{players[1]}",
            players,
            deck=stacked_deck(*codes),
        )
        session.deal()
        return session

    return _make


class Outbox:
    """Records frames a Lobby sends, for assertions."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict]] = []

    def __call__(self, conn_id: str, event: str, data: dict) -> None:
        self.sent.append((conn_id, event, data))

    def to(self, conn_id: str, event: str | None = None) -> list[dict]:
        """Payloads delivered to one connection, optionally of one event."""
        return [
            data for cid, ev, data in self.sent
            if cid == conn_id and (event is None or ev == event)
        ]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def outbox():
    """A recording send callback."""
    return Outbox()


@pytest.fixture
def lobby(outbox, rng):
    """A lobby wired to the recording outbox."""
    return Lobby(send=outbox, rng=rng)

