"""Tests for per-recipient projections."""

import pytest
from random import Random

from core.cards import card_value
from core.game import project, start_session
from core.game.engine import UnknownPlayerError
from core.game.view import HIDDEN_CARD


class TestProjection:
    """Tests for the projected view."""

    def test_own_and_opponent_state(self, stacked_session):
        session = stacked_session("2H", "3H", "10D", "5H", "6H", "7D")
        view = project(session, "alice")

        assert view["player_state"] == {
            "id": "alice",
            "hand": [{"rank": "2", "suit": "Hearts"}, {"rank": "5", "suit": "Hearts"}],
            "total": 7,
            "is_standing": False,
            "is_busted": False,
            "chips": 1000,
        }
        # Opponent hands are visible, chips are not
        assert view["opponent_state"] == {
            "id": "bob",
            "hand": [{"rank": "3", "suit": "Hearts"}, {"rank": "6", "suit": "Hearts"}],
            "total": 9,
            "is_standing": False,
            "is_busted": False,
        }

    def test_views_are_mirrored(self, stacked_session):
        session = stacked_session("2H", "3H", "10D", "5H", "6H", "7D")
        alice_view = project(session, "alice")
        bob_view = project(session, "bob")
        assert alice_view["player_state"]["hand"] == bob_view["opponent_state"]["hand"]
        assert alice_view["opponent_state"]["id"] == "bob"
        assert bob_view["opponent_state"]["id"] == "alice"
        assert alice_view["dealer_state"] == bob_view["dealer_state"]

    def test_dealer_hole_card_masked(self, stacked_session):
        session = stacked_session("2H", "3H", "10D", "5H", "6H", "7D")
        dealer = project(session, "alice")["dealer_state"]

        assert dealer["hand"] == [{"rank": "10", "suit": "Diamonds"}, HIDDEN_CARD]
        assert dealer["total"] == 10
        assert dealer["hide_second_card"] is True
        assert dealer["is_busted"] is False

    def test_ace_up_card_shows_eleven(self, stacked_session):
        session = stacked_session("2H", "3H", "AD", "5H", "6H", "KD")
        assert project(session, "bob")["dealer_state"]["total"] == 11

    def test_round_fields_in_progress(self, stacked_session):
        session = stacked_session("2H", "3H", "10D", "5H", "6H", "7D")
        view = project(session, "bob")
        assert view["current_turn"] == "alice"
        assert view["is_over"] is False
        assert view["outcome_message"] == ""
        assert view["outcome_type"] == ""
        assert view["outcome"] == ""
        assert view["message"] == "Game started! Player 1's turn."

    def test_full_view_once_over(self, stacked_session):
        session = stacked_session("KH", "10S", "10D", "QH", "6S", "8D", "KS")
        session.stand("alice")
        session.hit("bob")

        alice_view = project(session, "alice")
        dealer = alice_view["dealer_state"]
        assert dealer["hand"] == [
            {"rank": "10", "suit": "Diamonds"},
            {"rank": "8", "suit": "Diamonds"},
        ]
        assert dealer["total"] == 18
        assert dealer["hide_second_card"] is False
        assert alice_view["is_over"] is True
        assert alice_view["outcome"] == "win"
        assert project(session, "bob")["outcome"] == "busted"
        assert alice_view["outcome_message"] == "Round over! alice wins! bob busted. "

    def test_unknown_recipient(self, stacked_session):
        session = stacked_session("2H", "3H", "10D", "5H", "6H", "7D")
        with pytest.raises(UnknownPlayerError):
            project(session, "mallory")

    @pytest.mark.parametrize("seed", range(25))
    def test_masking_holds_through_random_rounds(self, seed):
        rng = Random(seed)
        session = start_session("game-a-b", ("a", "b"), rng=rng)
        hole = session.dealer.hand[1].to_dict()

        while not session.is_over:
            for pid in ("a", "b"):
                dealer = project(session, pid)["dealer_state"]
                assert hole not in dealer["hand"][1:]
                assert dealer["hand"][1] == HIDDEN_CARD
                assert len(dealer["hand"]) == 2
                assert dealer["total"] == card_value(session.dealer.hand[0], 0)

            actor = session.current_turn
            if rng.random() < 0.5:
                session.hit(actor)
            else:
                session.stand(actor)

        final = project(session, "a")["dealer_state"]
        assert final["total"] == session.dealer.total
        assert final["hand"][1] == hole
