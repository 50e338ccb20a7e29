"""Tests for lobby event routing."""

import pytest

import core.session_store
from core.game import GameSession
from core.lobby import Lobby, ServerEvent


@pytest.fixture
def rigged_deck(monkeypatch, stacked_deck):
    """
    Make every new session deal the given codes in order.

    Returns a setter taking card codes.
    """

    def _rig(*codes: str) -> None:
        def _start(room_id, player_ids, rng=None, rules=None):
            session = GameSession(room_id, player_ids, deck=stacked_deck(*codes), rules=rules)
            session.deal()
            return session

        monkeypatch.setattr(core.session_store, "start_session", _start)

    return _rig


@pytest.fixture
def seated(lobby, outbox):
    """Pair c1 and c2 and clear the outbox."""
    lobby.request_match("c1")
    lobby.request_match("c2")
    outbox.clear()
    return lobby.store.session_for("c1")


class TestMatchmaking:
    """Tests for requestMatch and cancelMatchmaking."""

    def test_single_request_waits(self, lobby, outbox):
        lobby.request_match("c1")
        assert outbox.sent == []
        assert lobby.stats() == {"waiting": 1, "active_sessions": 0}

    def test_pair_gets_match_found_and_views(self, lobby, outbox):
        lobby.request_match("c1")
        lobby.request_match("c2")

        assert outbox.to("c1", ServerEvent.MATCH_FOUND) == [{"opponent_id": "c2"}]
        assert outbox.to("c2", ServerEvent.MATCH_FOUND) == [{"opponent_id": "c1"}]

        for conn_id in ("c1", "c2"):
            updates = outbox.to(conn_id, ServerEvent.GAME_UPDATE)
            assert len(updates) == 1
            assert updates[0]["player_state"]["id"] == conn_id
            assert updates[0]["dealer_state"]["hide_second_card"] is True
            assert updates[0]["current_turn"] == "c1"

        assert lobby.stats() == {"waiting": 0, "active_sessions": 1}

    def test_match_found_precedes_update(self, lobby, outbox):
        lobby.request_match("c1")
        lobby.request_match("c2")
        events = [ev for cid, ev, _ in outbox.sent if cid == "c1"]
        assert events == [ServerEvent.MATCH_FOUND, ServerEvent.GAME_UPDATE]

    def test_duplicate_request_ignored(self, lobby, outbox):
        lobby.request_match("c1")
        lobby.request_match("c1")
        assert lobby.matchmaker.waiting == ["c1"]
        assert len(lobby.store) == 0

    def test_seated_connection_cannot_queue(self, lobby, outbox, seated):
        lobby.request_match("c1")
        assert "c1" not in lobby.matchmaker
        assert outbox.sent == [
            ("c1", ServerEvent.GAME_UPDATE, {
                "message": "Already seated at a table; reconnect to play again",
                "message_type": "error",
            }),
        ]

    def test_request_after_round_over_gets_error(self, lobby, outbox, rigged_deck):
        rigged_deck("10H", "10S", "10D", "9H", "7S", "8D")
        lobby.request_match("c1")
        lobby.request_match("c2")
        lobby.player_action("c1", "stand")
        lobby.player_action("c2", "stand")
        outbox.clear()

        lobby.request_match("c2")

        assert outbox.to("c2", ServerEvent.GAME_UPDATE) == [{
            "message": "Already seated at a table; reconnect to play again",
            "message_type": "error",
        }]
        assert len(lobby.matchmaker) == 0

    def test_cancel(self, lobby, outbox):
        lobby.request_match("c1")
        lobby.cancel_matchmaking("c1")
        lobby.request_match("c2")
        assert lobby.matchmaker.waiting == ["c2"]
        assert outbox.sent == []

    def test_cancel_when_not_queued(self, lobby):
        lobby.cancel_matchmaking("c1")
        assert len(lobby.matchmaker) == 0


class TestPlayerAction:
    """Tests for playerAction routing."""

    def test_action_broadcasts_to_both(self, lobby, outbox, rigged_deck):
        rigged_deck("2H", "3H", "10D", "5H", "6H", "7D", "4C")
        lobby.request_match("c1")
        lobby.request_match("c2")
        outbox.clear()

        lobby.player_action("c1", "hit")

        c1_update = outbox.to("c1", ServerEvent.GAME_UPDATE)[-1]
        c2_update = outbox.to("c2", ServerEvent.GAME_UPDATE)[-1]
        assert c1_update["player_state"]["total"] == 11
        assert c2_update["opponent_state"]["total"] == 11
        assert c1_update["message"] == "c1 hits and gets 4 of Clubs."

    def test_wrong_turn_errors_to_sender_only(self, lobby, outbox, seated):
        lobby.player_action("c2", "hit")
        assert outbox.sent == [
            ("c2", ServerEvent.GAME_UPDATE, {"message": "It's not your turn!", "message_type": "error"}),
        ]
        assert len(seated.players["c2"].hand) == 2

    def test_unknown_action_ignored(self, lobby, outbox, seated, caplog):
        deck_size = len(seated.deck)
        with caplog.at_level("WARNING", logger="core.lobby"):
            lobby.player_action("c1", "double")
        assert outbox.sent == []
        assert len(seated.deck) == deck_size
        assert "Unknown action" in caplog.text

    def test_missing_action_ignored(self, lobby, outbox, seated):
        lobby.player_action("c1", None)
        assert outbox.sent == []

    def test_stale_room_ignored(self, lobby, outbox, caplog):
        with caplog.at_level("WARNING", logger="core.lobby"):
            lobby.player_action("ghost", "hit")
        assert outbox.sent == []
        assert "unknown or ended game" in caplog.text

    def test_round_over_sends_game_over(self, lobby, outbox, rigged_deck):
        # c1 20, c2 busts, dealer 18
        rigged_deck("KH", "10S", "10D", "QH", "6S", "8D", "KS")
        lobby.request_match("c1")
        lobby.request_match("c2")
        outbox.clear()

        lobby.player_action("c1", "stand")
        lobby.player_action("c2", "hit")

        c1_over = outbox.to("c1", ServerEvent.GAME_OVER)
        c2_over = outbox.to("c2", ServerEvent.GAME_OVER)
        assert len(c1_over) == 1
        assert len(c2_over) == 1
        assert c1_over[0]["message"] == "Round over! c1 wins! c2 busted. "
        assert c1_over[0]["type"] == "win"
        assert c1_over[0]["outcome"] == "win"
        assert c2_over[0]["outcome"] == "busted"

        final = c1_over[0]["final_game"]
        assert final["is_over"] is True
        assert final["dealer_state"]["total"] == 18
        assert final["dealer_state"]["hide_second_card"] is False

        # Final state update precedes the game-over frame
        c1_events = [ev for cid, ev, _ in outbox.sent if cid == "c1"]
        assert c1_events[-2:] == [ServerEvent.GAME_UPDATE, ServerEvent.GAME_OVER]

    def test_actions_after_round_over(self, lobby, outbox, rigged_deck):
        rigged_deck("10H", "10S", "10D", "9H", "7S", "8D")
        lobby.request_match("c1")
        lobby.request_match("c2")
        lobby.player_action("c1", "stand")
        lobby.player_action("c2", "stand")
        outbox.clear()

        lobby.player_action("c1", "hit")
        assert outbox.sent == [
            ("c1", ServerEvent.GAME_UPDATE, {"message": "It's not your turn!", "message_type": "error"}),
        ]

    def test_deck_exhaustion_voids_session(self, lobby, outbox, rigged_deck, caplog):
        rigged_deck("2H", "3H", "10D", "5H", "6H", "7D")
        lobby.request_match("c1")
        lobby.request_match("c2")
        outbox.clear()

        with caplog.at_level("ERROR", logger="core.lobby"):
            lobby.player_action("c1", "hit")

        for conn_id in ("c1", "c2"):
            over = outbox.to(conn_id, ServerEvent.GAME_OVER)
            assert len(over) == 1
            assert over[0]["type"] == "info"
            assert over[0]["final_game"] is None
        assert len(lobby.store) == 0
        assert "Deck exhausted" in caplog.text


class TestDisconnect:
    """Tests for disconnect handling."""

    def test_queued_disconnect(self, lobby, outbox):
        lobby.request_match("c1")
        lobby.disconnect("c1")
        assert len(lobby.matchmaker) == 0
        assert outbox.sent == []

    def test_unknown_disconnect(self, lobby, outbox):
        lobby.disconnect("nobody")
        assert outbox.sent == []

    @pytest.mark.parametrize("leaver, stayer", [("c1", "c2"), ("c2", "c1")])
    def test_in_session_disconnect_forfeits(self, lobby, outbox, seated, leaver, stayer):
        lobby.disconnect(leaver)

        assert outbox.sent == [
            (stayer, ServerEvent.GAME_OVER, {
                "message": "Opponent disconnected. You win!",
                "type": "win",
                "outcome": "win",
                "final_game": None,
            }),
        ]
        assert lobby.store.get(seated.room_id) is None
        assert lobby.store.room_for(stayer) is None

    def test_remaining_player_can_queue_again(self, lobby, outbox, seated):
        lobby.disconnect("c1")
        lobby.request_match("c2")
        lobby.request_match("c3")
        assert lobby.store.room_for("c2") == "game-c2-c3"

    def test_action_after_opponent_left(self, lobby, outbox, seated):
        lobby.disconnect("c2")
        outbox.clear()
        lobby.player_action("c1", "hit")
        assert outbox.sent == []
