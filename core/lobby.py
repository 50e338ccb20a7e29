"""Routes connection events to the matchmaker and game sessions."""

import logging
from random import Random
from typing import Any, Callable

from config import TableConfig
from core.cards import DeckExhaustedError
from core.game.engine import GameSession
from core.game.events import GameEvent
from core.game.view import project
from core.matchmaking import Matchmaker
from core.session_store import SessionStore

logger = logging.getLogger(__name__)


class ClientEvent:
    """Event names clients can send."""

    REQUEST_MATCH = "requestMatch"
    CANCEL_MATCHMAKING = "cancelMatchmaking"
    PLAYER_ACTION = "playerAction"


class ServerEvent:
    """Event names the server sends to clients."""

    CONNECTED = "connected"
    MATCH_FOUND = "matchFound"
    GAME_UPDATE = "pvpGameUpdate"
    GAME_OVER = "pvpGameOver"
    ERROR = "error"


# Delivers one outbound event: (connection id, event name, payload)
Sender = Callable[[str, str, dict[str, Any]], None]


class Lobby:
    """
    Single-dispatch front door for all connections.

    Every method runs to completion before the next message is handled, so
    no locking is needed. Nothing raised by the game core escapes to the
    caller: rejected actions become error-typed updates for the sender and
    stale references are logged and dropped.
    """

    def __init__(
        self,
        send: Sender,
        rng: Random | None = None,
        rules: TableConfig | None = None,
    ) -> None:
        self._send = send
        self.store = SessionStore(rng=rng, rules=rules)
        self.matchmaker = Matchmaker(self.store, on_match=self._on_match)

    def request_match(self, conn_id: str) -> None:
        """Queue a connection for a table."""
        room_id = self.store.room_for(conn_id)
        if room_id is not None:
            logger.warning("%s requested a match while seated in %s", conn_id, room_id)
            self._send_error_update(conn_id, "Already seated at a table; reconnect to play again")
            return
        if conn_id in self.matchmaker:
            logger.debug("%s is already waiting for a match", conn_id)
            return
        self.matchmaker.enqueue(conn_id)

    def cancel_matchmaking(self, conn_id: str) -> None:
        """Withdraw a connection from the queue."""
        self.matchmaker.cancel(conn_id)

    def player_action(self, conn_id: str, action: str | None) -> None:
        """Apply a hit or stand from a seated player and push fresh views."""
        session = self.store.session_for(conn_id)
        if session is None:
            logger.warning("Action received for unknown or ended game from %s", conn_id)
            return

        if session.current_turn != conn_id:
            self._send_error_update(conn_id, "It's not your turn!")
            return

        handlers = {
            "hit": session.hit,
            "stand": session.stand,
        }
        handler = handlers.get(action or "")
        if handler is None:
            logger.warning("Unknown action %r from %s in %s", action, conn_id, session.room_id)
            return

        try:
            applied = handler(conn_id)
        except DeckExhaustedError:
            logger.error("Deck exhausted in %s, voiding the round", session.room_id)
            self._void_session(session)
            return

        if not applied:
            self._send_error_update(conn_id, f"Cannot {action} now")
            return

        self._broadcast_state(session)
        if session.is_over:
            self._send_game_over(session)

    def disconnect(self, conn_id: str) -> None:
        """Forget a connection; forfeit its seat to the opponent if seated."""
        self.matchmaker.remove_on_disconnect(conn_id)

        room_id = self.store.room_for(conn_id)
        if room_id is None:
            return

        session = self.store.remove(room_id)
        if session is None:
            return

        remaining_id = session.opponent_of(conn_id)
        self._send(remaining_id, ServerEvent.GAME_OVER, {
            "message": "Opponent disconnected. You win!",
            "type": "win",
            "outcome": "win",
            "final_game": None,
        })
        logger.info("Game %s ended due to disconnect of %s", room_id, conn_id)

    def stats(self) -> dict[str, int]:
        """Queue and table counts for health reporting."""
        return {
            "waiting": len(self.matchmaker),
            "active_sessions": len(self.store),
        }

    def _on_match(self, session: GameSession) -> None:
        room_id = session.room_id
        session.events.subscribe(lambda event: self._log_event(room_id, event))

        player1_id, player2_id = session.player_order
        self._send(player1_id, ServerEvent.MATCH_FOUND, {"opponent_id": player2_id})
        self._send(player2_id, ServerEvent.MATCH_FOUND, {"opponent_id": player1_id})
        self._broadcast_state(session)

    def _broadcast_state(self, session: GameSession) -> None:
        for pid in session.player_order:
            self._send(pid, ServerEvent.GAME_UPDATE, project(session, pid))

    def _send_game_over(self, session: GameSession) -> None:
        for pid in session.player_order:
            self._send(pid, ServerEvent.GAME_OVER, {
                "message": session.outcome_message,
                "type": session.outcome_type,
                "outcome": session.outcomes[pid].value,
                "final_game": project(session, pid),
            })
        logger.info("Round over in %s: %s", session.room_id, session.outcome_message.strip())

    def _send_error_update(self, conn_id: str, message: str) -> None:
        self._send(conn_id, ServerEvent.GAME_UPDATE, {
            "message": message,
            "message_type": "error",
        })

    def _void_session(self, session: GameSession) -> None:
        self.store.remove(session.room_id)
        for pid in session.player_order:
            self._send(pid, ServerEvent.GAME_OVER, {
                "message": "The deck ran out. Round voided.",
                "type": "info",
                "outcome": "",
                "final_game": None,
            })

    @staticmethod
    def _log_event(room_id: str, event: GameEvent) -> None:
        logger.debug("[%s] %s", room_id, event)
