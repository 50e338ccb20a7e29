"""In-process registry of active game sessions."""

import logging
from random import Random
from typing import Iterator

from config import TableConfig
from core.game.engine import GameSession, start_session

logger = logging.getLogger(__name__)


def make_room_id(player1_id: str, player2_id: str) -> str:
    """Room identifier derived from the paired connection ids."""
    return f"game-{player1_id}-{player2_id}"


class SessionStore:
    """
    Owns every live GameSession, keyed by room id.

    Also keeps a connection-id to room-id index so an inbound action can be
    routed without scanning rooms.
    """

    def __init__(self, rng: Random | None = None, rules: TableConfig | None = None) -> None:
        self._sessions: dict[str, GameSession] = {}
        self._rooms_by_connection: dict[str, str] = {}
        self._rng = rng
        self._rules = rules

    def create(self, player1_id: str, player2_id: str) -> GameSession:
        """
        Deal a new session for two connections and register it.

        Raises:
            ValueError: if either connection is already seated
        """
        for conn_id in (player1_id, player2_id):
            if conn_id in self._rooms_by_connection:
                raise ValueError(f"{conn_id} is already seated in {self._rooms_by_connection[conn_id]}")

        room_id = make_room_id(player1_id, player2_id)
        session = start_session(room_id, (player1_id, player2_id), rng=self._rng, rules=self._rules)
        self._sessions[room_id] = session
        self._rooms_by_connection[player1_id] = room_id
        self._rooms_by_connection[player2_id] = room_id
        logger.debug("Registered session %s", room_id)
        return session

    def get(self, room_id: str) -> GameSession | None:
        """Get a session by room id."""
        return self._sessions.get(room_id)

    def room_for(self, conn_id: str) -> str | None:
        """Room the connection is seated in, if any."""
        return self._rooms_by_connection.get(conn_id)

    def session_for(self, conn_id: str) -> GameSession | None:
        """Session the connection is seated in, if any."""
        room_id = self._rooms_by_connection.get(conn_id)
        if room_id is None:
            return None
        return self._sessions.get(room_id)

    def remove(self, room_id: str) -> GameSession | None:
        """Tear down a session and release both seats."""
        session = self._sessions.pop(room_id, None)
        if session is None:
            return None
        for conn_id in session.player_order:
            if self._rooms_by_connection.get(conn_id) == room_id:
                del self._rooms_by_connection[conn_id]
        logger.debug("Removed session %s", room_id)
        return session

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[GameSession]:
        return iter(list(self._sessions.values()))
