"""FIFO matchmaking queue."""

import logging
from collections import deque
from typing import Callable

from core.game.engine import GameSession
from core.session_store import SessionStore

logger = logging.getLogger(__name__)

# Type alias for the callback fired when a pair is seated
MatchHandler = Callable[[GameSession], None]


class Matchmaker:
    """
    Pairs waiting connections two at a time, oldest first.

    The matchmaker only holds connection ids; sessions are created in and
    owned by the SessionStore.
    """

    def __init__(self, store: SessionStore, on_match: MatchHandler | None = None) -> None:
        self._store = store
        self._on_match = on_match
        self._queue: deque[str] = deque()

    def enqueue(self, conn_id: str) -> GameSession | None:
        """
        Add a connection to the queue and pair the two oldest if possible.

        Returns:
            The newly created session, or None if still waiting

        Raises:
            ValueError: if the connection is already seated
        """
        if self._store.room_for(conn_id) is not None:
            raise ValueError(f"{conn_id} is already seated in {self._store.room_for(conn_id)}")

        self._queue.append(conn_id)
        logger.info("Match request from %s (%d waiting)", conn_id, len(self._queue))

        if len(self._queue) < 2:
            return None

        player1_id = self._queue.popleft()
        player2_id = self._queue.popleft()
        try:
            session = self._store.create(player1_id, player2_id)
        except ValueError:
            self._queue.extendleft((player2_id, player1_id))
            raise
        logger.info("Match found! %s vs %s in room %s", player1_id, player2_id, session.room_id)

        if self._on_match is not None:
            self._on_match(session)
        return session

    def cancel(self, conn_id: str) -> bool:
        """
        Remove the first occurrence of a connection from the queue.

        Returns:
            True if the connection was queued
        """
        try:
            self._queue.remove(conn_id)
        except ValueError:
            return False
        logger.info("%s left the matchmaking queue", conn_id)
        return True

    def remove_on_disconnect(self, conn_id: str) -> bool:
        """Drop a disconnected connection from the queue."""
        return self.cancel(conn_id)

    @property
    def waiting(self) -> list[str]:
        """Snapshot of queued connection ids, oldest first."""
        return list(self._queue)

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._queue

    def __len__(self) -> int:
        return len(self._queue)
