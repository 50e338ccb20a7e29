"""Pydantic schemas for WebSocket frames and HTTP responses."""

from typing import Any, Literal

from pydantic import BaseModel, Field


# Inbound frames
class ClientMessage(BaseModel):
    """A frame sent by a client."""

    event: str
    data: dict[str, Any] = Field(default_factory=dict)


class PlayerActionRequest(BaseModel):
    """Payload of a playerAction frame."""

    action: str | None = None


# Table views
class CardResponse(BaseModel):
    """Card representation. Masked cards carry '?' and hidden=True."""

    rank: str
    suit: str
    hidden: bool = False


class PlayerView(BaseModel):
    """A seated player's hand as shown to a participant."""

    id: str
    hand: list[CardResponse]
    total: int
    is_standing: bool
    is_busted: bool
    chips: int | None = None


class DealerView(BaseModel):
    """Dealer hand, masked until the round is over."""

    hand: list[CardResponse]
    total: int
    is_busted: bool
    hide_second_card: bool


class ProjectedView(BaseModel):
    """Full per-recipient table state."""

    player_state: PlayerView
    opponent_state: PlayerView
    dealer_state: DealerView
    current_turn: str
    message: str
    is_over: bool
    outcome_message: str
    outcome_type: str
    outcome: str


# Outbound payloads
class ConnectedPayload(BaseModel):
    """Sent once when a socket is accepted."""

    connection_id: str


class MatchFoundPayload(BaseModel):
    """Sent to both players when they are paired."""

    opponent_id: str


class ErrorUpdate(BaseModel):
    """An error-typed pvpGameUpdate for the offending sender only."""

    message: str
    message_type: Literal["error"] = "error"


class GameOverPayload(BaseModel):
    """Round result, or a forfeit when final_game is absent."""

    message: str
    type: str
    outcome: str = ""
    final_game: ProjectedView | None = None


class ErrorPayload(BaseModel):
    """Protocol-level error (malformed frame, unknown event)."""

    message: str


class ServerMessage(BaseModel):
    """A frame sent by the server."""

    event: str
    data: dict[str, Any]


# HTTP
class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    waiting: int
    active_sessions: int
    connections: int
