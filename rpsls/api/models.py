from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from rpsls.moves import Move, Outcome


class GameStatus(StrEnum):
    awaiting_opponent = "awaiting_opponent"
    awaiting_reveal = "awaiting_reveal"
    resolved = "resolved"
    timed_out_creator_wins = "timed_out_creator_wins"
    timed_out_opponent_wins = "timed_out_opponent_wins"


TERMINAL_STATUSES = frozenset(
    {GameStatus.resolved, GameStatus.timed_out_creator_wins, GameStatus.timed_out_opponent_wins}
)


class Payout(BaseModel):
    party_id: str
    amount: int = Field(..., ge=0)


class GameState(BaseModel):
    game_id: UUID
    stake: int = Field(..., gt=0)
    creator: str
    opponent: str
    commitment: str
    opponent_move: Move = Move.none

    created_at: datetime
    last_action_at: datetime
    timeout_seconds: int = Field(..., gt=0)

    status: GameStatus = GameStatus.awaiting_opponent

    # Escrow currently held for this game: everything escrowed minus everything disbursed.
    pool: int = Field(0, ge=0)
    escrowed_total: int = Field(0, ge=0)
    disbursed_total: int = Field(0, ge=0)

    # Filled in when the creator reveals.
    creator_move: Move | None = None
    outcome: Outcome | None = None
    payouts: list[Payout] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class GameView(GameState):
    """GameState plus timeout bookkeeping computed at read time."""

    timeout_deadline: datetime
    seconds_until_timeout: int
    timeout_available: bool


class GameCreateRequest(BaseModel):
    creator_id: str
    opponent_id: str
    stake: int
    commitment: str


class PlayRequest(BaseModel):
    player_id: str
    move: int | str
    escrow: int


class RevealRequest(BaseModel):
    player_id: str
    move: int | str
    # Decimal or 0x-prefixed hex; strings avoid precision loss in JSON clients.
    salt: str


class CommitmentRequest(BaseModel):
    move: int | str
    # Omit to have a fresh salt generated; keep the returned value secret.
    salt: str | None = None


class CommitmentResponse(BaseModel):
    scheme: str
    move: Move
    salt: str
    commitment: str


class RevealResponse(BaseModel):
    outcome: Outcome
    state: GameView


class GameListResponse(BaseModel):
    games: list[GameView]


class GameIdResponse(BaseModel):
    game_id: UUID


class GameRoleResponse(BaseModel):
    game_id: UUID
    party_id: str
    role: str


class BalanceResponse(BaseModel):
    party_id: str
    balance: int
