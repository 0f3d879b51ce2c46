from __future__ import annotations

from uuid import UUID

import redis
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from rpsls import actions
from rpsls.api.deps import Clock, get_clock, get_redis, get_settings
from rpsls.api.models import (
    BalanceResponse,
    CommitmentRequest,
    CommitmentResponse,
    GameCreateRequest,
    GameListResponse,
    GameRoleResponse,
    GameView,
    PlayRequest,
    RevealRequest,
    RevealResponse,
)
from rpsls.commitment import SCHEME_ID
from rpsls.config import Settings
from rpsls.game_store import require_game, validate_party_id
from rpsls.ledger import get_balance
from rpsls.streams import read_audit_log
from rpsls.websocket_hub import game_updated_event, hub

router = APIRouter()


@router.websocket("/ws/game/{game_id}")
async def game_updates_ws(websocket: WebSocket, game_id: UUID) -> None:
    gid = str(game_id)
    await hub.connect(gid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(gid, websocket)
    except Exception:
        await hub.disconnect(gid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/commitments", response_model=CommitmentResponse)
async def compute_commitment_route(payload: CommitmentRequest) -> CommitmentResponse:
    result = actions.compute_commitment(move=payload.move, salt=payload.salt)
    return CommitmentResponse(
        scheme=SCHEME_ID,
        move=result.move,
        salt=str(result.salt),
        commitment=result.commitment,
    )


@router.post("/games", response_model=GameView, status_code=status.HTTP_201_CREATED)
async def create_game_route(
    payload: GameCreateRequest,
    r: redis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> GameView:
    now = clock()
    state = actions.create_game(
        r=r,
        creator_id=payload.creator_id,
        opponent_id=payload.opponent_id,
        stake=payload.stake,
        commitment=payload.commitment,
        now=now,
        timeout_seconds=settings.timeout_seconds,
    )
    await hub.broadcast(str(state.game_id), game_updated_event(state))
    return actions.to_view(state=state, now=now)


@router.get("/games", response_model=GameListResponse)
async def list_games_route(
    party_id: str | None = Query(None),
    r: redis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
) -> GameListResponse:
    return GameListResponse(games=actions.list_game_states(r=r, now=clock(), party_id=party_id))


@router.get("/games/{game_id}", response_model=GameView)
async def get_game_route(
    game_id: UUID,
    r: redis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
) -> GameView:
    return actions.get_game_state(r=r, game_id=game_id, now=clock())


@router.get("/games/{game_id}/role", response_model=GameRoleResponse)
async def get_role_route(game_id: UUID, party_id: str, r: redis.Redis = Depends(get_redis)) -> GameRoleResponse:
    state = require_game(r=r, game_id=game_id)
    return GameRoleResponse(game_id=game_id, party_id=party_id, role=actions.role_of(state=state, party_id=party_id))


@router.post("/games/{game_id}/play", response_model=GameView)
async def play_route(
    game_id: UUID,
    payload: PlayRequest,
    r: redis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> GameView:
    now = clock()
    state = actions.play_move(
        r=r,
        game_id=game_id,
        caller_id=payload.player_id,
        move=payload.move,
        escrow_amount=payload.escrow,
        now=now,
        lock_ttl_ms=settings.lock_ttl_ms,
    )
    await hub.broadcast(str(game_id), game_updated_event(state))
    return actions.to_view(state=state, now=now)


@router.post("/games/{game_id}/reveal", response_model=RevealResponse)
async def reveal_route(
    game_id: UUID,
    payload: RevealRequest,
    r: redis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> RevealResponse:
    now = clock()
    outcome, state = actions.reveal_move(
        r=r,
        game_id=game_id,
        caller_id=payload.player_id,
        move=payload.move,
        salt=payload.salt,
        now=now,
        lock_ttl_ms=settings.lock_ttl_ms,
    )
    await hub.broadcast(str(game_id), game_updated_event(state))
    return RevealResponse(outcome=outcome, state=actions.to_view(state=state, now=now))


@router.post("/games/{game_id}/timeout/creator", response_model=GameView)
async def creator_timeout_route(
    game_id: UUID,
    caller_id: str | None = Query(None),
    r: redis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> GameView:
    now = clock()
    state = actions.claim_creator_timeout(
        r=r, game_id=game_id, now=now, caller_id=caller_id, lock_ttl_ms=settings.lock_ttl_ms
    )
    await hub.broadcast(str(game_id), game_updated_event(state))
    return actions.to_view(state=state, now=now)


@router.post("/games/{game_id}/timeout/opponent", response_model=GameView)
async def opponent_timeout_route(
    game_id: UUID,
    caller_id: str | None = Query(None),
    r: redis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> GameView:
    now = clock()
    state = actions.claim_opponent_timeout(
        r=r, game_id=game_id, now=now, caller_id=caller_id, lock_ttl_ms=settings.lock_ttl_ms
    )
    await hub.broadcast(str(game_id), game_updated_event(state))
    return actions.to_view(state=state, now=now)


@router.get("/games/{game_id}/audit")
async def get_audit_log_route(
    game_id: UUID,
    count: int = 100,
    r: redis.Redis = Depends(get_redis),
) -> dict[str, object]:
    """Append-only history of every committed transition for this game."""

    if count < 1 or count > 500:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 500")

    require_game(r=r, game_id=game_id)
    return {"game_id": str(game_id), "entries": read_audit_log(r=r, game_id=game_id, count=count)}


@router.get("/parties/{party_id}/balance", response_model=BalanceResponse)
async def get_balance_route(party_id: str, r: redis.Redis = Depends(get_redis)) -> BalanceResponse:
    validate_party_id(party_id)
    return BalanceResponse(party_id=party_id, balance=get_balance(r=r, party_id=party_id))
