from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

import redis

from rpsls import commitment as commitment_scheme
from rpsls.api.models import GameState, GameStatus, GameView, Payout
from rpsls.config import DEFAULT_LOCK_TTL_MS, DEFAULT_TIMEOUT_SECONDS
from rpsls.errors import CommitmentMismatch, GameError, InvalidInput
from rpsls.fsm import GameFSM
from rpsls.game_store import (
    Stager,
    commit_game,
    insert_game,
    list_games,
    new_game_id,
    require_game,
    validate_party_id,
)
from rpsls.ledger import BALANCES_KEY, escrow, prepare_payouts, release_pool
from rpsls.lock import game_lock
from rpsls.moves import Move, Outcome, parse_move, resolve_winner, split_pool
from rpsls.streams import stage_audit_entry
from rpsls.timeout_policy import is_timed_out, seconds_remaining
from rpsls.turn_processing.validators import ValidationContext, pipeline_for_action

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommitmentResult:
    move: Move
    salt: int
    commitment: str


def _validate(*, action: str, ctx: ValidationContext, state: GameState) -> None:
    try:
        pipeline_for_action(action).validate(ctx=ctx, state=state)
    except GameError as e:
        logger.info("rejected game_id=%s action=%s kind=%s detail=%s", ctx.game_id, action, e.kind, e)
        raise


def _commit_transition(
    *,
    r: redis.Redis,
    state: GameState,
    action: str,
    now: datetime,
    audit: dict[str, str],
    payout_reason: str | None = None,
) -> None:
    fields = {"action": action, "status": state.status.value, "ts": now.isoformat(), **audit}

    def _prepare(pipe: redis.client.Pipeline) -> Stager:
        credit = prepare_payouts(pipe=pipe, state=state, reason=payout_reason) if payout_reason is not None else None

        def _stage(p: redis.client.Pipeline) -> None:
            if credit is not None:
                credit(p)
            stage_audit_entry(pipe=p, game_id=state.game_id, fields=fields)

        return _stage

    commit_game(
        r=r,
        state=state,
        prepare=_prepare,
        watch_keys=(BALANCES_KEY,) if payout_reason is not None else (),
    )
    logger.info("committed game_id=%s action=%s status=%s pool=%s", state.game_id, action, state.status.value, state.pool)


def compute_commitment(*, move: int | str | Move, salt: str | int | None = None) -> CommitmentResult:
    """Pure helper so a creator can build (or double-check) a commitment before creating a game."""

    m = parse_move(move)
    s = commitment_scheme.generate_salt() if salt is None else commitment_scheme.parse_salt(salt)
    return CommitmentResult(move=m, salt=s, commitment=commitment_scheme.commit(m, s))


def create_game(
    *,
    r: redis.Redis,
    creator_id: str,
    opponent_id: str,
    stake: int,
    commitment: str,
    now: datetime,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> GameState:
    validate_party_id(creator_id, field="creator id")
    validate_party_id(opponent_id, field="opponent id")
    if isinstance(stake, bool) or not isinstance(stake, int) or stake <= 0:
        raise InvalidInput("Stake must be a positive integer")
    if creator_id == opponent_id:
        raise InvalidInput("Creator and opponent must be different parties")
    if timeout_seconds <= 0:
        raise InvalidInput("Timeout window must be positive")
    normalized = commitment_scheme.normalize_commitment(commitment)

    state = GameState(
        game_id=new_game_id(),
        stake=stake,
        creator=creator_id,
        opponent=opponent_id,
        commitment=normalized,
        opponent_move=Move.none,
        created_at=now,
        last_action_at=now,
        timeout_seconds=timeout_seconds,
        status=GameStatus.awaiting_opponent,
    )
    escrow(state=state, amount=stake)

    fields = {
        "action": "create",
        "status": state.status.value,
        "ts": now.isoformat(),
        "creator": creator_id,
        "opponent": opponent_id,
        "stake": str(stake),
        "commitment": normalized,
    }
    insert_game(r=r, state=state, stage=lambda pipe: stage_audit_entry(pipe=pipe, game_id=state.game_id, fields=fields))
    logger.info("created game_id=%s creator=%s opponent=%s stake=%s", state.game_id, creator_id, opponent_id, stake)
    return state


def play_move(
    *,
    r: redis.Redis,
    game_id: UUID,
    caller_id: str,
    move: int | str | Move,
    escrow_amount: int,
    now: datetime,
    lock_ttl_ms: int = DEFAULT_LOCK_TTL_MS,
) -> GameState:
    m = parse_move(move)

    with game_lock(r=r, game_id=str(game_id), ttl_ms=lock_ttl_ms):
        state = require_game(r=r, game_id=game_id)
        ctx = ValidationContext(game_id=str(game_id), action="play", now=now, caller_id=caller_id, escrow=escrow_amount)
        _validate(action="play", ctx=ctx, state=state)

        fsm = GameFSM(state)
        state.opponent_move = m
        state.last_action_at = now
        escrow(state=state, amount=escrow_amount)
        fsm.fire("play")

        _commit_transition(r=r, state=state, action="play", now=now, audit={"caller": caller_id, "escrow": str(escrow_amount)})
        return state


def reveal_move(
    *,
    r: redis.Redis,
    game_id: UUID,
    caller_id: str,
    move: int | str | Move,
    salt: str | int,
    now: datetime,
    lock_ttl_ms: int = DEFAULT_LOCK_TTL_MS,
) -> tuple[Outcome, GameState]:
    m = parse_move(move)
    s = commitment_scheme.parse_salt(salt)

    with game_lock(r=r, game_id=str(game_id), ttl_ms=lock_ttl_ms):
        state = require_game(r=r, game_id=game_id)
        ctx = ValidationContext(game_id=str(game_id), action="reveal", now=now, caller_id=caller_id)
        _validate(action="reveal", ctx=ctx, state=state)

        if not commitment_scheme.verify(m, s, state.commitment):
            logger.info("rejected game_id=%s action=reveal kind=%s", game_id, CommitmentMismatch.kind)
            raise CommitmentMismatch("Revealed move and salt do not match the stored commitment")

        outcome = resolve_winner(m, state.opponent_move)
        creator_amount, opponent_amount = split_pool(outcome=outcome, pool=state.pool)

        fsm = GameFSM(state)
        state.creator_move = m
        state.outcome = outcome
        state.last_action_at = now
        release_pool(
            state=state,
            payouts=[
                Payout(party_id=state.creator, amount=creator_amount),
                Payout(party_id=state.opponent, amount=opponent_amount),
            ],
        )
        fsm.fire("reveal")

        _commit_transition(
            r=r,
            state=state,
            action="reveal",
            now=now,
            audit={"caller": caller_id, "creator_move": m.name, "outcome": outcome.value},
            payout_reason=f"reveal:{outcome.value}",
        )
        return outcome, state


def _claim_timeout(
    *,
    r: redis.Redis,
    game_id: UUID,
    action: str,
    now: datetime,
    caller_id: str | None,
    lock_ttl_ms: int,
) -> GameState:
    with game_lock(r=r, game_id=str(game_id), ttl_ms=lock_ttl_ms):
        state = require_game(r=r, game_id=game_id)
        ctx = ValidationContext(game_id=str(game_id), action=action, now=now, caller_id=caller_id)
        _validate(action=action, ctx=ctx, state=state)

        # The waiting party collects whatever is escrowed: a refund when the
        # opponent never played, the whole pool when the creator never revealed.
        winner = state.creator if action == "claim_creator_timeout" else state.opponent

        fsm = GameFSM(state)
        state.last_action_at = now
        release_pool(state=state, payouts=[Payout(party_id=winner, amount=state.pool)])
        fsm.fire(action)

        _commit_transition(
            r=r,
            state=state,
            action=action,
            now=now,
            audit={"caller": caller_id or ""},
            payout_reason=f"timeout:{state.status.value}",
        )
        return state


def claim_creator_timeout(
    *,
    r: redis.Redis,
    game_id: UUID,
    now: datetime,
    caller_id: str | None = None,
    lock_ttl_ms: int = DEFAULT_LOCK_TTL_MS,
) -> GameState:
    return _claim_timeout(
        r=r, game_id=game_id, action="claim_creator_timeout", now=now, caller_id=caller_id, lock_ttl_ms=lock_ttl_ms
    )


def claim_opponent_timeout(
    *,
    r: redis.Redis,
    game_id: UUID,
    now: datetime,
    caller_id: str | None = None,
    lock_ttl_ms: int = DEFAULT_LOCK_TTL_MS,
) -> GameState:
    return _claim_timeout(
        r=r, game_id=game_id, action="claim_opponent_timeout", now=now, caller_id=caller_id, lock_ttl_ms=lock_ttl_ms
    )


def to_view(*, state: GameState, now: datetime) -> GameView:
    window = timedelta(seconds=state.timeout_seconds)
    if state.is_terminal:
        available = False
        remaining = 0
    else:
        available = is_timed_out(last_action_at=state.last_action_at, timeout_window=window, now=now)
        remaining = seconds_remaining(last_action_at=state.last_action_at, timeout_window=window, now=now)
    return GameView(
        **state.model_dump(),
        timeout_deadline=state.last_action_at + window,
        seconds_until_timeout=remaining,
        timeout_available=available,
    )


def get_game_state(*, r: redis.Redis, game_id: UUID, now: datetime) -> GameView:
    return to_view(state=require_game(r=r, game_id=game_id), now=now)


def list_game_states(*, r: redis.Redis, now: datetime, party_id: str | None = None) -> list[GameView]:
    return [to_view(state=s, now=now) for s in list_games(r=r, party_id=party_id)]


def role_of(*, state: GameState, party_id: str) -> str:
    if party_id == state.creator:
        return "creator"
    if party_id == state.opponent:
        return "opponent"
    return "none"
