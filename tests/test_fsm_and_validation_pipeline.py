from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from rpsls.api.models import GameState, GameStatus
from rpsls.errors import GuardViolation, TimeoutNotYetEligible
from rpsls.fsm import GameFSM
from rpsls.moves import Move
from rpsls.turn_processing.validators import ValidationContext, pipeline_for_action

T0 = datetime(2025, 1, 1, tzinfo=UTC)


def _state(status: GameStatus = GameStatus.awaiting_opponent, **overrides: object) -> GameState:
    data: dict[str, object] = {
        "game_id": uuid4(),
        "stake": 100,
        "creator": "alice",
        "opponent": "bob",
        "commitment": "0x" + "ab" * 32,
        "created_at": T0,
        "last_action_at": T0,
        "timeout_seconds": 300,
        "status": status,
        "pool": 100,
        "escrowed_total": 100,
    }
    data.update(overrides)
    return GameState.model_validate(data)


def _ctx(action: str, *, now: datetime = T0, caller_id: str | None = None, escrow: int | None = None) -> ValidationContext:
    return ValidationContext(game_id="g1", action=action, now=now, caller_id=caller_id, escrow=escrow)


def test_fsm_follows_play_then_reveal() -> None:
    gs = _state()
    fsm = GameFSM(gs)
    fsm.fire("play")
    assert gs.status == GameStatus.awaiting_reveal
    fsm.fire("reveal")
    assert gs.status == GameStatus.resolved


def test_fsm_refuses_transition_from_wrong_status() -> None:
    gs = _state(GameStatus.awaiting_reveal, opponent_move=Move.paper)
    with pytest.raises(GuardViolation):
        GameFSM(gs).fire("claim_creator_timeout")
    assert gs.status == GameStatus.awaiting_reveal


def test_status_validator_denies_wrong_status() -> None:
    gs = _state(GameStatus.awaiting_reveal, opponent_move=Move.paper)
    with pytest.raises(GuardViolation) as e:
        pipeline_for_action("play").validate(ctx=_ctx("play", caller_id="bob", escrow=100), state=gs)
    assert "not allowed" in str(e.value)
    assert "awaiting_reveal" in str(e.value)


def test_settled_game_denies_everything() -> None:
    gs = _state(GameStatus.resolved, pool=0, disbursed_total=200, escrowed_total=200)
    for action in ("play", "reveal", "claim_creator_timeout", "claim_opponent_timeout"):
        with pytest.raises(GuardViolation) as e:
            pipeline_for_action(action).validate(ctx=_ctx(action, caller_id="bob", escrow=100), state=gs)
        assert "already settled" in str(e.value)


def test_caller_validator_denies_wrong_party() -> None:
    gs = _state()
    with pytest.raises(GuardViolation) as e:
        pipeline_for_action("play").validate(ctx=_ctx("play", caller_id="alice", escrow=100), state=gs)
    assert "opponent" in str(e.value)


@pytest.mark.parametrize("amount", [0, 99, 101, None])
def test_escrow_must_match_stake_exactly(amount: int | None) -> None:
    gs = _state()
    with pytest.raises(GuardViolation):
        pipeline_for_action("play").validate(ctx=_ctx("play", caller_id="bob", escrow=amount), state=gs)


def test_timeout_validator_waits_for_window() -> None:
    gs = _state()
    early = _ctx("claim_creator_timeout", now=T0 + timedelta(seconds=10))
    with pytest.raises(TimeoutNotYetEligible) as e:
        pipeline_for_action("claim_creator_timeout").validate(ctx=early, state=gs)
    assert "290s remaining" in str(e.value)

    on_time = _ctx("claim_creator_timeout", now=T0 + timedelta(seconds=300))
    pipeline_for_action("claim_creator_timeout").validate(ctx=on_time, state=gs)


def test_unknown_action_pipeline_raises() -> None:
    with pytest.raises(ValueError) as e:
        pipeline_for_action("nope")
    assert "Unknown action" in str(e.value)
