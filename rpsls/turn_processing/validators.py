from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

from rpsls.api.models import GameState, GameStatus
from rpsls.errors import GuardViolation, TimeoutNotYetEligible
from rpsls.timeout_policy import is_timed_out, seconds_remaining

Role = Literal["creator", "opponent"]


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it. Salts never go in here.
    """

    game_id: str
    action: str
    now: datetime
    caller_id: str | None = None
    escrow: int | None = None


class OperationValidator(ABC):
    """A small, composable guard for an incoming operation."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class SettledGameValidator(OperationValidator):
    """Deny every state-advancing operation once the game is terminal."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.is_terminal:
            raise GuardViolation(f"Game is already settled ({state.status.value})")


@dataclass(frozen=True, slots=True)
class StatusValidator(OperationValidator):
    allowed_statuses: frozenset[GameStatus]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.status not in self.allowed_statuses:
            allowed = ",".join(sorted(s.value for s in self.allowed_statuses))
            raise GuardViolation(
                f"Action '{ctx.action}' not allowed in status '{state.status.value}' (allowed: {allowed})"
            )


@dataclass(frozen=True, slots=True)
class CallerValidator(OperationValidator):
    """The caller must be the party holding `role` in this game."""

    role: Role

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        expected = state.creator if self.role == "creator" else state.opponent
        if ctx.caller_id != expected:
            raise GuardViolation(f"Action '{ctx.action}' may only be performed by the {self.role}")


@dataclass(frozen=True, slots=True)
class ExactEscrowValidator(OperationValidator):
    """Escrow must match the stake exactly; partial or excess escrow is refused."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if ctx.escrow != state.stake:
            raise GuardViolation(f"Escrow must equal the stake ({state.stake}), got {ctx.escrow}")


@dataclass(frozen=True, slots=True)
class TimeoutElapsedValidator(OperationValidator):
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        window = timedelta(seconds=state.timeout_seconds)
        if not is_timed_out(last_action_at=state.last_action_at, timeout_window=window, now=ctx.now):
            remaining = seconds_remaining(last_action_at=state.last_action_at, timeout_window=window, now=ctx.now)
            raise TimeoutNotYetEligible(f"Timeout not reached; {remaining}s remaining")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[OperationValidator, ...]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "play": ValidatorPipeline(
        validators=(
            SettledGameValidator(),
            StatusValidator(allowed_statuses=frozenset({GameStatus.awaiting_opponent})),
            CallerValidator(role="opponent"),
            ExactEscrowValidator(),
        )
    ),
    "reveal": ValidatorPipeline(
        validators=(
            SettledGameValidator(),
            StatusValidator(allowed_statuses=frozenset({GameStatus.awaiting_reveal})),
            CallerValidator(role="creator"),
        )
    ),
    "claim_creator_timeout": ValidatorPipeline(
        validators=(
            SettledGameValidator(),
            StatusValidator(allowed_statuses=frozenset({GameStatus.awaiting_opponent})),
            TimeoutElapsedValidator(),
        )
    ),
    "claim_opponent_timeout": ValidatorPipeline(
        validators=(
            SettledGameValidator(),
            StatusValidator(allowed_statuses=frozenset({GameStatus.awaiting_reveal})),
            TimeoutElapsedValidator(),
        )
    ),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
