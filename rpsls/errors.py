from __future__ import annotations


class GameError(ValueError):
    """Base class for every rejected protocol operation.

    All subclasses are recoverable by the caller. Raising one never leaves a
    partial state change behind.
    """

    kind: str = "game_error"


class InvalidInput(GameError):
    kind = "invalid_input"


class GuardViolation(GameError):
    kind = "guard_violation"


class CommitmentMismatch(GameError):
    kind = "commitment_mismatch"


class TimeoutNotYetEligible(GameError):
    kind = "timeout_not_yet_eligible"


class NotFound(GameError):
    kind = "not_found"


class GameBusy(GameError):
    """Another operation currently holds this game's lock; retry."""

    kind = "game_busy"
