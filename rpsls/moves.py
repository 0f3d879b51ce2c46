from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import Final

from rpsls.errors import InvalidInput


class Move(IntEnum):
    # Values are the single-byte wire tags used by the commitment encoding.
    none = 0
    rock = 1
    paper = 2
    scissors = 3
    spock = 4
    lizard = 5


class Outcome(StrEnum):
    creator_wins = "creator_wins"
    opponent_wins = "opponent_wins"
    tie = "tie"


PLAYABLE_MOVES: Final[frozenset[Move]] = frozenset(m for m in Move if m is not Move.none)

BEATS: Final[dict[Move, frozenset[Move]]] = {
    Move.rock: frozenset({Move.scissors, Move.lizard}),
    Move.paper: frozenset({Move.rock, Move.spock}),
    Move.scissors: frozenset({Move.paper, Move.lizard}),
    Move.lizard: frozenset({Move.paper, Move.spock}),
    Move.spock: frozenset({Move.rock, Move.scissors}),
}


def parse_move(value: int | str | Move) -> Move:
    """Coerce a wire tag or name into a playable Move.

    `Move.none` is the "not yet played" sentinel and is always rejected here.
    """

    try:
        if isinstance(value, str) and not value.isdigit():
            move = Move[value.strip().casefold()]
        else:
            move = Move(int(value))
    except (KeyError, ValueError) as e:
        raise InvalidInput(f"Invalid move: {value!r}") from e

    if move not in PLAYABLE_MOVES:
        raise InvalidInput("Move must be one of rock, paper, scissors, spock, lizard")
    return move


def beats(a: Move, b: Move) -> bool:
    return b in BEATS.get(a, frozenset())


def resolve_winner(creator_move: Move, opponent_move: Move) -> Outcome:
    for m in (creator_move, opponent_move):
        if m not in PLAYABLE_MOVES:
            raise InvalidInput(f"Cannot resolve with move {m!r}")

    if creator_move == opponent_move:
        return Outcome.tie
    return Outcome.creator_wins if beats(creator_move, opponent_move) else Outcome.opponent_wins


def split_pool(*, outcome: Outcome, pool: int) -> tuple[int, int]:
    """Return (creator_amount, opponent_amount) for a settled pool.

    A tie returns each party's own stake; an odd pool cannot occur because both
    parties escrow the same amount.
    """

    if outcome == Outcome.creator_wins:
        return pool, 0
    if outcome == Outcome.opponent_wins:
        return 0, pool
    half = pool // 2
    return half, pool - half
