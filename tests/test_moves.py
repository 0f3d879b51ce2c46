from __future__ import annotations

import itertools

import pytest

from rpsls.errors import InvalidInput
from rpsls.moves import BEATS, PLAYABLE_MOVES, Move, Outcome, parse_move, resolve_winner, split_pool


def test_each_move_beats_exactly_two_and_loses_to_two() -> None:
    for m in PLAYABLE_MOVES:
        assert len(BEATS[m]) == 2
        assert m not in BEATS[m]
        losers_to = {other for other in PLAYABLE_MOVES if m in BEATS[other]}
        assert len(losers_to) == 2
        assert losers_to.isdisjoint(BEATS[m])


def test_resolve_is_antisymmetric_for_distinct_moves() -> None:
    for a, b in itertools.permutations(PLAYABLE_MOVES, 2):
        forward = resolve_winner(a, b)
        backward = resolve_winner(b, a)
        assert {forward, backward} == {Outcome.creator_wins, Outcome.opponent_wins}


def test_resolve_same_move_is_tie() -> None:
    for m in PLAYABLE_MOVES:
        assert resolve_winner(m, m) == Outcome.tie


@pytest.mark.parametrize(
    ("creator", "opponent", "expected"),
    [
        (Move.rock, Move.scissors, Outcome.creator_wins),
        (Move.rock, Move.paper, Outcome.opponent_wins),
        (Move.spock, Move.scissors, Outcome.creator_wins),
        (Move.lizard, Move.spock, Outcome.creator_wins),
        (Move.lizard, Move.rock, Outcome.opponent_wins),
        (Move.paper, Move.spock, Outcome.creator_wins),
    ],
)
def test_resolve_known_matchups(creator: Move, opponent: Move, expected: Outcome) -> None:
    assert resolve_winner(creator, opponent) == expected


def test_resolve_rejects_unplayed_sentinel() -> None:
    with pytest.raises(InvalidInput):
        resolve_winner(Move.rock, Move.none)


def test_wire_tags_match_deployed_enum() -> None:
    assert [int(m) for m in (Move.none, Move.rock, Move.paper, Move.scissors, Move.spock, Move.lizard)] == [
        0,
        1,
        2,
        3,
        4,
        5,
    ]


def test_parse_move_accepts_tags_and_names() -> None:
    assert parse_move(3) == Move.scissors
    assert parse_move("5") == Move.lizard
    assert parse_move("Spock") == Move.spock
    assert parse_move(Move.paper) == Move.paper


@pytest.mark.parametrize("bad", [0, "0", 6, -1, "none", "banana", ""])
def test_parse_move_rejects_invalid(bad: object) -> None:
    with pytest.raises(InvalidInput):
        parse_move(bad)  # type: ignore[arg-type]


def test_split_pool() -> None:
    assert split_pool(outcome=Outcome.creator_wins, pool=200) == (200, 0)
    assert split_pool(outcome=Outcome.opponent_wins, pool=200) == (0, 200)
    assert split_pool(outcome=Outcome.tie, pool=200) == (100, 100)
