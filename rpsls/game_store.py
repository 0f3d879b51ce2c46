from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from uuid import UUID, uuid4

import redis

from rpsls.api.models import GameState
from rpsls.errors import GameBusy, InvalidInput, NotFound

GAMES_SET_KEY = "rpsls:games"
GAME_KEY_PREFIX = "rpsls:game:"  # + {uuid}

# Opaque party handles: wallet addresses, account names, SPIFFE-style ids.
PARTY_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:@/\-]{0,127}$")

Stager = Callable[[redis.client.Pipeline], None]
# Runs before MULTI with the watched keys readable; returns the writes to queue.
Preparer = Callable[[redis.client.Pipeline], Stager]

MAX_COMMIT_ATTEMPTS = 5


def _game_key(game_id: UUID) -> str:
    return f"{GAME_KEY_PREFIX}{game_id}"


def new_game_id() -> UUID:
    return uuid4()


def validate_party_id(party_id: str, *, field: str = "party id") -> str:
    if not isinstance(party_id, str) or not PARTY_ID_RE.fullmatch(party_id):
        raise InvalidInput(f"Malformed {field}: {party_id!r}")
    return party_id


def insert_game(*, r: redis.Redis, state: GameState, stage: Stager | None = None) -> None:
    """Store a brand-new record; refuses to overwrite an existing id."""

    key = _game_key(state.game_id)
    with r.pipeline() as pipe:
        pipe.watch(key)
        if pipe.exists(key):
            raise RuntimeError(f"Game id collision: {state.game_id}")
        pipe.multi()
        pipe.set(key, state.model_dump_json())
        pipe.sadd(GAMES_SET_KEY, str(state.game_id))
        if stage is not None:
            stage(pipe)
        pipe.execute()


def commit_game(
    *,
    r: redis.Redis,
    state: GameState,
    prepare: Preparer | None = None,
    watch_keys: Sequence[str] = (),
) -> None:
    """Persist an updated record together with its side effects, all or nothing.

    Redis does not roll back EXEC when one queued command fails, so the work is
    split: `prepare` runs while `watch_keys` are watched and may only read; the
    stager it returns queues plain writes (SET/HSET/XADD) that cannot fail on
    their values. A concurrent write to a watched key restarts the attempt.
    """

    for _ in range(MAX_COMMIT_ATTEMPTS):
        with r.pipeline() as pipe:
            try:
                if watch_keys:
                    pipe.watch(*watch_keys)
                stage = prepare(pipe) if prepare is not None else None
                pipe.multi()
                pipe.set(_game_key(state.game_id), state.model_dump_json())
                if stage is not None:
                    stage(pipe)
                pipe.execute()
                return
            except redis.WatchError:
                continue
    raise GameBusy("Settlement contended; retry shortly")


def get_game(*, r: redis.Redis, game_id: UUID) -> GameState | None:
    raw = r.get(_game_key(game_id))
    if not raw:
        return None
    return GameState.model_validate_json(raw)


def require_game(*, r: redis.Redis, game_id: UUID) -> GameState:
    state = get_game(r=r, game_id=game_id)
    if state is None:
        raise NotFound("Game not found")
    return state


def list_games(*, r: redis.Redis, party_id: str | None = None) -> list[GameState]:
    ids = sorted(r.smembers(GAMES_SET_KEY))
    out: list[GameState] = []
    for sid in ids:
        try:
            gid = UUID(sid)
        except ValueError:
            continue
        state = get_game(r=r, game_id=gid)
        if state is None:
            continue
        if party_id is not None and party_id not in (state.creator, state.opponent):
            continue
        out.append(state)
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out
