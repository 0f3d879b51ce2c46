from __future__ import annotations

import secrets
from contextlib import contextmanager

import redis

from rpsls.errors import GameBusy

# Delete the key only while it still holds our token.
_RELEASE_LUA = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def _lock_key(game_id: str) -> str:
    return f"lock:game:{game_id}"


@contextmanager
def game_lock(*, r: redis.Redis, game_id: str, ttl_ms: int = 5_000):
    """Per-game lock so at most one state-advancing operation commits at a time.

    The lock never blocks: a held lock is reported as GameBusy and the caller retries.
    Release is a server-side compare-and-delete on the owner token, so a lock that
    expired and was taken by someone else is left alone.
    """

    key = _lock_key(game_id)
    token = secrets.token_hex(16)
    acquired = r.set(key, token, nx=True, px=ttl_ms)
    if not acquired:
        raise GameBusy("Game is busy; retry shortly")
    try:
        yield
    finally:
        r.register_script(_RELEASE_LUA)(keys=[key], args=[token])
