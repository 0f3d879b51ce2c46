"""In-process value-transfer substrate.

Escrow is tracked on the game record itself (``pool``), so escrowing and the state
transition that requires it are persisted by the same write. Releases credit
party balances and append a payout instruction to a Redis Stream, staged on the
same transaction pipeline as the state write. A deployment backed by a real ledger
consumes ``settlement:payouts`` instead of reading balances.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import redis

from rpsls.api.models import GameState, Payout
from rpsls.game_store import Stager

logger = logging.getLogger(__name__)

BALANCES_KEY = "rpsls:balances"
PAYOUT_STREAM_KEY = "settlement:payouts"


class LedgerError(RuntimeError):
    """Escrow accounting would be violated; indicates a bug, not a caller mistake."""


def escrow(*, state: GameState, amount: int) -> None:
    if amount <= 0:
        raise LedgerError(f"Cannot escrow non-positive amount {amount}")
    state.pool += amount
    state.escrowed_total += amount


def release_pool(*, state: GameState, payouts: Sequence[Payout]) -> None:
    """Release the whole pool at once; partial releases are refused."""

    total = sum(p.amount for p in payouts)
    if total != state.pool:
        raise LedgerError(f"Payouts ({total}) must release the full pool ({state.pool})")
    state.pool = 0
    state.disbursed_total += total
    state.payouts = [p for p in payouts if p.amount > 0]
    if state.escrowed_total - state.disbursed_total != state.pool:
        raise LedgerError("Escrow accounting mismatch")


def _as_amount(raw: str | None) -> int:
    return int(raw) if raw else 0


def prepare_payouts(*, pipe: redis.client.Pipeline, state: GameState, reason: str) -> Stager:
    """Read the payees' balances (BALANCES_KEY must be watched) and return the credit writes.

    Balances are stored as decimal strings and summed here, so amounts are not
    bounded by Redis' 64-bit integer commands.
    """

    credits: dict[str, int] = {}
    for p in state.payouts:
        credits[p.party_id] = credits.get(p.party_id, 0) + p.amount

    new_balances: dict[str, str] = {}
    if credits:
        parties = list(credits)
        current = pipe.hmget(BALANCES_KEY, parties)
        new_balances = {party: str(_as_amount(raw) + credits[party]) for party, raw in zip(parties, current)}

    def _stage(p: redis.client.Pipeline) -> None:
        if new_balances:
            p.hset(BALANCES_KEY, mapping=new_balances)
        for payout in state.payouts:
            p.xadd(
                PAYOUT_STREAM_KEY,
                {
                    "game_id": str(state.game_id),
                    "party_id": payout.party_id,
                    "amount": str(payout.amount),
                    "reason": reason,
                },
            )
            logger.info(
                "payout staged game_id=%s party_id=%s amount=%s reason=%s",
                state.game_id,
                payout.party_id,
                payout.amount,
                reason,
            )

    return _stage


def get_balance(*, r: redis.Redis, party_id: str) -> int:
    return _as_amount(r.hget(BALANCES_KEY, party_id))
