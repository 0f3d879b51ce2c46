from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, cast
from uuid import UUID

import redis


@dataclass(frozen=True, slots=True)
class AuditLog:
    """Append-only event history for one game."""

    game_id: str

    @property
    def key(self) -> str:
        return f"audit:game:{self.game_id}"


def stage_audit_entry(*, pipe: redis.client.Pipeline, game_id: UUID, fields: Mapping[str, str]) -> None:
    """Queue an audit entry on a transaction pipeline; it lands only if the pipeline executes."""

    pipe.xadd(AuditLog(game_id=str(game_id)).key, {str(k): str(v) for k, v in fields.items()})


def read_audit_log(*, r: redis.Redis, game_id: UUID, count: int = 100) -> list[dict[str, object]]:
    entries = r.xrange(AuditLog(game_id=str(game_id)).key, min="-", max="+", count=count)
    return [{"id": cast(str, eid), "fields": fields} for eid, fields in entries]
