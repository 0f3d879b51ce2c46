from __future__ import annotations

import asyncio
from collections import defaultdict

from fastapi import WebSocket

from rpsls.api.models import GameState


class GameWebSocketHub:
    """In-process WebSocket fan-out of game status changes, keyed by game_id.

    Events carry the game id and new status only; clients re-read the game for
    details. Salts never pass through here. Multiple API replicas would need
    Redis pub/sub instead.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, game_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._subscribers[game_id].add(websocket)

    async def disconnect(self, game_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            subs = self._subscribers.get(game_id)
            if not subs:
                return
            subs.discard(websocket)
            if not subs:
                self._subscribers.pop(game_id, None)

    async def broadcast(self, game_id: str, payload: dict[str, object]) -> None:
        async with self._lock:
            subs = list(self._subscribers.get(game_id, set()))

        stale: list[WebSocket] = []
        for ws in subs:
            try:
                await ws.send_json(payload)
            except Exception:
                # A dropped client must not fail the operation that triggered the update.
                stale.append(ws)

        for ws in stale:
            await self.disconnect(game_id, ws)


def game_updated_event(state: GameState) -> dict[str, object]:
    return {"type": "game_updated", "game_id": str(state.game_id), "status": state.status.value}


hub = GameWebSocketHub()
