from __future__ import annotations

import fakeredis
from fastapi.testclient import TestClient


def test_ws_game_updates_broadcast(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    c = client.post("/commitments", json={"move": 4}).json()
    state = client.post(
        "/games",
        json={"creator_id": "alice", "opponent_id": "bob", "stake": 10, "commitment": c["commitment"]},
    ).json()
    game_id = state["game_id"]

    with client.websocket_connect(f"/ws/game/{game_id}") as ws:
        res = client.post(f"/games/{game_id}/play", json={"player_id": "bob", "move": 1, "escrow": 10})
        assert res.status_code == 200

        msg = ws.receive_json()
        assert msg["type"] == "game_updated"
        assert msg["game_id"] == game_id
        assert msg["status"] == "awaiting_reveal"
