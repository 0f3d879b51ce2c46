from __future__ import annotations

import os
from collections.abc import Generator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import fakeredis
import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs.

    In CI, we *don't* auto-load `.env` by default.
    Opt-in locally with: RPSLS_LOAD_DOTENV_FOR_TESTS=1
    """

    if os.environ.get("CI") and os.environ.get("RPSLS_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@dataclass
class FakeClock:
    now: datetime = field(default_factory=lambda: datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def client_and_redis(
    r: fakeredis.FakeRedis, clock: FakeClock, monkeypatch: pytest.MonkeyPatch
) -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient wired to fakeredis and a controllable clock."""

    from rpsls.api.deps import get_clock, get_redis
    from rpsls.main import app

    monkeypatch.delenv("RPSLS_TIMEOUT_SECONDS", raising=False)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
