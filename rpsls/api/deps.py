from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import UTC, datetime

import redis

from rpsls.config import Settings, settings_from_env
from rpsls.infra.redis_client import create_redis

Clock = Callable[[], datetime]


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        client.close()


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def get_clock() -> Clock:
    return _utc_now


def get_settings() -> Settings:
    return settings_from_env()
