from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_TIMEOUT_SECONDS = 300
DEFAULT_LOCK_TTL_MS = 5_000


@dataclass(frozen=True, slots=True)
class Settings:
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    lock_ttl_ms: int = DEFAULT_LOCK_TTL_MS
    log_level: str = "INFO"


def _positive_int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


def settings_from_env() -> Settings:
    return Settings(
        timeout_seconds=_positive_int_from_env("RPSLS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        lock_ttl_ms=_positive_int_from_env("RPSLS_LOCK_TTL_MS", DEFAULT_LOCK_TTL_MS),
        log_level=os.environ.get("RPSLS_LOG_LEVEL", "INFO").upper(),
    )
