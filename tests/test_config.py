from __future__ import annotations

import pytest

from rpsls.config import settings_from_env


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RPSLS_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("RPSLS_LOCK_TTL_MS", raising=False)
    s = settings_from_env()
    assert s.timeout_seconds == 300
    assert s.lock_ttl_ms == 5_000


def test_timeout_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RPSLS_TIMEOUT_SECONDS", "60")
    assert settings_from_env().timeout_seconds == 60


@pytest.mark.parametrize("raw", ["0", "-3", "soon"])
def test_invalid_timeout_rejected(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("RPSLS_TIMEOUT_SECONDS", raw)
    with pytest.raises(RuntimeError):
        settings_from_env()
