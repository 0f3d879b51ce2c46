from __future__ import annotations

import math
from datetime import datetime, timedelta


def is_timed_out(*, last_action_at: datetime, timeout_window: timedelta, now: datetime) -> bool:
    return now - last_action_at >= timeout_window


def seconds_remaining(*, last_action_at: datetime, timeout_window: timedelta, now: datetime) -> int:
    """Whole seconds until a timeout claim becomes eligible (0 once it is)."""

    remaining = (last_action_at + timeout_window) - now
    return max(0, math.ceil(remaining.total_seconds()))
