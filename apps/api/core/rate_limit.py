"""Per-user sliding-window rate limiting.

In-process only: each API worker keeps its own windows, which is enough
to stop a single client from hammering the upload and detection paths.
"""

import math
import time
from collections import deque
from typing import NamedTuple

from apps.api.core.errors import RateLimitError


class RateLimit(NamedTuple):
    limit: int
    window_seconds: int


RATE_LIMITS = {
    "ingest": RateLimit(limit=5, window_seconds=3600),
    "detect": RateLimit(limit=10, window_seconds=3600),
}
DEFAULT_RATE_LIMIT = RateLimit(limit=60, window_seconds=60)

# Expired windows of users who stopped calling are dropped this often
SWEEP_INTERVAL_SECONDS = 300

_request_windows: dict[tuple[str, str], deque[float]] = {}
_last_sweep = 0.0


def _rule(operation: str) -> RateLimit:
    return RATE_LIMITS.get(operation, DEFAULT_RATE_LIMIT)


def _prune(window: deque[float], cutoff: float) -> None:
    while window and window[0] < cutoff:
        window.popleft()


def _sweep(now: float) -> None:
    """Drop every window with no request left inside its period."""
    for key in list(_request_windows):
        window = _request_windows[key]
        _prune(window, now - _rule(key[1]).window_seconds)
        if not window:
            del _request_windows[key]


def enforce_rate_limit(user_id: str, operation: str) -> None:
    """Record one call, or raise RateLimitError if the window is full."""
    global _last_sweep

    rule = _rule(operation)
    now = time.monotonic()
    if now - _last_sweep >= SWEEP_INTERVAL_SECONDS:
        _sweep(now)
        _last_sweep = now

    window = _request_windows.setdefault((user_id, operation), deque())
    _prune(window, now - rule.window_seconds)

    if len(window) >= rule.limit:
        retry_after = math.ceil(window[0] + rule.window_seconds - now)
        raise RateLimitError(
            "Too many attempts. Please try again later.",
            retry_after=max(retry_after, 1),
        )

    window.append(now)


def reset_rate_limits() -> None:
    global _last_sweep
    _request_windows.clear()
    _last_sweep = 0.0
