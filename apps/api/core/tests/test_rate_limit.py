"""Tests for the per-user sliding-window rate limiter."""

import pytest

from apps.api.core import rate_limit
from apps.api.core.errors import RateLimitError
from apps.api.core.rate_limit import enforce_rate_limit, reset_rate_limits


@pytest.fixture(autouse=True)
def clean_windows():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def clock(monkeypatch):
    """Controllable monotonic clock."""
    now = {"t": 1000.0}
    monkeypatch.setattr(rate_limit.time, "monotonic", lambda: now["t"])
    return now


def test_allows_up_to_limit(clock):
    for _ in range(5):
        enforce_rate_limit("user-1", "ingest")

    with pytest.raises(RateLimitError) as exc_info:
        enforce_rate_limit("user-1", "ingest")
    assert exc_info.value.status_code == 429
    assert exc_info.value.retry_after == 3600


def test_limits_are_per_user_and_operation(clock):
    for _ in range(5):
        enforce_rate_limit("user-1", "ingest")

    enforce_rate_limit("user-2", "ingest")
    enforce_rate_limit("user-1", "detect")


def test_window_slides(clock):
    for _ in range(5):
        enforce_rate_limit("user-1", "ingest")
        clock["t"] += 600

    # the first call is now 3000s old; it expires after 600 more
    with pytest.raises(RateLimitError) as exc_info:
        enforce_rate_limit("user-1", "ingest")
    assert exc_info.value.retry_after == 600

    clock["t"] += 601
    enforce_rate_limit("user-1", "ingest")


def test_unknown_operation_uses_default(clock):
    for _ in range(rate_limit.DEFAULT_RATE_LIMIT.limit):
        enforce_rate_limit("user-1", "stats")

    with pytest.raises(RateLimitError):
        enforce_rate_limit("user-1", "stats")


def test_expired_windows_are_dropped(clock):
    enforce_rate_limit("user-1", "ingest")
    enforce_rate_limit("user-1", "stats")
    assert ("user-1", "ingest") in rate_limit._request_windows

    clock["t"] += 3600 + rate_limit.SWEEP_INTERVAL_SECONDS
    enforce_rate_limit("user-2", "detect")

    assert set(rate_limit._request_windows) == {("user-2", "detect")}


def test_sweep_keeps_live_windows(clock):
    enforce_rate_limit("user-1", "ingest")

    clock["t"] += rate_limit.SWEEP_INTERVAL_SECONDS
    enforce_rate_limit("user-2", "detect")

    assert len(rate_limit._request_windows[("user-1", "ingest")]) == 1
