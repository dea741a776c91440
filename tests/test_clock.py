"""Tests for clocks and timestamp normalization."""

from datetime import datetime, timedelta, timezone

import pytest

from tipping.clock import ManualClock, SystemClock
from tipping.config import Settings
from tipping.models import MatchStatus, to_naive_utc


def test_manual_clock_advances():
    clock = ManualClock(datetime(2026, 3, 7, 15, 0))
    assert clock.advance(minutes=25) == datetime(2026, 3, 7, 15, 25)
    assert clock.now() == datetime(2026, 3, 7, 15, 25)


def test_manual_clock_refuses_to_go_back():
    clock = ManualClock(datetime(2026, 3, 7, 15, 0))
    with pytest.raises(ValueError):
        clock.advance(minutes=-1)


def test_manual_clock_normalizes_aware_start():
    clock = ManualClock(datetime(2026, 3, 7, 16, 0, tzinfo=timezone(timedelta(hours=1))))
    assert clock.now() == datetime(2026, 3, 7, 15, 0)


def test_system_clock_is_naive_utc():
    now = SystemClock().now()
    assert now.tzinfo is None
    assert abs(now - datetime.now(timezone.utc).replace(tzinfo=None)) < timedelta(seconds=5)


def test_to_naive_utc_passes_naive_through():
    value = datetime(2026, 1, 1, 12, 0)
    assert to_naive_utc(value) is value


def test_status_rank_is_forward_only():
    ranks = [MatchStatus.rank(s) for s in (MatchStatus.PLANNED, MatchStatus.LIVE, MatchStatus.FINISHED)]
    assert ranks == sorted(ranks)


def test_match_duration_from_settings():
    settings = Settings(PLAY_DURATION_MINUTES=45, STOPPAGE_DURATION_MINUTES=5)
    assert settings.match_duration == timedelta(minutes=50)
