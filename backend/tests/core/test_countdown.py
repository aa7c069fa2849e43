"""Countdown - tests for server-side remaining-time math.

Tests cover:
    - Floor of elapsed seconds
    - Clamping at zero (overrun and clock skew)
    - Full interval before the clock starts
    - Naive datetimes treated as UTC
"""

from datetime import datetime, timedelta, timezone

import pytest

from codeshuffle.core.countdown import (
    as_utc, deadline_at, elapsed_seconds, remaining_seconds,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_elapsed_is_floored():
    assert elapsed_seconds(T0, T0 + timedelta(seconds=9.99)) == 9


def test_elapsed_clamped_for_clock_skew():
    assert elapsed_seconds(T0, T0 - timedelta(seconds=3)) == 0


def test_remaining_counts_down():
    assert remaining_seconds(60, T0, T0 + timedelta(seconds=15.5)) == 45


def test_remaining_full_interval_when_not_started():
    assert remaining_seconds(300, None, T0) == 300


@pytest.mark.parametrize("elapsed", [0, 1, 59, 60, 61, 3600, 10**6])
def test_remaining_never_negative(elapsed):
    assert remaining_seconds(60, T0, T0 + timedelta(seconds=elapsed)) >= 0


def test_remaining_handles_naive_storage_values():
    naive = T0.replace(tzinfo=None)
    assert remaining_seconds(60, naive, T0 + timedelta(seconds=10)) == 50


def test_as_utc_converts_offsets():
    plus_two = timezone(timedelta(hours=2))
    local = datetime(2026, 1, 1, 14, 0, tzinfo=plus_two)
    assert as_utc(local) == T0
    assert as_utc(local).tzinfo == timezone.utc


def test_deadline_at():
    assert deadline_at(T0, 90) == T0 + timedelta(seconds=90)
