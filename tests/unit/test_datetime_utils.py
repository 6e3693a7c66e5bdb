"""Tests for UTC normalization and closed windows."""

from datetime import UTC, datetime, timedelta, timezone

from approvals.shared.utils.datetime import ensure_utc, windows_overlap, within_window

T0 = datetime(2030, 3, 1, 9, 0, tzinfo=UTC)
HOUR = timedelta(hours=1)


def test_ensure_utc_attaches_and_converts() -> None:
    assert ensure_utc(None) is None
    assert ensure_utc(datetime(2030, 3, 1, 9, 0)) == T0
    eat = timezone(timedelta(hours=3))
    converted = ensure_utc(datetime(2030, 3, 1, 12, 0, tzinfo=eat))
    assert converted == T0
    assert converted.tzinfo is UTC


def test_within_window_is_inclusive() -> None:
    assert within_window(T0, T0, T0 + HOUR)
    assert within_window(T0 + HOUR, T0, T0 + HOUR)
    assert not within_window(T0 + HOUR + timedelta(microseconds=1), T0, T0 + HOUR)


def test_within_window_accepts_naive_storage_values() -> None:
    assert within_window(T0, datetime(2030, 3, 1, 8, 0), datetime(2030, 3, 1, 10, 0))


def test_touching_windows_overlap() -> None:
    assert windows_overlap(T0, T0 + HOUR, T0 + HOUR, T0 + 2 * HOUR)
    assert not windows_overlap(T0, T0 + HOUR, T0 + 2 * HOUR, T0 + 3 * HOUR)
    assert windows_overlap(T0, T0 + 3 * HOUR, T0 + HOUR, T0 + 2 * HOUR)
