from datetime import date, datetime, timedelta

import pytest
import pytz

from moodbuddy.core.models import InvalidCategory, StreakRecord, ValidationError
from moodbuddy.core.streaks import LOCK_STRIPES, StreakTracker, apply_entry

MONDAY = date(2024, 3, 4)


def test_first_entry_starts_streak(tracker):
    result = tracker.record_entry("u1", "mood", MONDAY)

    assert result.streak == 1
    assert result.is_new_record is True
    record = tracker.get_record("u1", "mood")
    assert record.total_entries == 1
    assert record.last_entry_date == MONDAY


def test_same_day_entry_is_idempotent(tracker):
    tracker.record_entry("u1", "sleep", datetime(2024, 3, 4, 8, 0))
    result = tracker.record_entry("u1", "sleep", datetime(2024, 3, 4, 21, 30))

    assert result.streak == 1
    assert result.is_new_record is False
    record = tracker.get_record("u1", "sleep")
    assert record.current_streak == 1
    assert record.total_entries == 1


def test_consecutive_day_continues_streak(tracker):
    tracker.record_entry("u1", "exercise", MONDAY)
    result = tracker.record_entry("u1", "exercise", MONDAY + timedelta(days=1))

    assert result.streak == 2
    assert result.is_new_record is True


def test_gap_resets_streak(tracker):
    tracker.record_entry("u1", "mood", MONDAY)
    tracker.record_entry("u1", "mood", MONDAY + timedelta(days=1))
    result = tracker.record_entry("u1", "mood", MONDAY + timedelta(days=4))

    assert result.streak == 1
    assert result.is_new_record is False
    record = tracker.get_record("u1", "mood")
    assert record.longest_streak == 2
    assert record.total_entries == 3


def test_late_night_and_early_morning_are_consecutive_days(tracker):
    tracker.record_entry("u1", "mood", datetime(2024, 3, 4, 23, 0))
    result = tracker.record_entry("u1", "mood", datetime(2024, 3, 5, 1, 0))

    assert result.streak == 2


def test_aware_datetimes_use_tracking_timezone(repos):
    tracker = StreakTracker(repos.streaks, "America/New_York")

    # 03:00 UTC on March 5th is still March 4th in New York
    tracker.record_entry("u1", "mood", pytz.utc.localize(datetime(2024, 3, 5, 3, 0)))

    assert tracker.get_record("u1", "mood").last_entry_date == MONDAY


def test_longest_streak_is_monotonic(tracker):
    offsets = [0, 1, 2, 5, 6, 6, 10, 11, 12, 13, 20]
    previous_longest = 0

    for offset in offsets:
        tracker.record_entry("u1", "journal", MONDAY + timedelta(days=offset))
        record = tracker.get_record("u1", "journal")
        assert record.longest_streak >= previous_longest
        assert record.longest_streak >= record.current_streak
        previous_longest = record.longest_streak

    assert previous_longest == 4


def test_users_and_categories_are_independent(tracker):
    tracker.record_entry("u1", "mood", MONDAY)
    tracker.record_entry("u1", "mood", MONDAY + timedelta(days=1))
    tracker.record_entry("u2", "mood", MONDAY + timedelta(days=1))
    tracker.record_entry("u1", "sleep", MONDAY + timedelta(days=1))

    assert tracker.get_record("u1", "mood").current_streak == 2
    assert tracker.get_record("u2", "mood").current_streak == 1
    assert tracker.get_record("u1", "sleep").current_streak == 1


def test_unknown_category_is_rejected(tracker, repos):
    with pytest.raises(InvalidCategory) as exc_info:
        tracker.record_entry("u1", "meditation", MONDAY)

    assert exc_info.value.category == "meditation"
    assert repos.streaks.list_for_user("u1") == []


def test_get_record_without_entries_returns_zero_record(tracker):
    record = tracker.get_record("nobody", "weight")

    assert record.current_streak == 0
    assert record.longest_streak == 0
    assert record.last_entry_date is None


def test_apply_entry_mutates_record():
    record = StreakRecord(user_id="u1", category="mood", current_streak=3, longest_streak=5,
                          last_entry_date=MONDAY, total_entries=9)

    result = apply_entry(record, MONDAY + timedelta(days=1))

    assert result.streak == 4
    assert result.is_new_record is False
    assert record.total_entries == 10
    assert record.longest_streak == 5


def test_streak_record_rejects_inconsistent_counters():
    with pytest.raises(ValidationError):
        StreakRecord(user_id="u1", category="mood", current_streak=4, longest_streak=2)


def test_streak_record_covers_current_run():
    record = StreakRecord(user_id="u1", category="mood", current_streak=3, longest_streak=3,
                          last_entry_date=MONDAY, total_entries=3)

    assert record.covers(MONDAY)
    assert record.covers(MONDAY - timedelta(days=2))
    assert not record.covers(MONDAY - timedelta(days=3))
    assert not record.covers(MONDAY + timedelta(days=1))


def test_lock_set_does_not_grow_with_users(tracker):
    for index in range(200):
        tracker.record_entry(f"user-{index}", "mood", MONDAY)

    assert len(tracker._locks) == LOCK_STRIPES
    assert tracker._lock_for(("u1", "mood")) is tracker._lock_for(("u1", "mood"))
