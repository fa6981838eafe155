from datetime import date, timedelta

import pytest

from moodbuddy.core.models import CORE_CATEGORIES, InvalidCategory
from moodbuddy.services.gamification import GamificationService

MONDAY = date(2024, 3, 4)


@pytest.fixture
def gamification(tracker, evaluator):
    return GamificationService(tracker, evaluator)


def test_entry_updates_category_and_overall(gamification, tracker):
    result = gamification.update_streak_on_entry("u1", "weight", MONDAY)

    assert result.streak == 1
    assert tracker.get_record("u1", "weight").total_entries == 1
    assert tracker.get_record("u1", "overall").total_entries == 1


def test_overall_counts_days_not_entries(gamification, tracker):
    gamification.update_streak_on_entry("u1", "mood", MONDAY)
    gamification.update_streak_on_entry("u1", "sleep", MONDAY)
    gamification.update_streak_on_entry("u1", "mood", MONDAY + timedelta(days=1))

    overall = tracker.get_record("u1", "overall")
    assert overall.current_streak == 2
    assert overall.total_entries == 2


def test_full_week_of_core_tracking_earns_perfect_week(gamification):
    earned = []
    for offset in range(7):
        for category in CORE_CATEGORIES:
            result = gamification.update_streak_on_entry("u1", category, MONDAY + timedelta(days=offset))
            earned.extend(a.achievement_type for a in result.achievements)

    assert earned.count("perfect_week") == 1


def test_perfect_week_awarded_on_last_core_entry_of_the_week(gamification):
    sunday = MONDAY + timedelta(days=6)
    for offset in range(6):
        for category in CORE_CATEGORIES:
            gamification.update_streak_on_entry("u1", category, MONDAY + timedelta(days=offset))

    awarded = []
    for category in CORE_CATEGORIES:
        awarded.append([a.achievement_type for a in
                        gamification.update_streak_on_entry("u1", category, sunday).achievements])

    assert all("perfect_week" not in types for types in awarded[:-1])
    assert "perfect_week" in awarded[-1]


def test_missed_day_blocks_perfect_week(gamification):
    earned = []
    for offset in range(7):
        for category in CORE_CATEGORIES:
            if category.value == "exercise" and offset == 3:
                continue
            result = gamification.update_streak_on_entry("u1", category, MONDAY + timedelta(days=offset))
            earned.extend(a.achievement_type for a in result.achievements)

    assert "perfect_week" not in earned


def test_invalid_category(gamification):
    with pytest.raises(InvalidCategory):
        gamification.update_streak_on_entry("u1", "hydration", MONDAY)
