from datetime import date, timedelta

from moodbuddy.core.achievements import AchievementEvaluator, streak_icon
from moodbuddy.core.models import CORE_CATEGORIES, StreakRecord

MONDAY = date(2024, 3, 4)


def log(tracker, evaluator, user_id, category, day):
    result = tracker.record_entry(user_id, category, day)
    awarded = evaluator.evaluate(user_id, category, tracker.get_record(user_id, category))
    return result, awarded


def types_of(achievements):
    return [a.achievement_type for a in achievements]


def set_streak(repos, user_id, category, current, last_day):
    def updater(record: StreakRecord):
        record.current_streak = current
        record.longest_streak = max(record.longest_streak, current)
        record.last_entry_date = last_day
        record.total_entries = max(record.total_entries, current)

    repos.streaks.modify(user_id, category, updater)


def test_sample_week_scenario(tracker, evaluator):
    results = []
    awarded = []
    for offset in range(3):
        result, new = log(tracker, evaluator, "u1", "mood", MONDAY + timedelta(days=offset))
        results.append(result.streak)
        awarded.append(types_of(new))

    assert results == [1, 2, 3]
    assert awarded[0] == ["first_entry"]
    assert awarded[1] == []
    assert awarded[2] == ["streak_3"]

    friday = MONDAY + timedelta(days=4)
    result, new = log(tracker, evaluator, "u1", "mood", friday)

    assert result.streak == 1
    assert result.is_new_record is False
    assert new == []


def test_first_entry_fires_once(tracker, evaluator, repos):
    first = log(tracker, evaluator, "u1", "sleep", MONDAY)[1]
    for offset in (2, 4, 6, 8):
        assert "first_entry" not in types_of(log(tracker, evaluator, "u1", "sleep", MONDAY + timedelta(days=offset))[1])

    assert types_of(first) == ["first_entry"]
    stored = [a for a in repos.achievements.list_for_user("u1") if a.achievement_type == "first_entry"]
    assert len(stored) == 1
    assert stored[0].title == "First Sleep!"
    assert stored[0].icon_emoji == "😴"


def test_streak_seven_awarded_once_across_reset(tracker, evaluator, repos):
    for offset in range(7):
        log(tracker, evaluator, "u1", "exercise", MONDAY + timedelta(days=offset))

    # Пропуск, затем снова семь дней подряд
    restart = MONDAY + timedelta(days=10)
    second_run = []
    for offset in range(7):
        second_run.extend(log(tracker, evaluator, "u1", "exercise", restart + timedelta(days=offset))[1])

    assert tracker.get_record("u1", "exercise").current_streak == 7
    assert "streak_7" not in types_of(second_run)
    stored = [a for a in repos.achievements.list_for_user("u1") if a.achievement_type == "streak_7"]
    assert len(stored) == 1
    assert stored[0].icon_emoji == "🥉"


def test_total_milestone(tracker, evaluator):
    earned = []
    for offset in range(0, 20, 2):
        earned.extend(log(tracker, evaluator, "u1", "weight", MONDAY + timedelta(days=offset))[1])

    assert "total_10" in types_of(earned)
    assert "streak_3" not in types_of(earned)


def test_evaluate_is_idempotent_for_same_record(tracker, evaluator):
    tracker.record_entry("u1", "mood", MONDAY)
    record = tracker.get_record("u1", "mood")

    assert types_of(evaluator.evaluate("u1", "mood", record)) == ["first_entry"]
    assert evaluator.evaluate("u1", "mood", record) == []


def test_perfect_week_awarded_once(repos, tracker, evaluator):
    sunday = MONDAY + timedelta(days=6)
    for category in CORE_CATEGORIES:
        set_streak(repos, "u1", category.value, 7, sunday)
    set_streak(repos, "u1", "overall", 7, sunday)

    overall = tracker.get_record("u1", "overall")
    first = evaluator.evaluate("u1", "overall", overall)
    second = evaluator.evaluate("u1", "overall", overall)

    assert "perfect_week" in types_of(first)
    assert "perfect_week" not in types_of(second)
    stored = [a for a in repos.achievements.list_for_user("u1") if a.achievement_type == "perfect_week"]
    assert len(stored) == 1
    assert stored[0].category == "overall"


def test_perfect_week_requires_every_day_in_every_core_category(repos, tracker, evaluator):
    sunday = MONDAY + timedelta(days=6)
    for category in CORE_CATEGORIES:
        set_streak(repos, "u1", category.value, 7, sunday)
    # Сон пропущен в первый день окна
    set_streak(repos, "u1", "sleep", 6, sunday)
    set_streak(repos, "u1", "overall", 7, sunday)

    awarded = evaluator.evaluate("u1", "overall", tracker.get_record("u1", "overall"))

    assert "perfect_week" not in types_of(awarded)


def test_perfect_week_only_checked_for_overall(repos, tracker, evaluator):
    sunday = MONDAY + timedelta(days=6)
    for category in CORE_CATEGORIES:
        set_streak(repos, "u1", category.value, 7, sunday)

    awarded = evaluator.evaluate("u1", "mood", tracker.get_record("u1", "mood"))

    assert "perfect_week" not in types_of(awarded)


def test_streak_summary(tracker, evaluator):
    for offset in range(3):
        log(tracker, evaluator, "u1", "mood", MONDAY + timedelta(days=offset))
    log(tracker, evaluator, "u1", "sleep", MONDAY + timedelta(days=2))

    summary = evaluator.get_streak_summary("u1")

    assert summary.total_active_streaks == 2
    assert summary.longest_current_streak == 3
    assert summary.best_category == "mood"
    assert len(summary.recent_achievements) == 3


def test_streak_summary_for_new_user(evaluator):
    summary = evaluator.get_streak_summary("nobody")

    assert summary.total_active_streaks == 0
    assert summary.longest_current_streak == 0
    assert summary.best_category == "mood"
    assert summary.recent_achievements == []


def test_streak_icons():
    assert streak_icon(3) == "🔥"
    assert streak_icon(7) == "🥉"
    assert streak_icon(14) == "🎖️"
    assert streak_icon(100) == "🏆"


def test_format_achievement_message(tracker, evaluator):
    awarded = log(tracker, evaluator, "u1", "journal", MONDAY)[1]

    message = AchievementEvaluator.format_achievement_message(awarded[0])

    assert message.startswith("📝 First Journal!")
