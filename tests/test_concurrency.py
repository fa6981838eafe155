import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime

import pytest
import pytz

from moodbuddy.core.achievements import AchievementEvaluator
from moodbuddy.core.models import Achievement, StreakRecord
from moodbuddy.core.streaks import StreakTracker
from moodbuddy.database import DatabaseManager, Repositories

MONDAY = date(2024, 3, 4)
WORKERS = 8


@pytest.fixture
def file_db(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'moodbuddy.db'}")
    manager.create_tables()
    yield manager
    manager.dispose()


def run_together(task):
    """Запустить task в WORKERS потоках одновременно"""
    barrier = threading.Barrier(WORKERS, timeout=10)

    def worker():
        barrier.wait()
        return task()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [pool.submit(worker) for _ in range(WORKERS)]
        return [future.result(timeout=30) for future in futures]


def test_same_day_entries_from_many_threads_count_once(file_db):
    repos = Repositories(file_db)
    tracker = StreakTracker(repos.streaks, "UTC")

    results = run_together(lambda: tracker.record_entry("u1", "mood", MONDAY).streak)

    assert results == [1] * WORKERS
    record = tracker.get_record("u1", "mood")
    assert record.total_entries == 1
    assert record.current_streak == 1


def test_separate_trackers_serialize_on_row_lock(file_db):
    # Без общей блокировки в процессе запись сериализует только база
    def task():
        tracker = StreakTracker(Repositories(file_db).streaks, "UTC")
        return tracker.record_entry("u1", "sleep", MONDAY).is_new_record

    results = run_together(task)

    assert results.count(True) == 1
    record = Repositories(file_db).streaks.get("u1", "sleep")
    assert record.total_entries == 1
    assert record.longest_streak == 1


def test_racing_achievement_insert_creates_one_row(file_db):
    repos = Repositories(file_db)
    achievement = Achievement(
        user_id="u1", achievement_type="first_entry", category="mood", title="First Mood!",
        description="...", icon_emoji="😊", earned_at=pytz.utc.localize(datetime(2024, 3, 4, 9, 0))
    )

    results = run_together(lambda: repos.achievements.create_if_absent(achievement))

    assert len([created for created in results if created is not None]) == 1
    assert len(repos.achievements.list_for_user("u1")) == 1


def test_racing_evaluations_award_once(file_db):
    repos = Repositories(file_db)
    evaluator = AchievementEvaluator(repos.achievements, repos.streaks)
    record = StreakRecord(
        user_id="u1", category="journal", current_streak=1, longest_streak=1,
        last_entry_date=MONDAY, total_entries=1
    )

    results = run_together(lambda: evaluator.evaluate("u1", "journal", record))

    awarded = [achievement.achievement_type for batch in results for achievement in batch]
    assert awarded == ["first_entry"]
    assert len(repos.achievements.list_for_user("u1")) == 1
