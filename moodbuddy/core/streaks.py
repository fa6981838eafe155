#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Streak Tracker
Подсчет последовательных дней записей по категориям

Стрик считается по календарным дням (а не по 24-часовым интервалам) в
часовом поясе трекинга: запись в 23:00 и запись в 01:00 следующего дня -
это два последовательных дня. Повторные записи в тот же день не меняют стрик.

Версия: 1.0.0
"""

import logging
import threading
from datetime import date, timedelta
from typing import List, Optional, Tuple, Union

from moodbuddy.core.models import (
    StreakRecord, StreakResult, TrackingCategory, validate_category
)
from moodbuddy.core.repositories import StreakRepository
from moodbuddy.utils.datetime_utils import DateLike, calendar_day

logger = logging.getLogger(__name__)

# Число блокировок, между которыми распределяются ключи (user_id, category)
LOCK_STRIPES = 64

def apply_entry(record: StreakRecord, today: date) -> StreakResult:
    """Применить запись за день к стрику (изменяет record на месте)"""
    if record.last_entry_date == today:
        return StreakResult(streak=record.current_streak, is_new_record=False)

    if record.last_entry_date == today - timedelta(days=1):
        new_streak = record.current_streak + 1
    else:
        # Пропуск двух и более дней или первая запись
        new_streak = 1

    is_new_record = new_streak > record.longest_streak

    record.current_streak = new_streak
    record.longest_streak = max(new_streak, record.longest_streak)
    record.last_entry_date = today
    record.total_entries += 1

    return StreakResult(streak=new_streak, is_new_record=is_new_record)

class StreakTracker:
    """Трекер стриков по (user_id, category)"""

    def __init__(self, repository: StreakRepository, tz_name: Optional[str] = None):
        self.repository = repository
        self.tz_name = tz_name
        # Один писатель на ключ внутри процесса; между процессами сериализует блокировка строки.
        # Набор блокировок фиксирован: ключи делят их по хешу
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(LOCK_STRIPES)]

    def _lock_for(self, key: Tuple[str, str]) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]

    def record_entry(self, user_id: str, category: Union[str, TrackingCategory],
                     entry_date: Optional[DateLike] = None) -> StreakResult:
        """Учесть запись пользователя в категории"""
        category = validate_category(category).value
        today = calendar_day(entry_date, self.tz_name)

        with self._lock_for((user_id, category)):
            result = self.repository.modify(
                user_id, category, lambda record: apply_entry(record, today)
            )

        logger.info(
            f"Streak for user {user_id} [{category}] on {today.isoformat()}: "
            f"{result.streak}{' (new record)' if result.is_new_record else ''}"
        )
        return result

    def get_record(self, user_id: str, category: Union[str, TrackingCategory]) -> StreakRecord:
        """Текущая запись стрика (нулевая, если записей еще не было)"""
        category = validate_category(category).value
        record = self.repository.get(user_id, category)
        return record or StreakRecord(user_id=user_id, category=category)
