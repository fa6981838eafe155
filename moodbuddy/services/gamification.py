#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Gamification Service
Связка трекера стриков и оценщика достижений для каждой новой записи

Версия: 1.0.0
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from moodbuddy.core.achievements import AchievementEvaluator
from moodbuddy.core.models import Achievement, StreakSummary, TrackingCategory, validate_category
from moodbuddy.core.streaks import StreakTracker
from moodbuddy.utils.datetime_utils import DateLike

logger = logging.getLogger(__name__)

@dataclass
class GamificationResult:
    """Итог обработки записи: стрик категории и новые достижения"""
    streak: int
    is_new_record: bool
    achievements: List[Achievement] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'streak': self.streak,
            'isNewRecord': self.is_new_record,
            'newAchievements': [a.to_dict() for a in self.achievements]
        }

class GamificationService:
    """Стрики и достижения для записей пользователя"""

    def __init__(self, tracker: StreakTracker, evaluator: AchievementEvaluator):
        self.tracker = tracker
        self.evaluator = evaluator

    def update_streak_on_entry(self, user_id: str, category: Union[str, TrackingCategory],
                               entry_date: Optional[DateLike] = None) -> GamificationResult:
        """
        Учесть запись: стрик категории, затем общий стрик пользователя.

        Общая категория получает отметку за каждую запись любого типа и
        проверяется на "идеальную неделю"; результат для вызывающего кода
        относится к исходной категории.
        """
        category = validate_category(category)

        result = self.tracker.record_entry(user_id, category, entry_date)
        record = self.tracker.get_record(user_id, category)
        achievements = self.evaluator.evaluate(user_id, category, record)

        if category != TrackingCategory.OVERALL:
            self.tracker.record_entry(user_id, TrackingCategory.OVERALL, entry_date)
            overall = self.tracker.get_record(user_id, TrackingCategory.OVERALL)
            achievements.extend(self.evaluator.evaluate(user_id, TrackingCategory.OVERALL, overall))

        if achievements:
            logger.info(f"User {user_id} earned {len(achievements)} achievement(s) for {category.value} entry")

        return GamificationResult(
            streak=result.streak,
            is_new_record=result.is_new_record,
            achievements=achievements
        )

    def get_streak_summary(self, user_id: str) -> StreakSummary:
        return self.evaluator.get_streak_summary(user_id)
