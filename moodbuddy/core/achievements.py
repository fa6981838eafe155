#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Achievement System
Разовые достижения за первые записи, стрики, количество записей и идеальную неделю

Версия: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union
import logging

from moodbuddy.core.models import (
    CORE_CATEGORIES, Achievement, StreakRecord, StreakSummary, TrackingCategory,
    validate_category
)
from moodbuddy.core.repositories import AchievementRepository, StreakRepository
from moodbuddy.utils.datetime_utils import day_range, now_utc

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (3, 7, 14, 30, 60, 100)
TOTAL_MILESTONES = (10, 25, 50, 100, 250, 500)
PERFECT_WEEK_DAYS = 7

# ===== ACHIEVEMENT CHECKERS =====

class AchievementChecker(ABC):
    """Базовый класс для проверки условия достижения"""

    @abstractmethod
    def check(self, record: StreakRecord) -> bool:
        """Проверить условие по обновленной записи стрика"""
        pass

class FirstEntryChecker(AchievementChecker):
    """Первая запись в категории"""

    def check(self, record: StreakRecord) -> bool:
        return record.total_entries == 1

class StreakMilestoneChecker(AchievementChecker):
    """Стрик ровно N дней (срабатывает при пересечении порога, а не каждый день после)"""

    def __init__(self, target_streak: int):
        self.target_streak = target_streak

    def check(self, record: StreakRecord) -> bool:
        return record.current_streak == self.target_streak

class TotalMilestoneChecker(AchievementChecker):
    """Ровно N записей в категории"""

    def __init__(self, target_count: int):
        self.target_count = target_count

    def check(self, record: StreakRecord) -> bool:
        return record.total_entries == self.target_count

class PerfectWeekChecker(AchievementChecker):
    """
    Идеальная неделя: каждая основная категория (mood, sleep, medication,
    exercise) содержит запись в каждый из последних 7 календарных дней,
    заканчивая днем оцениваемой записи.
    """

    def __init__(self, streaks: StreakRepository, days: int = PERFECT_WEEK_DAYS):
        self.streaks = streaks
        self.days = days

    def check(self, record: StreakRecord) -> bool:
        if record.last_entry_date is None:
            return False

        window = day_range(record.last_entry_date, self.days)

        for category in CORE_CATEGORIES:
            core_record = self.streaks.get(record.user_id, category.value)
            if core_record is None:
                return False
            if not all(core_record.covers(day) for day in window):
                return False

        return True

# ===== DEFINITIONS =====

@dataclass
class AchievementDefinition:
    """Определение достижения"""
    achievement_type: str
    title: str          # шаблон, {category} - отображаемое имя категории
    description: str    # шаблон, {category_value} - значение категории
    icon: Union[str, Callable[[TrackingCategory], str]]
    checker: AchievementChecker
    category: Optional[TrackingCategory] = None  # None - любая категория

    def applies_to(self, category: TrackingCategory) -> bool:
        return self.category is None or self.category == category

    def build(self, user_id: str, category: TrackingCategory, earned_at: datetime) -> Achievement:
        """Создать запись о полученном достижении"""
        icon = self.icon(category) if callable(self.icon) else self.icon
        return Achievement(
            user_id=user_id,
            achievement_type=self.achievement_type,
            category=category.value,
            title=self.title.format(category=category.display_name),
            description=self.description.format(category_value=category.value),
            icon_emoji=icon,
            earned_at=earned_at
        )

def streak_icon(milestone: int) -> str:
    """Иконка стрика по величине порога"""
    if milestone >= 30:
        return "🏆"
    if milestone >= 14:
        return "🎖️"
    if milestone >= 7:
        return "🥉"
    return "🔥"

# ===== ACHIEVEMENT REGISTRY =====

class AchievementRegistry:
    """Реестр всех достижений в порядке проверки"""

    def __init__(self, streaks: StreakRepository):
        self.definitions: Dict[str, AchievementDefinition] = {}
        self._load_default_achievements(streaks)

    def register_achievement(self, definition: AchievementDefinition) -> None:
        """Зарегистрировать достижение"""
        self.definitions[definition.achievement_type] = definition
        logger.debug(f"Registered achievement: {definition.achievement_type}")

    def get_achievement(self, achievement_type: str) -> Optional[AchievementDefinition]:
        return self.definitions.get(achievement_type)

    def get_all_achievements(self) -> List[AchievementDefinition]:
        return list(self.definitions.values())

    def _load_default_achievements(self, streaks: StreakRepository):
        """Загрузка стандартных достижений"""

        self.register_achievement(AchievementDefinition(
            achievement_type="first_entry",
            title="First {category}!",
            description="You logged your first {category_value} entry. Great start!",
            icon=lambda category: category.emoji,
            checker=FirstEntryChecker()
        ))

        for milestone in STREAK_MILESTONES:
            self.register_achievement(AchievementDefinition(
                achievement_type=f"streak_{milestone}",
                title=f"{milestone} Day {{category}} Streak!",
                description=f"Amazing! You've tracked your {{category_value}} for {milestone} days in a row.",
                icon=streak_icon(milestone),
                checker=StreakMilestoneChecker(milestone)
            ))

        for milestone in TOTAL_MILESTONES:
            self.register_achievement(AchievementDefinition(
                achievement_type=f"total_{milestone}",
                title=f"{milestone} {{category}} Entries!",
                description=f"You've made {milestone} total {{category_value}} entries. Keep it up!",
                icon="📊",
                checker=TotalMilestoneChecker(milestone)
            ))

        self.register_achievement(AchievementDefinition(
            achievement_type="perfect_week",
            title="Perfect Week!",
            description="You tracked mood, sleep, medication, and exercise every day this week!",
            icon="🌟",
            checker=PerfectWeekChecker(streaks),
            category=TrackingCategory.OVERALL
        ))

# ===== EVALUATOR =====

class AchievementEvaluator:
    """Проверка правил и выдача новых достижений"""

    def __init__(self, achievements: AchievementRepository, streaks: StreakRepository,
                 registry: Optional[AchievementRegistry] = None):
        self.achievements = achievements
        self.streaks = streaks
        self.registry = registry or AchievementRegistry(streaks)

    def evaluate(self, user_id: str, category: Union[str, TrackingCategory],
                 record: StreakRecord, earned_at: Optional[datetime] = None) -> List[Achievement]:
        """
        Проверить все правила для обновленной записи стрика.

        Возвращает только впервые выданные достижения; уже полученные
        молча пропускаются (уникальность по user_id, тип, категория).
        """
        category = validate_category(category)
        earned_at = earned_at or now_utc()
        awarded: List[Achievement] = []

        for definition in self.registry.get_all_achievements():
            if not definition.applies_to(category):
                continue
            if not definition.checker.check(record):
                continue

            if self.achievements.exists(user_id, definition.achievement_type, category.value):
                continue

            created = self.achievements.create_if_absent(
                definition.build(user_id, category, earned_at)
            )
            if created is None:
                logger.debug(f"Achievement {definition.achievement_type} [{category.value}] already earned by {user_id}")
                continue

            logger.info(f"🏆 User {user_id} earned {created.achievement_type} [{created.category}]")
            awarded.append(created)

        return awarded

    def get_user_achievements(self, user_id: str) -> List[Achievement]:
        """Все достижения пользователя, новые первыми"""
        return self.achievements.list_for_user(user_id)

    def get_streak_summary(self, user_id: str) -> StreakSummary:
        """Сводка по стрикам пользователя"""
        streaks = self.streaks.list_for_user(user_id)
        achievements = self.achievements.list_for_user(user_id)

        active_streaks = [s for s in streaks if s.current_streak > 0]
        longest_streak = max([s.current_streak for s in streaks] + [0])

        best_category = TrackingCategory.MOOD.value
        best_length = 0
        for streak in streaks:
            # Общий стрик в выборе лучшей категории не участвует
            if streak.category == TrackingCategory.OVERALL.value:
                continue
            if streak.current_streak > best_length:
                best_length = streak.current_streak
                best_category = streak.category

        recent = sorted(achievements, key=lambda a: a.earned_at, reverse=True)[:3]

        return StreakSummary(
            total_active_streaks=len(active_streaks),
            longest_current_streak=longest_streak,
            best_category=best_category,
            recent_achievements=recent
        )

    @staticmethod
    def format_achievement_message(achievement: Achievement) -> str:
        """Форматирование сообщения о достижении"""
        return f"{achievement.icon_emoji} {achievement.title}\n{achievement.description}"

__all__ = [
    'STREAK_MILESTONES',
    'TOTAL_MILESTONES',
    'PERFECT_WEEK_DAYS',
    'AchievementChecker',
    'FirstEntryChecker',
    'StreakMilestoneChecker',
    'TotalMilestoneChecker',
    'PerfectWeekChecker',
    'AchievementDefinition',
    'AchievementRegistry',
    'AchievementEvaluator',
    'streak_icon'
]
