from moodbuddy.core.models import (
    Achievement, StreakRecord, StreakResult, StreakSummary, TrackingCategory,
    ValidationError, InvalidCategory
)
from moodbuddy.core.repositories import DatabaseError, StoreUnavailable
from moodbuddy.core.streaks import StreakTracker
from moodbuddy.core.achievements import AchievementEvaluator
from moodbuddy.core.chat_context import ChatContextAssembler

__all__ = [
    'Achievement',
    'StreakRecord',
    'StreakResult',
    'StreakSummary',
    'TrackingCategory',
    'ValidationError',
    'InvalidCategory',
    'DatabaseError',
    'StoreUnavailable',
    'StreakTracker',
    'AchievementEvaluator',
    'ChatContextAssembler'
]
