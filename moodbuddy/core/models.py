#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Core Data Models
Модели данных трекинга, стриков и достижений с валидацией

Версия: 1.0.0
"""

from datetime import datetime, date
from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field, asdict
from enum import Enum
import logging

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class TrackingCategory(Enum):
    """Категории трекинга"""
    MOOD = "mood"
    SLEEP = "sleep"
    MEDICATION = "medication"
    EXERCISE = "exercise"
    WEIGHT = "weight"
    JOURNAL = "journal"
    OVERALL = "overall"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @property
    def emoji(self) -> str:
        return CATEGORY_EMOJIS[self]

CATEGORY_EMOJIS = {
    TrackingCategory.MOOD: "😊",
    TrackingCategory.SLEEP: "😴",
    TrackingCategory.MEDICATION: "💊",
    TrackingCategory.EXERCISE: "💪",
    TrackingCategory.WEIGHT: "⚖️",
    TrackingCategory.JOURNAL: "📝",
    TrackingCategory.OVERALL: "⭐",
}

# Категории, которые должны быть заполнены каждый день для "идеальной недели"
CORE_CATEGORIES = (
    TrackingCategory.MOOD,
    TrackingCategory.SLEEP,
    TrackingCategory.MEDICATION,
    TrackingCategory.EXERCISE,
)

class MoodLevel(Enum):
    """Уровни настроения"""
    VERY_SAD = "very-sad"
    SAD = "sad"
    NEUTRAL = "neutral"
    HAPPY = "happy"
    VERY_HAPPY = "very-happy"

class SleepQuality(Enum):
    """Качество сна"""
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"

class Sentiment(Enum):
    """Тональность сообщения"""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

class MessageRole(Enum):
    """Автор сообщения в чате"""
    USER = "user"
    ASSISTANT = "assistant"

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Ошибка валидации данных"""
    pass

class InvalidCategory(ValidationError):
    """Категория вне фиксированного набора"""

    def __init__(self, category: Any):
        self.category = category
        valid_values = [c.value for c in TrackingCategory]
        super().__init__(f"Неизвестная категория '{category}', допустимые: {valid_values}")

def validate_category(category: Union[str, TrackingCategory]) -> TrackingCategory:
    """Валидация категории трекинга"""
    if isinstance(category, TrackingCategory):
        return category
    try:
        return TrackingCategory(category)
    except ValueError:
        raise InvalidCategory(category)

def validate_text(text: str, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Валидация текстовых полей"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} должен быть строкой")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} должен содержать минимум {min_length} символов")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} должен содержать максимум {max_length} символов")

    return text

# ===== CORE MODELS =====

@dataclass
class StreakRecord:
    """Стрик пользователя в одной категории"""
    user_id: str
    category: str
    current_streak: int = 0
    longest_streak: int = 0
    last_entry_date: Optional[date] = None
    total_entries: int = 0

    def __post_init__(self):
        """Валидация после создания объекта"""
        validate_category(self.category)

        if self.current_streak < 0 or self.longest_streak < 0 or self.total_entries < 0:
            raise ValidationError("Счетчики стрика не могут быть отрицательными")

        if self.longest_streak < self.current_streak:
            raise ValidationError("longest_streak не может быть меньше current_streak")

    def covers(self, day: date) -> bool:
        """Входит ли день в текущую непрерывную серию"""
        if self.last_entry_date is None or self.current_streak == 0:
            return False
        first_day = date.fromordinal(self.last_entry_date.toordinal() - self.current_streak + 1)
        return first_day <= day <= self.last_entry_date

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['last_entry_date'] = self.last_entry_date.isoformat() if self.last_entry_date else None
        return data

@dataclass(frozen=True)
class StreakResult:
    """Результат записи в стрик"""
    streak: int
    is_new_record: bool

@dataclass(frozen=True)
class Achievement:
    """Полученное достижение (неизменяемое)"""
    user_id: str
    achievement_type: str
    category: str
    title: str
    description: str
    icon_emoji: str
    earned_at: datetime
    id: Optional[int] = None

    @property
    def key(self) -> tuple:
        """Ключ уникальности достижения"""
        return (self.user_id, self.achievement_type, self.category)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'achievement_type': self.achievement_type,
            'category': self.category,
            'title': self.title,
            'description': self.description,
            'icon_emoji': self.icon_emoji,
            'earned_at': self.earned_at.isoformat()
        }

@dataclass
class StreakSummary:
    """Сводка по стрикам пользователя"""
    total_active_streaks: int
    longest_current_streak: int
    best_category: str
    recent_achievements: List[Achievement] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_active_streaks': self.total_active_streaks,
            'longest_current_streak': self.longest_current_streak,
            'best_category': self.best_category,
            'recent_achievements': [a.to_dict() for a in self.recent_achievements]
        }

@dataclass
class ConversationContext:
    """Контекст пользователя для чата (пересобирается на каждое сообщение)"""
    recent_mood: Optional[str] = None
    recent_activities: List[str] = field(default_factory=list)
    conversation_history: str = ""  # в промпт не входит, сохраняется с сообщением пользователя
    recent_user_messages: List[str] = field(default_factory=list)
    communication_style: Optional[str] = None
    concerns: List[str] = field(default_factory=list)

@dataclass
class UserProfile:
    """Профиль пользователя для персонализации чата"""
    user_id: str
    preferences: Dict[str, Any] = field(default_factory=dict)
    mental_health_profile: Dict[str, Any] = field(default_factory=dict)
    personal_details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create_default(cls, user_id: str) -> "UserProfile":
        """Профиль по умолчанию для нового пользователя"""
        return cls(
            user_id=user_id,
            preferences={'communicationStyle': 'supportive', 'topics': []},
            mental_health_profile={'concerns': [], 'copingStrategies': [], 'triggers': []},
            personal_details={}
        )

    @property
    def communication_style(self) -> Optional[str]:
        return self.preferences.get('communicationStyle')

    @property
    def concerns(self) -> List[str]:
        return list(self.mental_health_profile.get('concerns') or [])

@dataclass
class Conversation:
    """Разговор с чат-компаньоном"""
    id: int
    user_id: str
    title: str
    sentiment: str = Sentiment.NEUTRAL.value
    topics: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'sentiment': self.sentiment,
            'topics': list(self.topics),
            'summary': self.summary,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

@dataclass
class ChatMessage:
    """Сообщение в разговоре"""
    id: int
    conversation_id: int
    user_id: str
    role: str
    content: str
    sentiment: Optional[str] = None
    topics: List[str] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'conversation_id': self.conversation_id,
            'role': self.role,
            'content': self.content,
            'sentiment': self.sentiment,
            'topics': list(self.topics),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
