#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Repository Interfaces
Абстрактные хранилища, от которых зависит ядро (стрики, достижения, чат)

Версия: 1.0.0
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Callable, Dict, List, Optional, TypeVar

from moodbuddy.core.models import (
    Achievement, ChatMessage, Conversation, StreakRecord, UserProfile
)

T = TypeVar("T")

# ===== EXCEPTIONS =====

class DatabaseError(Exception):
    """Базовое исключение для ошибок хранилища"""
    pass

class StoreUnavailable(DatabaseError):
    """Хранилище недоступно для чтения или записи"""
    pass

class EntryRepository(ABC):
    """CRUD для записей одного типа (настроение, сон, ...)"""

    @abstractmethod
    def list(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Последние записи пользователя, новые первыми"""

    @abstractmethod
    def get(self, entry_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Запись по id; None если ее нет или она принадлежит другому пользователю"""

    @abstractmethod
    def create(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def update(self, entry_id: str, data: Dict[str, Any],
               user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Частичное обновление; None если запись не найдена или чужая"""

    @abstractmethod
    def delete(self, entry_id: str, user_id: Optional[str] = None) -> bool:
        pass

    def latest(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Самая свежая запись пользователя"""
        entries = self.list(user_id, limit=1)
        return entries[0] if entries else None

class StreakRepository(ABC):
    """Хранилище стриков, ключ (user_id, category)"""

    @abstractmethod
    def get(self, user_id: str, category: str) -> Optional[StreakRecord]:
        pass

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[StreakRecord]:
        pass

    @abstractmethod
    def modify(self, user_id: str, category: str,
               updater: Callable[[StreakRecord], T]) -> T:
        """
        Атомарный read-modify-write записи стрика.

        Запись создается лениво (нулевые счетчики), блокируется на время
        транзакции, передается в updater для изменения на месте и сохраняется.
        Возвращает результат updater.
        """

class AchievementRepository(ABC):
    """Хранилище достижений, уникальность по (user_id, achievement_type, category)"""

    @abstractmethod
    def exists(self, user_id: str, achievement_type: str, category: str) -> bool:
        pass

    @abstractmethod
    def create_if_absent(self, achievement: Achievement) -> Optional[Achievement]:
        """Атомарная вставка; None если такое достижение уже есть"""

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[Achievement]:
        """Достижения пользователя, новые первыми"""

class ConversationRepository(ABC):
    """Хранилище разговоров и сообщений чата"""

    @abstractmethod
    def latest(self, user_id: str) -> Optional[Conversation]:
        pass

    @abstractmethod
    def create(self, user_id: str, title: str) -> Conversation:
        pass

    @abstractmethod
    def get(self, conversation_id: int) -> Optional[Conversation]:
        pass

    @abstractmethod
    def recent(self, user_id: str, limit: int = 5) -> List[Conversation]:
        """Последние обновленные разговоры пользователя"""

    @abstractmethod
    def update(self, conversation_id: int, topics: List[str], sentiment: str,
               summary: Optional[str]) -> Optional[Conversation]:
        pass

    @abstractmethod
    def add_message(self, conversation_id: int, user_id: str, role: str, content: str,
                    sentiment: Optional[str], topics: List[str],
                    context: Dict[str, Any]) -> ChatMessage:
        pass

    @abstractmethod
    def messages(self, conversation_id: int, limit: int = 10) -> List[ChatMessage]:
        """Сообщения разговора, новые первыми"""

class UserContextRepository(ABC):
    """Хранилище профилей пользователей для персонализации чата"""

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    def save(self, profile: UserProfile) -> UserProfile:
        pass

class MedicationTakenRepository(EntryRepository):
    """Отметки о приеме лекарств с фильтром по дню"""

    @abstractmethod
    def list_for_day(self, user_id: str, day: Optional[date] = None) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_for_medication(self, medication_id: str, day: Optional[date] = None,
                            user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        pass
