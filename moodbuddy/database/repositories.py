#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - SQLAlchemy Repositories
Реализации хранилищ записей, стриков, достижений и чата поверх SQLAlchemy

Версия: 1.0.0
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

import pytz
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from moodbuddy.core.models import (
    Achievement, ChatMessage, Conversation, StreakRecord, UserProfile, ValidationError
)
from moodbuddy.core.repositories import (
    AchievementRepository, ConversationRepository, EntryRepository, StoreUnavailable,
    MedicationTakenRepository, StreakRepository, UserContextRepository
)
from moodbuddy.database.manager import DatabaseManager
from moodbuddy.database.schema import (
    AchievementRow, Base, ChatConversationRow, ChatMessageRow, ExerciseEntryRow,
    JournalEntryRow, MedicationRow, MedicationTakenRow, MoodEntryRow, SleepEntryRow,
    StreakRow, UserContextRow, WeightEntryRow
)
from moodbuddy.utils.datetime_utils import now_utc, start_of_day

logger = logging.getLogger(__name__)

T = TypeVar("T")

def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite хранит только настенное время, поэтому все метки времени хранятся в UTC;
    # naive значения уже считаются UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)

# ===== ENTRIES =====

class SqlAlchemyEntryRepository(EntryRepository):
    """CRUD записей одного ORM типа"""

    # Поля, которые нельзя менять через create/update
    protected_fields = {"id", "user_id", "created_at"}

    def __init__(self, db: DatabaseManager, model: Type[Base], order_column: str = "created_at"):
        self.db = db
        self.model = model
        self.order_column = getattr(model, order_column)
        # имя колонки -> допускает ли NULL
        self._columns = {column.name: column.nullable for column in model.__table__.columns}

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Проверка полей; метки времени приводятся к UTC"""
        unknown = set(data) - set(self._columns)
        if unknown:
            raise ValidationError(f"Неизвестные поля для {self.model.__tablename__}: {sorted(unknown)}")

        values = {}
        for key, value in data.items():
            if key in self.protected_fields:
                continue
            if value is None and not self._columns[key]:
                raise ValidationError(f"Поле {key} не может быть пустым")
            if isinstance(value, datetime):
                value = _as_utc(value)
            values[key] = value
        return values

    @staticmethod
    def _owned(row: Optional[Base], user_id: Optional[str]) -> bool:
        return row is not None and (user_id is None or row.user_id == user_id)

    def list(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        with self.db.session_scope() as session:
            rows = session.scalars(
                select(self.model)
                .where(self.model.user_id == user_id)
                .order_by(self.order_column.desc())
                .limit(limit)
            ).all()
            return [row.to_dict() for row in rows]

    def get(self, entry_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        with self.db.session_scope() as session:
            row = session.get(self.model, entry_id)
            return row.to_dict() if self._owned(row, user_id) else None

    def create(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        values = self._clean(data)
        with self.db.session_scope() as session:
            row = self.model(user_id=user_id, **values)
            session.add(row)
            session.flush()
            result = row.to_dict()
        logger.debug(f"Created {self.model.__tablename__} entry {result['id']} for user {user_id}")
        return result

    def update(self, entry_id: str, data: Dict[str, Any],
               user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        values = self._clean(data)
        with self.db.session_scope() as session:
            row = session.get(self.model, entry_id)
            if not self._owned(row, user_id):
                return None
            for key, value in values.items():
                setattr(row, key, value)
            session.flush()
            return row.to_dict()

    def delete(self, entry_id: str, user_id: Optional[str] = None) -> bool:
        with self.db.session_scope() as session:
            row = session.get(self.model, entry_id)
            if not self._owned(row, user_id):
                return False
            session.delete(row)
            return True

class SqlAlchemyMedicationTakenRepository(SqlAlchemyEntryRepository, MedicationTakenRepository):
    """Отметки о приеме лекарств"""

    protected_fields = {"id", "user_id"}

    def __init__(self, db: DatabaseManager):
        super().__init__(db, MedicationTakenRow, order_column="taken_at")

    def _day_bounds(self, day: date):
        start = start_of_day(day).astimezone(pytz.utc)
        return start, start + timedelta(days=1)

    def list_for_day(self, user_id: str, day: Optional[date] = None) -> List[Dict[str, Any]]:
        query = select(MedicationTakenRow).where(MedicationTakenRow.user_id == user_id)
        if day is not None:
            start, end = self._day_bounds(day)
            query = query.where(MedicationTakenRow.taken_at >= start, MedicationTakenRow.taken_at < end)
        with self.db.session_scope() as session:
            rows = session.scalars(query.order_by(MedicationTakenRow.taken_at.desc())).all()
            return [row.to_dict() for row in rows]

    def list_for_medication(self, medication_id: str, day: Optional[date] = None,
                            user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        query = select(MedicationTakenRow).where(MedicationTakenRow.medication_id == medication_id)
        if user_id is not None:
            query = query.where(MedicationTakenRow.user_id == user_id)
        if day is not None:
            start, end = self._day_bounds(day)
            query = query.where(MedicationTakenRow.taken_at >= start, MedicationTakenRow.taken_at < end)
        with self.db.session_scope() as session:
            rows = session.scalars(query.order_by(MedicationTakenRow.taken_at.desc())).all()
            return [row.to_dict() for row in rows]

# ===== STREAKS =====

class SqlAlchemyStreakRepository(StreakRepository):
    """Стрики с построчной блокировкой"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    @staticmethod
    def _to_record(row: StreakRow) -> StreakRecord:
        return StreakRecord(
            user_id=row.user_id,
            category=row.category,
            current_streak=row.current_streak,
            longest_streak=row.longest_streak,
            last_entry_date=row.last_entry_date,
            total_entries=row.total_entries
        )

    def _select(self, user_id: str, category: str):
        return select(StreakRow).where(StreakRow.user_id == user_id, StreakRow.category == category)

    def get(self, user_id: str, category: str) -> Optional[StreakRecord]:
        with self.db.session_scope() as session:
            row = session.scalars(self._select(user_id, category)).first()
            return self._to_record(row) if row else None

    def list_for_user(self, user_id: str) -> List[StreakRecord]:
        with self.db.session_scope() as session:
            rows = session.scalars(
                select(StreakRow).where(StreakRow.user_id == user_id).order_by(StreakRow.category)
            ).all()
            return [self._to_record(row) for row in rows]

    def _ensure_row(self, user_id: str, category: str) -> None:
        """Ленивое создание записи; гонку разрешает уникальный индекс"""
        session = self.db.SessionLocal()
        try:
            if session.scalars(self._select(user_id, category)).first() is not None:
                session.rollback()
                return
            session.add(StreakRow(user_id=user_id, category=category))
            session.commit()
            logger.debug(f"Created streak record for user {user_id}, category {category}")
        except IntegrityError:
            session.rollback()
            logger.debug(f"Streak record for user {user_id}, category {category} created concurrently")
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreUnavailable(str(e)) from e
        finally:
            session.close()

    def modify(self, user_id: str, category: str,
               updater: Callable[[StreakRecord], T]) -> T:
        self._ensure_row(user_id, category)

        with self.db.session_scope() as session:
            row = session.scalars(self._select(user_id, category).with_for_update()).one()
            record = self._to_record(row)
            result = updater(record)

            row.current_streak = record.current_streak
            row.longest_streak = record.longest_streak
            row.last_entry_date = record.last_entry_date
            row.total_entries = record.total_entries
            return result

# ===== ACHIEVEMENTS =====

class SqlAlchemyAchievementRepository(AchievementRepository):
    """Достижения с атомарной вставкой"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    @staticmethod
    def _to_achievement(row: AchievementRow) -> Achievement:
        return Achievement(
            id=row.id,
            user_id=row.user_id,
            achievement_type=row.achievement_type,
            category=row.category,
            title=row.title,
            description=row.description,
            icon_emoji=row.icon_emoji,
            earned_at=_as_utc(row.earned_at)
        )

    def exists(self, user_id: str, achievement_type: str, category: str) -> bool:
        with self.db.session_scope() as session:
            row = session.scalars(
                select(AchievementRow.id).where(
                    AchievementRow.user_id == user_id,
                    AchievementRow.achievement_type == achievement_type,
                    AchievementRow.category == category
                )
            ).first()
            return row is not None

    def create_if_absent(self, achievement: Achievement) -> Optional[Achievement]:
        if self.exists(achievement.user_id, achievement.achievement_type, achievement.category):
            return None

        session = self.db.SessionLocal()
        try:
            row = AchievementRow(
                user_id=achievement.user_id,
                achievement_type=achievement.achievement_type,
                category=achievement.category,
                title=achievement.title,
                description=achievement.description,
                icon_emoji=achievement.icon_emoji,
                earned_at=_as_utc(achievement.earned_at)
            )
            session.add(row)
            session.commit()
            return self._to_achievement(row)
        except IntegrityError:
            # Параллельный запрос уже выдал это достижение
            session.rollback()
            return None
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreUnavailable(str(e)) from e
        finally:
            session.close()

    def list_for_user(self, user_id: str) -> List[Achievement]:
        with self.db.session_scope() as session:
            rows = session.scalars(
                select(AchievementRow)
                .where(AchievementRow.user_id == user_id)
                .order_by(AchievementRow.earned_at.desc(), AchievementRow.id.desc())
            ).all()
            return [self._to_achievement(row) for row in rows]

# ===== CHAT =====

class SqlAlchemyConversationRepository(ConversationRepository):
    """Разговоры и сообщения чата"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    @staticmethod
    def _to_conversation(row: ChatConversationRow) -> Conversation:
        return Conversation(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            sentiment=row.sentiment,
            topics=list(row.topics or []),
            summary=row.summary,
            updated_at=_as_utc(row.updated_at)
        )

    @staticmethod
    def _to_message(row: ChatMessageRow) -> ChatMessage:
        return ChatMessage(
            id=row.id,
            conversation_id=row.conversation_id,
            user_id=row.user_id,
            role=row.role,
            content=row.content,
            sentiment=row.sentiment,
            topics=list(row.topics or []),
            context=dict(row.context or {}),
            created_at=_as_utc(row.created_at)
        )

    def latest(self, user_id: str) -> Optional[Conversation]:
        conversations = self.recent(user_id, limit=1)
        return conversations[0] if conversations else None

    def recent(self, user_id: str, limit: int = 5) -> List[Conversation]:
        with self.db.session_scope() as session:
            rows = session.scalars(
                select(ChatConversationRow)
                .where(ChatConversationRow.user_id == user_id)
                .order_by(ChatConversationRow.updated_at.desc(), ChatConversationRow.id.desc())
                .limit(limit)
            ).all()
            return [self._to_conversation(row) for row in rows]

    def create(self, user_id: str, title: str) -> Conversation:
        with self.db.session_scope() as session:
            row = ChatConversationRow(user_id=user_id, title=title, sentiment="neutral", topics=[])
            session.add(row)
            session.flush()
            return self._to_conversation(row)

    def get(self, conversation_id: int) -> Optional[Conversation]:
        with self.db.session_scope() as session:
            row = session.get(ChatConversationRow, conversation_id)
            return self._to_conversation(row) if row else None

    def update(self, conversation_id: int, topics: List[str], sentiment: str,
               summary: Optional[str]) -> Optional[Conversation]:
        with self.db.session_scope() as session:
            row = session.get(ChatConversationRow, conversation_id)
            if row is None:
                return None
            row.topics = list(topics)
            row.sentiment = sentiment
            row.summary = summary
            row.updated_at = now_utc()
            session.flush()
            return self._to_conversation(row)

    def add_message(self, conversation_id: int, user_id: str, role: str, content: str,
                    sentiment: Optional[str], topics: List[str],
                    context: Dict[str, Any]) -> ChatMessage:
        with self.db.session_scope() as session:
            row = ChatMessageRow(
                conversation_id=conversation_id,
                user_id=user_id,
                role=role,
                content=content,
                sentiment=sentiment,
                topics=list(topics),
                context=context
            )
            session.add(row)
            session.flush()
            return self._to_message(row)

    def messages(self, conversation_id: int, limit: int = 10) -> List[ChatMessage]:
        with self.db.session_scope() as session:
            rows = session.scalars(
                select(ChatMessageRow)
                .where(ChatMessageRow.conversation_id == conversation_id)
                .order_by(ChatMessageRow.created_at.desc(), ChatMessageRow.id.desc())
                .limit(limit)
            ).all()
            return [self._to_message(row) for row in rows]

class SqlAlchemyUserContextRepository(UserContextRepository):
    """Профили пользователей"""

    def __init__(self, db: DatabaseManager):
        self.db = db

    def get(self, user_id: str) -> Optional[UserProfile]:
        with self.db.session_scope() as session:
            row = session.get(UserContextRow, user_id)
            if row is None:
                return None
            return UserProfile(
                user_id=row.user_id,
                preferences=dict(row.preferences or {}),
                mental_health_profile=dict(row.mental_health_profile or {}),
                personal_details=dict(row.personal_details or {})
            )

    def save(self, profile: UserProfile) -> UserProfile:
        with self.db.session_scope() as session:
            row = session.get(UserContextRow, profile.user_id)
            if row is None:
                row = UserContextRow(user_id=profile.user_id)
                session.add(row)
            row.preferences = dict(profile.preferences)
            row.mental_health_profile = dict(profile.mental_health_profile)
            row.personal_details = dict(profile.personal_details)
        return profile

# ===== FACTORY =====

class Repositories:
    """Набор всех хранилищ поверх одного DatabaseManager"""

    def __init__(self, db: DatabaseManager):
        self.db = db
        self.mood = SqlAlchemyEntryRepository(db, MoodEntryRow)
        self.sleep = SqlAlchemyEntryRepository(db, SleepEntryRow)
        self.medications = SqlAlchemyEntryRepository(db, MedicationRow)
        self.medication_taken = SqlAlchemyMedicationTakenRepository(db)
        self.journal = SqlAlchemyEntryRepository(db, JournalEntryRow)
        self.exercise = SqlAlchemyEntryRepository(db, ExerciseEntryRow)
        self.weight = SqlAlchemyEntryRepository(db, WeightEntryRow)
        self.streaks = SqlAlchemyStreakRepository(db)
        self.achievements = SqlAlchemyAchievementRepository(db)
        self.conversations = SqlAlchemyConversationRepository(db)
        self.user_context = SqlAlchemyUserContextRepository(db)
