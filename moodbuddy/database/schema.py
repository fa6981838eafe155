#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Database Schema
ORM таблицы записей трекинга, стриков, достижений и чата

Все метки времени хранятся в UTC.

Версия: 1.0.0
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text,
    UniqueConstraint
)
from sqlalchemy.orm import DeclarativeBase

def _new_id() -> str:
    return str(uuid.uuid4())

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Base(DeclarativeBase):
    pass

class EntryMixin:
    """Общие поля записей трекинга"""
    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    def to_dict(self):
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                # SQLite теряет tzinfo
                if value.tzinfo is None:
                    value = value.replace(tzinfo=timezone.utc)
                value = value.isoformat()
            result[column.name] = value
        return result

class MoodEntryRow(EntryMixin, Base):
    __tablename__ = "mood_entries"

    mood = Column(String(32), nullable=False)  # very-sad, sad, neutral, happy, very-happy
    notes = Column(Text)

class SleepEntryRow(EntryMixin, Base):
    __tablename__ = "sleep_entries"

    bedtime = Column(DateTime(timezone=True), nullable=False)
    wake_time = Column(DateTime(timezone=True), nullable=False)
    hours_slept = Column(Integer, nullable=False)
    quality = Column(String(16), nullable=False)  # poor, fair, good, excellent
    notes = Column(Text)

class MedicationRow(EntryMixin, Base):
    __tablename__ = "medications"

    name = Column(Text, nullable=False)
    dosage = Column(Text, nullable=False)
    frequency = Column(Text, nullable=False)
    times = Column(JSON, nullable=False, default=list)  # ["08:00", "20:00"]
    is_active = Column(Boolean, nullable=False, default=True)

class MedicationTakenRow(Base):
    __tablename__ = "medication_taken"

    id = Column(String(36), primary_key=True, default=_new_id)
    medication_id = Column(String(36), ForeignKey("medications.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    taken_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    scheduled_time = Column(Text, nullable=False)

    to_dict = EntryMixin.to_dict

class JournalEntryRow(EntryMixin, Base):
    __tablename__ = "journal_entries"

    title = Column(Text)
    content = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

class ExerciseEntryRow(EntryMixin, Base):
    __tablename__ = "exercise_entries"

    exercised = Column(Boolean, nullable=False, default=True)
    activity_type = Column(String(64))
    duration_minutes = Column(Integer)
    notes = Column(Text)

class WeightEntryRow(EntryMixin, Base):
    __tablename__ = "weight_entries"

    weight = Column(Float, nullable=False)
    unit = Column(String(8), nullable=False, default="kg")
    notes = Column(Text)

class StreakRow(Base):
    __tablename__ = "streaks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    category = Column(String(16), nullable=False)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_entry_date = Column(Date, nullable=True)
    total_entries = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_streaks_user_category"),
    )

class AchievementRow(Base):
    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    achievement_type = Column(String(32), nullable=False)
    category = Column(String(16), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    icon_emoji = Column(String(16), nullable=False)
    earned_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_type", "category", name="uq_achievements_user_type_category"),
    )

class ChatConversationRow(Base):
    __tablename__ = "chat_conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(Text, nullable=False)
    sentiment = Column(String(16), nullable=False, default="neutral")
    topics = Column(JSON, nullable=False, default=list)
    summary = Column(Text)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

class ChatMessageRow(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(Integer, ForeignKey("chat_conversations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    role = Column(String(16), nullable=False)  # user, assistant
    content = Column(Text, nullable=False)
    context = Column(JSON, nullable=False, default=dict)
    sentiment = Column(String(16))
    topics = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

class UserContextRow(Base):
    __tablename__ = "user_context"

    user_id = Column(String(64), primary_key=True)
    preferences = Column(JSON, nullable=False, default=dict)
    mental_health_profile = Column(JSON, nullable=False, default=dict)
    personal_details = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
