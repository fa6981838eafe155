#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Chat Context
Сборка контекста пользователя для чат-компаньона, темы и тональность сообщений

Версия: 1.0.0
"""

import logging
from typing import Callable, Dict, List, Optional, Set, Tuple, TypeVar

from moodbuddy.core.models import ConversationContext, MessageRole, Sentiment, UserProfile
from moodbuddy.core.repositories import (
    ConversationRepository, EntryRepository, StoreUnavailable, UserContextRepository
)
from moodbuddy.utils.text_utils import contains_any, count_matches, excerpt

logger = logging.getLogger(__name__)

T = TypeVar("T")

PERSONA_PREAMBLE = "You are MoodBuddy, a compassionate mental health companion."
CLOSING_INSTRUCTION = (
    "Provide personalized, empathetic responses that acknowledge their history and current state. "
    "Be supportive and reference relevant past conversations when appropriate."
)

RECENT_CONVERSATIONS_LIMIT = 5
RECENT_MESSAGES_LIMIT = 5
USER_EXCERPTS_LIMIT = 3
EXCERPT_LENGTH = 100

# ===== TOPICS & SENTIMENT =====

TOPIC_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("anxiety", ("anxiety", "anxious")),
    ("depression", ("depression", "depressed")),
    ("stress", ("stress", "stressed")),
    ("sleep", ("sleep", "insomnia")),
    ("work", ("work", "job")),
    ("relationships", ("family", "relationship")),
    ("medication", ("medication", "meds")),
    ("therapy", ("therapy", "counseling")),
)

POSITIVE_WORDS = (
    "happy", "great", "good", "better", "excited",
    "grateful", "thankful", "love", "amazing", "wonderful"
)
NEGATIVE_WORDS = (
    "sad", "bad", "terrible", "awful", "depressed",
    "anxious", "worried", "stressed", "hate", "angry"
)

def extract_topics(text: str) -> Set[str]:
    """Темы сообщения по вхождению ключевых слов"""
    return {topic for topic, keywords in TOPIC_KEYWORDS if contains_any(text, keywords)}

def classify_sentiment(text: str) -> Sentiment:
    """Тональность: побеждает большинство совпадений, при равенстве нейтральная"""
    positive_score = count_matches(text, POSITIVE_WORDS)
    negative_score = count_matches(text, NEGATIVE_WORDS)

    if positive_score > negative_score:
        return Sentiment.POSITIVE
    if negative_score > positive_score:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL

# ===== CONTEXT ASSEMBLER =====

class ChatContextAssembler:
    """Сборщик контекстной строки для генератора ответов"""

    def __init__(self, mood: EntryRepository, exercise: EntryRepository, sleep: EntryRepository,
                 conversations: ConversationRepository, user_context: UserContextRepository):
        self.mood = mood
        self.exercise = exercise
        self.sleep = sleep
        self.conversations = conversations
        self.user_context = user_context

    def _safe(self, source: str, loader: Callable[[], T], default: T) -> T:
        # Отсутствие одного источника не должно ломать весь контекст
        try:
            return loader()
        except StoreUnavailable as e:
            logger.warning(f"Chat context source '{source}' unavailable: {e}")
            return default

    def _recent_user_messages(self, user_id: str) -> List[str]:
        conversation = self.conversations.latest(user_id)
        if conversation is None:
            return []
        messages = self.conversations.messages(conversation.id, limit=RECENT_MESSAGES_LIMIT)
        return [
            excerpt(message.content, EXCERPT_LENGTH)
            for message in messages
            if message.role == MessageRole.USER.value
        ][:USER_EXCERPTS_LIMIT]

    @staticmethod
    def _activities(exercise: Optional[Dict], sleep: Optional[Dict]) -> List[str]:
        exercise_slot = "exercised" if exercise and exercise.get("exercised") else "no exercise"
        if sleep:
            sleep_slot = f"slept {sleep['hours_slept']}h ({sleep['quality']})"
        else:
            sleep_slot = "no sleep data"
        return [exercise_slot, sleep_slot]

    def gather(self, user_id: str) -> ConversationContext:
        """Собрать данные контекста из хранилищ"""
        mood = self._safe("mood", lambda: self.mood.latest(user_id), None)
        exercise = self._safe("exercise", lambda: self.exercise.latest(user_id), None)
        sleep = self._safe("sleep", lambda: self.sleep.latest(user_id), None)
        conversations = self._safe(
            "conversations",
            lambda: self.conversations.recent(user_id, limit=RECENT_CONVERSATIONS_LIMIT),
            []
        )
        user_messages = self._safe("messages", lambda: self._recent_user_messages(user_id), [])
        profile: Optional[UserProfile] = self._safe("profile", lambda: self.user_context.get(user_id), None)

        return ConversationContext(
            recent_mood=mood.get("mood") if mood else None,
            recent_activities=self._activities(exercise, sleep),
            conversation_history="; ".join(c.summary for c in conversations if c.summary),
            recent_user_messages=user_messages,
            communication_style=profile.communication_style if profile else None,
            concerns=profile.concerns if profile else []
        )

    @staticmethod
    def render(context: ConversationContext) -> str:
        """Превратить контекст в текстовый префикс промпта"""
        parts = [PERSONA_PREAMBLE]

        if context.recent_mood:
            parts.append(f"The user's recent mood was {context.recent_mood}.")

        if context.recent_activities:
            parts.append(f"Recent activities: {', '.join(context.recent_activities)}.")

        if context.recent_user_messages:
            parts.append(f"Recent conversation topics: {'; '.join(context.recent_user_messages)}.")

        if context.communication_style:
            parts.append(f"User prefers {context.communication_style} communication style.")

        if context.concerns:
            parts.append(f"User has mentioned concerns about: {', '.join(context.concerns)}.")

        parts.append(CLOSING_INSTRUCTION)
        return " ".join(parts)

    def build_context(self, user_id: str) -> str:
        """Контекстная строка для пользователя (пересобирается каждый раз)"""
        return self.render(self.gather(user_id))
