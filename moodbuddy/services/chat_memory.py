#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Chat Memory Service
Память чата: профиль пользователя, текущий разговор и история сообщений

Версия: 1.0.0
"""

import logging
from typing import Any, Dict, List, Optional, Union

from moodbuddy.core.chat_context import classify_sentiment, extract_topics
from moodbuddy.core.models import (
    ChatMessage, Conversation, MessageRole, UserProfile, validate_text
)
from moodbuddy.core.repositories import ConversationRepository, UserContextRepository
from moodbuddy.utils.datetime_utils import now_local

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000

def _summarize(topics: List[str]) -> Optional[str]:
    if not topics:
        return None
    return f"Discussed {', '.join(topics)}"

class ChatMemoryService:
    """Сервис памяти чат-компаньона"""

    def __init__(self, conversations: ConversationRepository, user_context: UserContextRepository):
        self.conversations = conversations
        self.user_context = user_context

    def get_user_context(self, user_id: str) -> UserProfile:
        """Профиль пользователя, создается при первом обращении"""
        profile = self.user_context.get(user_id)
        if profile is None:
            profile = self.user_context.save(UserProfile.create_default(user_id))
            logger.info(f"Created chat profile for user {user_id}")
        return profile

    def get_current_conversation(self, user_id: str) -> Conversation:
        """Последний обновленный разговор или новый"""
        conversation = self.conversations.latest(user_id)
        if conversation is None:
            title = f"Chat - {now_local().date().isoformat()}"
            conversation = self.conversations.create(user_id, title)
            logger.info(f"Started conversation {conversation.id} for user {user_id}")
        return conversation

    def save_message(self, conversation_id: int, user_id: str,
                     role: Union[str, MessageRole], content: str,
                     context: Optional[Dict[str, Any]] = None) -> ChatMessage:
        """
        Сохранить сообщение и обновить разговор.

        Тональность и темы вычисляются по тексту; темы сливаются с темами
        разговора без повторов, сводка пересчитывается по итоговому списку.
        """
        role = MessageRole(role).value
        content = validate_text(content, max_length=MAX_MESSAGE_LENGTH, field_name="message")

        sentiment = classify_sentiment(content).value
        topics = sorted(extract_topics(content))

        message = self.conversations.add_message(
            conversation_id, user_id, role, content, sentiment, topics, context or {}
        )

        conversation = self.conversations.get(conversation_id)
        if conversation is not None:
            merged = list(conversation.topics)
            merged.extend(topic for topic in topics if topic not in merged)
            self.conversations.update(conversation_id, merged, sentiment, _summarize(merged))

        return message

    def get_recent_messages(self, user_id: str, limit: int = 10) -> List[ChatMessage]:
        """Последние сообщения текущего разговора, новые первыми"""
        conversation = self.conversations.latest(user_id)
        if conversation is None:
            return []
        return self.conversations.messages(conversation.id, limit=limit)

    def update_user_profile(self, user_id: str,
                            preferences: Optional[Dict[str, Any]] = None,
                            mental_health_profile: Optional[Dict[str, Any]] = None,
                            personal_details: Optional[Dict[str, Any]] = None) -> UserProfile:
        """Поверхностное слияние разделов профиля"""
        profile = self.get_user_context(user_id)

        if preferences:
            profile.preferences = {**profile.preferences, **preferences}
        if mental_health_profile:
            profile.mental_health_profile = {**profile.mental_health_profile, **mental_health_profile}
        if personal_details:
            profile.personal_details = {**profile.personal_details, **personal_details}

        return self.user_context.save(profile)
