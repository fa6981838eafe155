#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Web Dependencies
Контейнер сервисов и провайдеры зависимостей для FastAPI приложения

Версия: 1.0.0
"""

import logging
from typing import Optional

from fastapi import Header, Request

from moodbuddy.config import AppConfig, config as default_config
from moodbuddy.core.achievements import AchievementEvaluator
from moodbuddy.core.chat_context import ChatContextAssembler
from moodbuddy.core.models import validate_text
from moodbuddy.core.streaks import StreakTracker
from moodbuddy.database import DatabaseManager, Repositories
from moodbuddy.services.ai_service import AIService
from moodbuddy.services.chat_memory import ChatMemoryService
from moodbuddy.services.gamification import GamificationService

logger = logging.getLogger(__name__)

class ServiceContainer:
    """Все сервисы приложения поверх одного DatabaseManager"""

    def __init__(self, db: DatabaseManager, app_config: Optional[AppConfig] = None,
                 ai_service: Optional[AIService] = None):
        self.config = app_config or default_config
        self.db = db
        self.repos = Repositories(db)

        self.tracker = StreakTracker(self.repos.streaks, self.config.tracking.timezone)
        self.evaluator = AchievementEvaluator(self.repos.achievements, self.repos.streaks)
        self.gamification = GamificationService(self.tracker, self.evaluator)

        self.chat_memory = ChatMemoryService(self.repos.conversations, self.repos.user_context)
        self.context_assembler = ChatContextAssembler(
            self.repos.mood, self.repos.exercise, self.repos.sleep,
            self.repos.conversations, self.repos.user_context
        )
        self.ai = ai_service or AIService(self.config)

        logger.info("Service container initialized")

# ===== ПРОВАЙДЕРЫ =====

def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container

def get_user_id(request: Request, x_user_id: Optional[str] = Header(None)) -> str:
    """Пользователь из заголовка X-User-Id (по умолчанию демо-пользователь)"""
    if not x_user_id:
        return get_container(request).config.tracking.default_user_id
    return validate_text(x_user_id, max_length=64, field_name="X-User-Id")
