#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - AI Service
Генерация ответов чат-компаньона через OpenAI с резервными ответами по ключевым словам

Версия: 1.0.0
"""

import asyncio
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging

import openai
from openai import AsyncOpenAI

from moodbuddy.config import AppConfig, config as default_config

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are MoodBuddy, a compassionate mental health companion. Provide supportive, "
    "empathetic responses focused on mental wellness, coping strategies, and emotional "
    "support. Always include gentle encouragement and positive affirmations. Keep responses "
    "conversational, caring, and around 2-3 sentences."
)
EMPTY_COMPLETION_REPLY = "I'm sorry, I couldn't generate a response right now. Please try again."

# ===== EXCEPTIONS =====

class AIServiceError(Exception):
    """Базовое исключение для AI сервиса"""
    pass

class AIProviderError(AIServiceError):
    """Ошибка провайдера AI"""
    pass

# ===== DATA =====

class AIProvider(Enum):
    """Провайдеры AI"""
    OPENAI = "openai"
    FALLBACK = "fallback"

@dataclass
class AIResponse:
    """Ответ AI"""
    content: str
    provider: AIProvider
    tokens_used: int = 0
    response_time_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'content': self.content,
            'provider': self.provider.value,
            'tokens_used': self.tokens_used,
            'response_time_ms': self.response_time_ms,
            'timestamp': self.timestamp
        }

@dataclass
class AIStats:
    """Статистика AI сервиса"""
    total_requests: int = 0
    openai_responses: int = 0
    fallback_responses: int = 0
    failed_requests: int = 0
    total_tokens_used: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_requests': self.total_requests,
            'openai_responses': self.openai_responses,
            'fallback_responses': self.fallback_responses,
            'failed_requests': self.failed_requests,
            'total_tokens_used': self.total_tokens_used
        }

# ===== FALLBACK RESPONSES =====

class FallbackResponseProvider:
    """Резервные ответы: первое совпавшее правило, иначе общий ответ"""

    GENERIC_RESPONSE = (
        "Thank you for sharing that with me. I can tell this matters to you, and I want you "
        "to know that I'm here to listen without judgment. Your experiences and feelings are "
        "valid, and you deserve support. Can you tell me a bit more about what's on your mind "
        "so I can better understand how to help?"
    )

    def __init__(self):
        self.rules: List[Tuple[re.Pattern, str]] = [
            (self._pattern(keywords), response) for keywords, response in self._load_rules()
        ]

    @staticmethod
    def _pattern(keywords: Tuple[str, ...]) -> re.Pattern:
        # Совпадение с начала слова: "hi" не срабатывает внутри "this"
        return re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + r")", re.IGNORECASE)

    @staticmethod
    def _load_rules() -> List[Tuple[Tuple[str, ...], str]]:
        return [
            (("hello", "hi", "hey"),
             "Hello there! I'm so glad you're here. It takes courage to reach out, and I want you "
             "to know that this is a safe space for you. What's been on your mind lately that "
             "you'd like to talk about?"),
            (("sad", "down", "depressed", "cry"),
             "I can hear the pain in your words, and I want you to know that your feelings are "
             "completely valid. Sadness is a natural part of the human experience, and it takes "
             "strength to acknowledge it. You've made it through difficult times before. What "
             "helped you get through those moments?"),
            (("anxious", "anxiety", "worried", "panic"),
             "Anxiety can feel overwhelming, but you're not alone in this feeling. The fact that "
             "you're here talking about it shows self-awareness and courage. Try taking a slow, "
             "deep breath with me: in for 4, hold for 4, out for 6. What specific thoughts or "
             "situations are making you feel most anxious right now?"),
            (("sleep", "tired", "insomnia", "exhausted"),
             "Sleep struggles are so challenging and more common than you might think. Your body "
             "and mind need that restorative time, and it's frustrating when it doesn't come "
             "naturally. Have you noticed any patterns in what might be keeping you awake?"),
            (("stress", "overwhelmed", "busy", "pressure"),
             "It sounds like you're carrying a lot right now. When we feel overwhelmed, our brain "
             "often tries to solve everything at once, which just adds to the stress. Let's break "
             "this down. What's the one thing that's weighing on you most heavily today?"),
            (("work", "job", "boss", "career"),
             "Work-related stress can really impact our overall wellbeing. It's important to "
             "remember that your worth isn't defined by your job performance, even though it can "
             "feel that way sometimes. What aspect of work is causing you the most concern?"),
            (("family", "parents", "relationship"),
             "Relationships with family can be complex and emotionally charged. Remember, you can "
             "only control your own actions and responses, not others'. What kind of support do "
             "you need most in navigating this situation?"),
            (("lonely", "alone", "isolated"),
             "Loneliness can feel so heavy, and I want you to know that reaching out here shows "
             "incredible strength. Even when we're physically alone, you have value and you "
             "matter. What used to make you feel most connected to others?"),
            (("medication", "meds", "pills", "therapy"),
             "Taking steps to care for your mental health, whether through medication, therapy, "
             "or other support, shows real wisdom and self-compassion. How are you feeling about "
             "the support you're currently receiving?"),
            (("better", "good", "happy", "progress"),
             "I'm so glad to hear you're experiencing some positive moments! Even small steps "
             "forward are meaningful victories. What's been helping you feel this way?"),
            (("thank", "grateful", "appreciate"),
             "Your gratitude means so much to me. The fact that you're here, working on yourself "
             "and being open about your experiences, shows incredible courage. I'm honored to be "
             "part of your journey."),
        ]

    def get_response(self, message: str) -> str:
        """Ответ по первому совпавшему правилу"""
        for pattern, response in self.rules:
            if pattern.search(message):
                return response
        return self.GENERIC_RESPONSE

# ===== MAIN AI SERVICE =====

class AIService:
    """Сервис генерации ответов чат-компаньона"""

    def __init__(self, app_config: Optional[AppConfig] = None):
        self.config = app_config or default_config
        self.openai_client: Optional[AsyncOpenAI] = None
        self.enabled = self._initialize_openai()
        self.fallback_provider = FallbackResponseProvider()
        self.stats = AIStats()

        self.max_retries = 2
        self.retry_delay = 1.0

        logger.info(f"AI Service initialized - OpenAI: {'✅' if self.enabled else '❌'}")

    def _initialize_openai(self) -> bool:
        """Инициализация OpenAI клиента"""
        if not self.config.ai.openai_api_key:
            logger.warning("OpenAI API key not configured")
            return False

        try:
            self.openai_client = AsyncOpenAI(
                api_key=self.config.ai.openai_api_key,
                timeout=self.config.ai.request_timeout
            )
            logger.info("OpenAI client initialized successfully")
            return True
        except openai.OpenAIError as e:
            logger.error(f"Failed to initialize OpenAI client: {e}")
            return False

    def is_available(self) -> bool:
        """Настроен ли провайдер OpenAI"""
        return self.enabled and self.config.ai.ai_chat_enabled

    async def generate_response(self, message: str, context: Optional[str] = None) -> AIResponse:
        """Ответ на сообщение пользователя с учетом контекстной строки"""
        start_time = time.time()
        self.stats.total_requests += 1

        if self.is_available():
            try:
                response = await self._generate_openai_response(message, context)
                self.stats.openai_responses += 1
                self.stats.total_tokens_used += response.tokens_used
            except AIServiceError as e:
                logger.error(f"AI service error: {e}")
                self.stats.failed_requests += 1
                response = self._generate_fallback_response(message)
        else:
            response = self._generate_fallback_response(message)

        response.response_time_ms = int((time.time() - start_time) * 1000)
        return response

    async def _generate_openai_response(self, message: str, context: Optional[str]) -> AIResponse:
        """Генерация ответа через OpenAI"""
        messages = [
            {"role": "system", "content": context or DEFAULT_SYSTEM_PROMPT},
            {"role": "user", "content": message}
        ]

        for attempt in range(self.max_retries):
            try:
                completion = await self.openai_client.chat.completions.create(
                    model=self.config.ai.openai_model,
                    messages=messages,
                    max_tokens=self.config.ai.openai_max_tokens,
                    temperature=self.config.ai.openai_temperature,
                    timeout=self.config.ai.request_timeout
                )

                content = (completion.choices[0].message.content or "").strip() if completion.choices else ""
                tokens_used = completion.usage.total_tokens if completion.usage else 0

                return AIResponse(
                    content=content or EMPTY_COMPLETION_REPLY,
                    provider=AIProvider.OPENAI,
                    tokens_used=tokens_used
                )

            except openai.RateLimitError:
                logger.warning(f"OpenAI rate limit hit, attempt {attempt + 1}")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                else:
                    raise AIProviderError("OpenAI rate limit exceeded")

            except openai.APITimeoutError:
                logger.warning(f"OpenAI timeout, attempt {attempt + 1}")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay)
                else:
                    raise AIProviderError("OpenAI request timeout")

            except openai.OpenAIError as e:
                logger.error(f"OpenAI API error on attempt {attempt + 1}: {e}")
                raise AIProviderError(f"OpenAI API failed: {e}") from e

        raise AIProviderError("OpenAI request failed")

    def _generate_fallback_response(self, message: str) -> AIResponse:
        """Генерация резервного ответа"""
        self.stats.fallback_responses += 1
        return AIResponse(
            content=self.fallback_provider.get_response(message),
            provider=AIProvider.FALLBACK
        )

    def get_health_status(self) -> Dict[str, Any]:
        """Статус AI сервиса"""
        issues = []
        if not self.config.ai.openai_api_key:
            issues.append("OpenAI not configured")
        elif not self.config.ai.ai_chat_enabled:
            issues.append("AI chat disabled")

        return {
            'status': 'healthy' if not issues else 'warning',
            'issues': issues,
            'stats': self.stats.to_dict(),
            'model': self.config.ai.openai_model
        }

def create_ai_service(app_config: Optional[AppConfig] = None) -> AIService:
    """Создать AI сервис"""
    return AIService(app_config)

__all__ = [
    'AIServiceError',
    'AIProviderError',
    'AIProvider',
    'AIResponse',
    'AIStats',
    'FallbackResponseProvider',
    'AIService',
    'create_ai_service'
]
