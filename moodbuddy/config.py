#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Configuration
Централизованная конфигурация из переменных окружения с валидацией

Версия: 1.0.0
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from enum import Enum

import pytz

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class DatabaseConfig:
    """Конфигурация базы данных"""
    url: str
    echo: bool = False
    pool_pre_ping: bool = True

@dataclass
class TrackingConfig:
    """Конфигурация трекинга и стриков"""
    timezone: str = "UTC"
    default_user_id: str = "demo-user"

@dataclass
class AIConfig:
    """Конфигурация AI сервисов"""
    openai_api_key: Optional[str]
    openai_model: str = "gpt-4o"
    openai_max_tokens: int = 400
    openai_temperature: float = 0.8
    ai_chat_enabled: bool = True
    request_timeout: int = 30

@dataclass
class ServerConfig:
    """Конфигурация сервера"""
    host: str = "0.0.0.0"
    port: int = 8080
    debug_mode: bool = False
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).lower() == 'true'

class AppConfig:
    """Главный класс конфигурации"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Загрузка конфигурации из переменных окружения"""

        # Директории
        self.data_dir = Path(os.getenv('DATA_DIR', 'data'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        # База данных
        self.database = DatabaseConfig(
            url=os.getenv('DATABASE_URL', f"sqlite:///{self.data_dir / 'moodbuddy.db'}"),
            echo=_env_bool('DB_ECHO', 'false'),
            pool_pre_ping=_env_bool('DB_POOL_PRE_PING', 'true')
        )

        # Трекинг
        self.tracking = TrackingConfig(
            timezone=os.getenv('TRACKING_TIMEZONE', 'UTC'),
            default_user_id=os.getenv('DEFAULT_USER_ID', 'demo-user')
        )

        # AI конфигурация
        self.ai = AIConfig(
            openai_api_key=os.getenv('OPENAI_API_KEY') or None,
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-4o'),
            openai_max_tokens=int(os.getenv('OPENAI_MAX_TOKENS', 400)),
            openai_temperature=float(os.getenv('OPENAI_TEMPERATURE', 0.8)),
            ai_chat_enabled=_env_bool('AI_CHAT_ENABLED', 'true'),
            request_timeout=int(os.getenv('AI_TIMEOUT', 30))
        )

        # Сервер
        origins = os.getenv('ALLOWED_ORIGINS', '*')
        self.server = ServerConfig(
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', 8080)),
            debug_mode=_env_bool('DEBUG_MODE', 'false'),
            allowed_origins=[origin.strip() for origin in origins.split(',') if origin.strip()]
        )

        # Логирование
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        self.log_to_file = _env_bool('LOG_TO_FILE', 'false')
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = []

        # Часовой пояс для границ календарного дня
        if self.tracking.timezone not in pytz.all_timezones_set:
            errors.append(f"TRACKING_TIMEZONE '{self.tracking.timezone}' не является известным часовым поясом")

        if not self.tracking.default_user_id.strip():
            errors.append("DEFAULT_USER_ID не может быть пустым")

        # Проверка портов
        if not 1024 <= self.server.port <= 65535:
            errors.append(f"Порт {self.server.port} вне допустимого диапазона (1024-65535)")

        # Проверка AI параметров
        if self.ai.openai_max_tokens <= 0:
            errors.append("OPENAI_MAX_TOKENS должен быть положительным числом")

        if not 0.0 <= self.ai.openai_temperature <= 2.0:
            errors.append("OPENAI_TEMPERATURE должен быть в диапазоне 0.0-2.0")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Создание необходимых директорий"""
        directories = [self.log_dir]
        if self.database.url.startswith('sqlite:///') and ':memory:' not in self.database.url:
            directories.append(Path(self.database.url[len('sqlite:///'):]).parent)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Получение конфигурации логирования"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        logging_config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            logging_config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"moodbuddy_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        for noisy in ('httpx', 'openai', 'sqlalchemy.engine', 'uvicorn.access'):
            logging_config['loggers'][noisy] = {
                'level': 'WARNING',
                'handlers': handlers,
                'propagate': False
            }

        return logging_config

    def is_development(self) -> bool:
        """Проверка режима разработки"""
        return self.environment == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        """Проверка продакшн режима"""
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь"""
        return {
            'environment': self.environment.value,
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug_mode': self.server.debug_mode
            },
            'tracking': {
                'timezone': self.tracking.timezone,
                'default_user_id': self.tracking.default_user_id
            },
            'ai_enabled': bool(self.ai.openai_api_key) and self.ai.ai_chat_enabled,
            'database_url': self.database.url.split('@')[-1],  # Скрываем учетные данные
            'log_level': self.log_level.value
        }

# Глобальный экземпляр конфигурации
config = AppConfig()

__all__ = [
    'config',
    'AppConfig',
    'Environment',
    'LogLevel',
    'DatabaseConfig',
    'TrackingConfig',
    'AIConfig',
    'ServerConfig'
]
