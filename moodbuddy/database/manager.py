#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Database Manager
Подключение к базе данных, фабрика сессий и единица работы

Версия: 1.0.0
"""

import time
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from moodbuddy.config import config
from moodbuddy.core.models import ValidationError
from moodbuddy.core.repositories import DatabaseError, StoreUnavailable
from moodbuddy.database.schema import Base

logger = logging.getLogger(__name__)

# ===== MANAGER =====

class DatabaseManager:
    """Управление подключением и транзакциями"""

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or config.database.url
        self.echo = config.database.echo if echo is None else echo
        self.engine: Engine = self._create_engine()
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False
        )
        self.started_at = time.time()
        self.error_count = 0
        logger.info(f"Database manager initialized ({self.engine.dialect.name})")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def _create_engine(self) -> Engine:
        """Создание engine с учетом особенностей SQLite"""
        kwargs: Dict[str, Any] = {"echo": self.echo}

        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.url or self.url in ("sqlite://", "sqlite:///"):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = config.database.pool_pre_ping
            kwargs["pool_recycle"] = 300

        engine = create_engine(self.url, **kwargs)

        if self.url.startswith("sqlite"):
            # pysqlite откладывает BEGIN до первого DML; берем управление транзакциями на себя
            @event.listens_for(engine, "connect")
            def _on_connect(dbapi_connection, connection_record):
                dbapi_connection.isolation_level = None
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            @event.listens_for(engine, "begin")
            def _on_begin(conn):
                conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    def create_tables(self) -> None:
        """Создание всех таблиц"""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            self.error_count += 1
            raise StoreUnavailable(f"Не удалось создать таблицы: {e}") from e
        logger.info("Database tables ensured")

    def drop_tables(self) -> None:
        """Удаление всех таблиц"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Транзакция: commit при успехе, rollback при ошибке"""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            # Нарушение ограничений: ошибка входных данных
            session.rollback()
            logger.warning(f"Integrity error: {e.orig}")
            raise ValidationError(f"Данные нарушают ограничения хранилища: {e.orig}") from e
        except SQLAlchemyError as e:
            session.rollback()
            self.error_count += 1
            logger.error(f"Database error: {e}")
            raise StoreUnavailable(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_health_status(self) -> Dict[str, Any]:
        """Статус здоровья базы данных"""
        status = {
            'healthy': True,
            'dialect': self.engine.dialect.name,
            'error_count': self.error_count,
            'uptime_hours': round((time.time() - self.started_at) / 3600, 2),
            'checked_at': datetime.now().isoformat()
        }

        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            status['healthy'] = False
            status['error'] = str(e)
            logger.warning(f"Database health check failed: {e}")

        return status

    def dispose(self) -> None:
        """Закрытие пула соединений"""
        self.engine.dispose()
        logger.info("Database connections closed")

def create_database_manager(url: Optional[str] = None, create_tables: bool = True) -> DatabaseManager:
    """Создать менеджер базы данных"""
    manager = DatabaseManager(url)
    if create_tables:
        manager.create_tables()
    return manager

__all__ = [
    'DatabaseError',
    'StoreUnavailable',
    'DatabaseManager',
    'create_database_manager'
]
