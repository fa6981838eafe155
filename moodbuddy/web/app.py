#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - FastAPI Application
HTTP API трекинга самочувствия: записи, стрики, достижения и чат

Версия: 1.0.0
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from moodbuddy import __version__
from moodbuddy.config import AppConfig, config as default_config
from moodbuddy.core.models import ValidationError
from moodbuddy.database import DatabaseManager, StoreUnavailable, create_database_manager
from moodbuddy.web.api import chat, entries, gamification
from moodbuddy.web.dependencies import ServiceContainer
from moodbuddy.web.schemas import HealthCheck

logger = logging.getLogger(__name__)

def create_app(db: Optional[DatabaseManager] = None,
               app_config: Optional[AppConfig] = None,
               container: Optional[ServiceContainer] = None) -> FastAPI:
    """Создание FastAPI приложения"""
    app_config = app_config or default_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Управление жизненным циклом приложения"""
        logger.info("🚀 Запуск MoodBuddy API...")
        owns_container = not hasattr(app.state, "container")
        if owns_container:
            app_config.ensure_directories()
            app.state.container = ServiceContainer(create_database_manager(app_config.database.url), app_config)
        app.state.started_at = time.time()
        logger.info("✅ MoodBuddy API готов к работе")

        yield

        logger.info("🛑 Остановка MoodBuddy API...")
        if owns_container:
            app.state.container.db.dispose()

    app = FastAPI(
        title="MoodBuddy API",
        description="Трекинг настроения, сна, лекарств и активности с геймификацией и чат-компаньоном",
        version=__version__,
        docs_url="/api/docs" if app_config.server.debug_mode else None,
        redoc_url=None,
        lifespan=lifespan
    )

    if container is not None:
        app.state.container = container
    elif db is not None:
        app.state.container = ServiceContainer(db, app_config)

    # ===== MIDDLEWARE =====

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Логирование запросов и времени обработки"""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            f"{request.method} {request.url.path} "
            f"- {response.status_code} "
            f"- {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response

    # ===== ОБРАБОТЧИКИ ОШИБОК =====

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request data", "details": jsonable_encoder(exc.errors())})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        logger.error(f"❌ Хранилище недоступно: {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"error": "Could not update progress, please try again"})

    # ===== ROUTES =====

    app.include_router(entries.router)
    app.include_router(gamification.router)
    app.include_router(chat.router)

    @app.get("/health", response_model=HealthCheck)
    def health_check(request: Request):
        """Проверка здоровья сервиса"""
        database = request.app.state.container.db.get_health_status()
        return HealthCheck(
            status="healthy" if database["healthy"] else "unhealthy",
            service="moodbuddy",
            version=__version__,
            timestamp=time.time(),
            database=database
        )

    return app
