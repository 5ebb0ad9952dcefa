#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck v1.0 - HTTP API
FastAPI приложение: цели, выполнение, очки и напоминания друзьям

Версия: 1.0.0
Дата: 2026-10-19
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from api.routes import goals, nudges, scores
from core.models import ValidationError
from core.nudges import SelfActionError, RateLimitError
from services.habit_service import HabitService, GoalNotFoundError
from services.nudge_service import NudgeService
from services.deadline_monitor import DeadlineMonitor

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

def _error(status_code: int, error: str, detail: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail},
        headers=headers
    )

def create_app(habit_service: HabitService, nudge_service: NudgeService,
               monitor: Optional[DeadlineMonitor] = None) -> FastAPI:
    """Создание приложения. Если передан monitor, он работает вместе с приложением"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Запуск HabitCheck API...")
        app.state.started_at = time.time()
        if monitor:
            monitor.start()
        try:
            yield
        finally:
            if monitor:
                monitor.shutdown()
            logger.info("🛑 HabitCheck API остановлен")

    app = FastAPI(
        title="HabitCheck API",
        description="Движок привычек: дедлайны, стрики, очки и напоминания друзей",
        version=VERSION,
        lifespan=lifespan
    )
    app.state.habit_service = habit_service
    app.state.nudge_service = nudge_service
    app.state.started_at = time.time()

    app.include_router(goals.router)
    app.include_router(scores.router)
    app.include_router(nudges.router)

    # ===== ОБРАБОТЧИКИ ОШИБОК =====

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, "validation_error", str(exc))

    @app.exception_handler(SelfActionError)
    async def self_action_handler(request: Request, exc: SelfActionError):
        return _error(status.HTTP_400_BAD_REQUEST, "self_action", str(exc))

    @app.exception_handler(RateLimitError)
    async def rate_limit_handler(request: Request, exc: RateLimitError):
        return _error(
            status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited", str(exc),
            headers={"Retry-After": str(exc.remaining_minutes * 60)}
        )

    @app.exception_handler(GoalNotFoundError)
    async def not_found_handler(request: Request, exc: GoalNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "not_found", str(exc))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"❌ Необработанная ошибка {request.method} {request.url.path}: {exc}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Внутренняя ошибка сервера")

    # ===== HEALTH =====

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "habitcheck",
            "version": VERSION,
            "uptime": round(time.time() - app.state.started_at, 2),
            "monitor_running": bool(monitor and monitor.scheduler),
            "store": habit_service.store.get_stats()
        }

    return app
