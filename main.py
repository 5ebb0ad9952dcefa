#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck v1.0 - Точка входа
Движок привычек: HTTP API и фоновая проверка дедлайнов

Версия: 1.0.0
Дата: 2026-10-19
"""

import logging
import sys

import uvicorn

from api import create_app
from config import config
from services import ServiceManager
from utils.logger import setup_logger

logger = logging.getLogger(__name__)

def build_app(manager: ServiceManager):
    if not manager.initialize_services(config.engine, config.storage.path, config.telegram.bot_token):
        raise RuntimeError("Не удалось инициализировать сервисы")
    return create_app(manager.habit_service, manager.nudge_service, manager.monitor)

def main():
    config.ensure_directories()
    log_file = config.log_file
    setup_logger(str(log_file) if log_file else None, level=config.log_level.value)

    logger.info("🚀 Запуск HabitCheck v1.0...")
    logger.info(f"🌍 Окружение: {config.environment.value}")
    logger.info(f"⚙️ Конфигурация: {config.to_dict()}")

    with ServiceManager() as manager:
        try:
            app = build_app(manager)
        except RuntimeError as e:
            logger.error(f"❌ {e}")
            sys.exit(1)

        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level="debug" if config.server.debug_mode else config.log_level.value.lower()
        )

    logger.info("👋 HabitCheck остановлен")

if __name__ == "__main__":
    main()
