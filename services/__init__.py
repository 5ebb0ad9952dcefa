# services/__init__.py

"""
Модуль сервисов HabitCheck

Хранилище документов, сервисы целей и напоминаний, доставка уведомлений
и фоновая проверка дедлайнов.
"""

import logging
from pathlib import Path
from typing import Optional

from .store import DocumentStore, StoreError
from .notifications import NotificationSender, create_notification_sender
from .habit_service import HabitService, GoalNotFoundError
from .nudge_service import NudgeService
from .deadline_monitor import DeadlineMonitor

logger = logging.getLogger(__name__)

class ServiceManager:
    """
    Менеджер для управления всеми сервисами

    Обеспечивает:
    - Инициализацию сервисов в нужном порядке
    - Общие хранилище и отправителя уведомлений для всех сервисов
    """

    def __init__(self):
        self.store: Optional[DocumentStore] = None
        self.notification_sender: Optional[NotificationSender] = None
        self.habit_service: Optional[HabitService] = None
        self.nudge_service: Optional[NudgeService] = None
        self.monitor: Optional[DeadlineMonitor] = None
        self.initialized = False

    def initialize_services(self, engine_config, data_file: Optional[Path] = None,
                            bot_token: Optional[str] = None) -> bool:
        """Инициализация всех сервисов по секции конфигурации движка"""
        try:
            logger.info("🔧 Инициализация сервисов HabitCheck...")

            logger.info("📂 Инициализация хранилища...")
            self.store = DocumentStore(data_file)
            self.notification_sender = create_notification_sender(bot_token)

            self.habit_service = HabitService(
                self.store,
                grace_window=engine_config.grace_window,
                default_timezone=engine_config.default_timezone
            )
            self.nudge_service = NudgeService(self.store, self.notification_sender)
            self.monitor = DeadlineMonitor(
                self.habit_service,
                self.store,
                self.notification_sender,
                interval_minutes=engine_config.deadline_check_minutes,
                shame_after_hours=engine_config.shame_after_hours
            )

            self.initialized = True
            logger.info("✅ Все сервисы инициализированы успешно!")
            return True

        except StoreError as e:
            logger.error(f"❌ Ошибка инициализации сервисов: {e}")
            self.close_services()
            return False

    def close_services(self):
        logger.info("🛑 Закрытие сервисов...")
        if self.monitor:
            self.monitor.shutdown()
        self.monitor = None
        self.habit_service = None
        self.nudge_service = None
        self.notification_sender = None
        self.store = None
        self.initialized = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_services()

__all__ = [
    'DocumentStore',
    'StoreError',
    'HabitService',
    'GoalNotFoundError',
    'NudgeService',
    'DeadlineMonitor',
    'ServiceManager',
]
