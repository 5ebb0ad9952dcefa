#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck v1.0 - Configuration
Централизованная конфигурация движка привычек с валидацией

Версия: 1.0.0
Дата: 2026-10-19
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

import pytz

class Environment(Enum):
    """Среды выполнения"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"

class LogLevel(Enum):
    """Уровни логирования"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class EngineConfig:
    """Параметры движка: дедлайны, пропуски, проверки"""
    grace_window_hours: float = 6.0
    shame_after_hours: int = 24
    deadline_check_minutes: int = 15
    default_timezone: str = "UTC"

    @property
    def grace_window(self) -> timedelta:
        return timedelta(hours=self.grace_window_hours)

@dataclass
class StorageConfig:
    """Конфигурация хранилища документов"""
    path: Optional[Path]
    persist: bool = True

@dataclass
class TelegramConfig:
    """Конфигурация доставки уведомлений через Telegram"""
    bot_token: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token)

@dataclass
class ServerConfig:
    """Конфигурация сервера"""
    host: str = "0.0.0.0"
    port: int = 8080
    debug_mode: bool = False

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

        self.engine = EngineConfig(
            grace_window_hours=float(os.getenv('GRACE_WINDOW_HOURS', 6)),
            shame_after_hours=int(os.getenv('SHAME_AFTER_HOURS', 24)),
            deadline_check_minutes=int(os.getenv('DEADLINE_CHECK_MINUTES', 15)),
            default_timezone=os.getenv('DEFAULT_TIMEZONE', 'UTC')
        )

        persist = os.getenv('PERSIST_DATA', 'true').lower() == 'true'
        self.storage = StorageConfig(
            path=self.data_dir / "habitcheck_data.json" if persist else None,
            persist=persist
        )

        self.telegram = TelegramConfig(bot_token=os.getenv('BOT_TOKEN') or None)

        self.server = ServerConfig(
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', 8080)),
            debug_mode=os.getenv('DEBUG_MODE', 'false').lower() == 'true'
        )

        # Логирование
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO').upper())
        self.log_to_file = os.getenv('LOG_TO_FILE', 'true').lower() == 'true'

    def _validate_config(self):
        """Валидация конфигурации"""
        errors = []

        if self.engine.grace_window_hours < 0:
            errors.append("GRACE_WINDOW_HOURS не может быть отрицательным")

        if self.engine.shame_after_hours <= 0:
            errors.append("SHAME_AFTER_HOURS должен быть положительным числом")

        if self.engine.deadline_check_minutes <= 0:
            errors.append("DEADLINE_CHECK_MINUTES должен быть положительным числом")

        if self.engine.default_timezone not in pytz.all_timezones_set:
            errors.append(f"Неизвестная временная зона: {self.engine.default_timezone}")

        if not 1024 <= self.server.port <= 65535:
            errors.append(f"Порт {self.server.port} вне допустимого диапазона (1024-65535)")

        if errors:
            raise ValueError("Ошибки конфигурации:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Создание необходимых директорий"""
        for directory in [self.data_dir, self.log_dir]:
            directory.mkdir(parents=True, exist_ok=True)

    @property
    def log_file(self) -> Optional[Path]:
        """Файл лога или None, если запись в файл отключена"""
        if not self.log_to_file:
            return None
        return self.log_dir / f"habitcheck_{self.environment.value}.log"

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация конфигурации в словарь"""
        return {
            'environment': self.environment.value,
            'engine': {
                'grace_window_hours': self.engine.grace_window_hours,
                'shame_after_hours': self.engine.shame_after_hours,
                'deadline_check_minutes': self.engine.deadline_check_minutes,
                'default_timezone': self.engine.default_timezone
            },
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'debug_mode': self.server.debug_mode
            },
            'notifications_enabled': self.telegram.enabled,
            'storage_path': str(self.storage.path) if self.storage.path else None,
            'log_level': self.log_level.value
        }

# Глобальный экземпляр конфигурации
config = AppConfig()

__all__ = [
    'config',
    'AppConfig',
    'Environment',
    'LogLevel',
    'EngineConfig',
    'StorageConfig',
    'TelegramConfig',
    'ServerConfig'
]
