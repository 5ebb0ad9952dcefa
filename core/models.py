#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck v1.0 - Core Data Models
Модели целей, стриков, напоминаний друзей и профилей с валидацией

Версия: 1.0.0
Дата: 2026-10-19
"""

import uuid
from datetime import datetime, date
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum
import logging

import pytz

from utils.datetime_utils import (
    WEEKDAY_NAMES, utc_now, ensure_aware, isoformat, parse_datetime, parse_date, parse_time
)

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class Frequency(Enum):
    """Периодичность цели"""
    DAILY = "daily"
    WEEKLY = "weekly"
    THREE_TIMES_A_WEEK = "3x_a_week"

class Difficulty(Enum):
    """Сложность привычки"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class GoalType(Enum):
    """Тип цели: гибкая (до конца дня) или к определенному времени"""
    FLEXIBLE = "flexible"
    TIME_BOUND = "time"

class GoalStatus(Enum):
    """Светофор соблюдения цели"""
    GREEN = "Green"
    YELLOW = "Yellow"
    RED = "Red"

class CompletionTiming(Enum):
    """Как выполнение соотносится с окном дедлайна"""
    ON_TIME = "on_time"
    LATE = "late"
    DUPLICATE = "duplicate"

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Ошибка валидации данных"""
    pass

def validate_text(text: str, min_length: int = 1, max_length: int = 1000, field_name: str = "text") -> str:
    """Валидация текстовых полей"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} должен быть строкой")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} должен содержать минимум {min_length} символов")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} должен содержать максимум {max_length} символов")

    return text

def validate_enum(value: Any, enum_class: type, field_name: str = "value"):
    """Приводит строку к enum, иначе ValidationError"""
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} должен быть одним из: {valid_values}")

def validate_non_negative(value: int, field_name: str) -> int:
    if not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field_name} должен быть неотрицательным целым числом")
    return value

def generate_id() -> str:
    return str(uuid.uuid4())

# ===== GOALS =====

@dataclass
class Goal:
    """Цель (привычка) пользователя и ее расписание"""
    goal_id: str
    owner_id: str
    description: str
    frequency: Frequency = Frequency.DAILY
    target_days: List[str] = field(default_factory=list)
    difficulty: Difficulty = Difficulty.MEDIUM
    goal_type: GoalType = GoalType.FLEXIBLE
    target_time: Optional[str] = None  # HH:MM в часовом поясе цели
    created_at: datetime = field(default_factory=utc_now)
    latest_completion_date: Optional[datetime] = None
    current_status: GoalStatus = GoalStatus.GREEN
    next_deadline: Optional[datetime] = None
    red_since: Optional[datetime] = None
    is_shared: bool = True
    timezone: str = "UTC"
    shame_count: int = 0

    def __post_init__(self):
        self.description = validate_text(self.description, min_length=1, max_length=200, field_name="description")
        if not self.goal_id or not self.owner_id:
            raise ValidationError("goal_id и owner_id обязательны")

        self.frequency = validate_enum(self.frequency, Frequency, "frequency")
        self.difficulty = validate_enum(self.difficulty, Difficulty, "difficulty")
        self.goal_type = validate_enum(self.goal_type, GoalType, "type")
        self.current_status = validate_enum(self.current_status, GoalStatus, "current_status")

        # Дни недели: обязательны для всех, кроме ежедневных целей
        unknown = [day for day in self.target_days if day not in WEEKDAY_NAMES]
        if unknown:
            raise ValidationError(f"Неизвестные дни недели: {unknown}")
        if self.frequency != Frequency.DAILY and not self.target_days:
            raise ValidationError("target_days не может быть пустым для не ежедневной цели")

        if self.goal_type == GoalType.TIME_BOUND:
            if not self.target_time:
                raise ValidationError("target_time обязателен для цели ко времени")
            try:
                parse_time(self.target_time)
            except (TypeError, ValueError):
                raise ValidationError(f"target_time должен быть в формате HH:MM: {self.target_time}")

        if self.timezone not in pytz.all_timezones_set:
            raise ValidationError(f"Неизвестная временная зона: {self.timezone}")

        self.created_at = ensure_aware(self.created_at)
        for name in ("latest_completion_date", "next_deadline", "red_since"):
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, ensure_aware(value))

        validate_non_negative(self.shame_count, "shame_count")

    @property
    def is_completed(self) -> bool:
        return self.latest_completion_date is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'goal_id': self.goal_id,
            'owner_id': self.owner_id,
            'description': self.description,
            'frequency': self.frequency.value,
            'target_days': list(self.target_days),
            'difficulty': self.difficulty.value,
            'goal_type': self.goal_type.value,
            'target_time': self.target_time,
            'created_at': isoformat(self.created_at),
            'latest_completion_date': isoformat(self.latest_completion_date),
            'current_status': self.current_status.value,
            'next_deadline': isoformat(self.next_deadline),
            'red_since': isoformat(self.red_since),
            'is_shared': self.is_shared,
            'timezone': self.timezone,
            'shame_count': self.shame_count
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        data = dict(data)
        for name in ("created_at", "latest_completion_date", "next_deadline", "red_since"):
            if name in data:
                data[name] = parse_datetime(data[name])
        if data.get("created_at") is None:
            data.pop("created_at", None)
        return cls(**data)

# ===== STREAKS =====

@dataclass
class Milestone:
    """Достигнутая веха стрика"""
    days: int
    achieved_at: datetime
    celebrated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'days': self.days,
            'achieved_at': isoformat(self.achieved_at),
            'celebrated': self.celebrated
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Milestone":
        return cls(
            days=data['days'],
            achieved_at=parse_datetime(data['achieved_at']),
            celebrated=data.get('celebrated', False)
        )

@dataclass
class HabitStreak:
    """Состояние серии выполнения привычки"""
    habit_id: str
    user_id: str
    current_streak: int = 0
    best_streak: int = 0
    last_completion_date: Optional[datetime] = None
    streak_start_date: Optional[date] = None
    freezes_available: int = 0
    freezes_used: int = 0
    milestones: List[Milestone] = field(default_factory=list)
    last_evaluated_deadline: Optional[datetime] = None

    def __post_init__(self):
        validate_non_negative(self.current_streak, "current_streak")
        validate_non_negative(self.best_streak, "best_streak")
        validate_non_negative(self.freezes_available, "freezes_available")
        validate_non_negative(self.freezes_used, "freezes_used")

        days = [milestone.days for milestone in self.milestones]
        if any(later <= earlier for earlier, later in zip(days, days[1:])):
            raise ValidationError("Вехи стрика должны строго возрастать")

    @property
    def is_active(self) -> bool:
        return self.current_streak > 0

    @property
    def milestone_days(self) -> List[int]:
        return [milestone.days for milestone in self.milestones]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'habit_id': self.habit_id,
            'user_id': self.user_id,
            'current_streak': self.current_streak,
            'best_streak': self.best_streak,
            'last_completion_date': isoformat(self.last_completion_date),
            'streak_start_date': self.streak_start_date.isoformat() if self.streak_start_date else None,
            'freezes_available': self.freezes_available,
            'freezes_used': self.freezes_used,
            'milestones': [milestone.to_dict() for milestone in self.milestones],
            'last_evaluated_deadline': isoformat(self.last_evaluated_deadline)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HabitStreak":
        data = dict(data)
        data['last_completion_date'] = parse_datetime(data.get('last_completion_date'))
        data['streak_start_date'] = parse_date(data.get('streak_start_date'))
        data['last_evaluated_deadline'] = parse_datetime(data.get('last_evaluated_deadline'))
        data['milestones'] = [Milestone.from_dict(item) for item in data.get('milestones', [])]
        return cls(**data)

@dataclass
class HabitCompletion:
    """Запись о выполнении привычки"""
    completion_id: str
    habit_id: str
    user_id: str
    completed_at: datetime
    timing: CompletionTiming = CompletionTiming.ON_TIME

    def to_dict(self) -> Dict[str, Any]:
        return {
            'completion_id': self.completion_id,
            'habit_id': self.habit_id,
            'user_id': self.user_id,
            'completed_at': isoformat(self.completed_at),
            'timing': self.timing.value
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HabitCompletion":
        return cls(
            completion_id=data['completion_id'],
            habit_id=data['habit_id'],
            user_id=data['user_id'],
            completed_at=parse_datetime(data['completed_at']),
            timing=CompletionTiming(data.get('timing', 'on_time'))
        )

# ===== SOCIAL =====

@dataclass(frozen=True)
class Nudge:
    """Напоминание от друга. Не изменяется после создания"""
    nudge_id: str
    sender_id: str
    sender_name: str
    receiver_id: str
    goal_id: str
    goal_description: str
    timestamp: datetime
    cooldown_until: datetime
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nudge_id': self.nudge_id,
            'sender_id': self.sender_id,
            'sender_name': self.sender_name,
            'receiver_id': self.receiver_id,
            'goal_id': self.goal_id,
            'goal_description': self.goal_description,
            'timestamp': isoformat(self.timestamp),
            'cooldown_until': isoformat(self.cooldown_until),
            'created_at': isoformat(self.created_at)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Nudge":
        timestamp = parse_datetime(data['timestamp'])
        return cls(
            nudge_id=data['nudge_id'],
            sender_id=data['sender_id'],
            sender_name=data['sender_name'],
            receiver_id=data['receiver_id'],
            goal_id=data['goal_id'],
            goal_description=data['goal_description'],
            timestamp=timestamp,
            cooldown_until=parse_datetime(data['cooldown_until']),
            created_at=parse_datetime(data.get('created_at')) or timestamp
        )

@dataclass
class UserProfile:
    """Профиль пользователя, нужный движку: доставка уведомлений и друзья"""
    user_id: str
    display_name: str = "Друг"
    push_token: Optional[str] = None
    notifications_enabled: bool = True
    friends: List[str] = field(default_factory=list)
    shame_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'display_name': self.display_name,
            'push_token': self.push_token,
            'notifications_enabled': self.notifications_enabled,
            'friends': list(self.friends),
            'shame_score': self.shame_score
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(**data)
