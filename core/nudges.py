#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck v1.0 - Nudge Cooldown Gate
Правила ограничения напоминаний друзьям: одна пара (отправитель, цель)
не чаще раза в час

Версия: 1.0.0
Дата: 2026-10-19
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from core.models import Nudge, ValidationError, generate_id
from utils.datetime_utils import ensure_aware

# Окно фиксированное, без эскалации
NUDGE_COOLDOWN = timedelta(minutes=60)

REQUIRED_NUDGE_FIELDS = ("sender_id", "sender_name", "receiver_id", "goal_id", "goal_description")

# ===== EXCEPTIONS =====

class SelfActionError(Exception):
    """Попытка отправить напоминание самому себе"""
    pass

class RateLimitError(Exception):
    """Для пары (отправитель, цель) действует кулдаун"""

    def __init__(self, remaining_minutes: int):
        self.remaining_minutes = remaining_minutes
        super().__init__(f"Напоминание уже отправлено, подождите {remaining_minutes} мин")

# ===== INPUT =====

@dataclass
class SendNudgeInput:
    sender_id: str
    sender_name: str
    receiver_id: str
    goal_id: str
    goal_description: str

# ===== RULES =====

def validate_nudge_input(nudge_input: SendNudgeInput) -> None:
    """
    Проверка входных данных. Самонапоминание проверяется первым, если
    отправитель указан: оно запрещено при любых других полях.
    """
    if nudge_input.sender_id and nudge_input.sender_id == nudge_input.receiver_id:
        raise SelfActionError("Нельзя отправить напоминание самому себе")

    missing = [
        name for name in REQUIRED_NUDGE_FIELDS
        if not isinstance(getattr(nudge_input, name, None), str) or not getattr(nudge_input, name).strip()
    ]
    if missing:
        raise ValidationError(f"Обязательные поля не заполнены: {', '.join(missing)}")

def remaining_cooldown_minutes(cooldown_until: Optional[datetime], now: datetime) -> int:
    """0 без кулдауна, иначе округленные вверх минуты в (0, 60]"""
    if cooldown_until is None:
        return 0
    remaining = (ensure_aware(cooldown_until) - ensure_aware(now)).total_seconds()
    if remaining <= 0:
        return 0
    return math.ceil(remaining / 60)

def is_cooldown_active(cooldown_until: Optional[datetime], now: datetime) -> bool:
    return remaining_cooldown_minutes(cooldown_until, now) > 0

def collect_active_cooldowns(nudges: Iterable[Nudge], now: datetime) -> Dict[str, datetime]:
    """goal_id -> самый поздний неистекший cooldown_until"""
    now = ensure_aware(now)
    cooldowns: Dict[str, datetime] = {}
    for nudge in nudges:
        if nudge.cooldown_until <= now:
            continue
        current = cooldowns.get(nudge.goal_id)
        if current is None or nudge.cooldown_until > current:
            cooldowns[nudge.goal_id] = nudge.cooldown_until
    return cooldowns

def build_nudge(nudge_input: SendNudgeInput, now: datetime) -> Nudge:
    now = ensure_aware(now)
    return Nudge(
        nudge_id=generate_id(),
        sender_id=nudge_input.sender_id,
        sender_name=nudge_input.sender_name.strip(),
        receiver_id=nudge_input.receiver_id,
        goal_id=nudge_input.goal_id,
        goal_description=nudge_input.goal_description.strip(),
        timestamp=now,
        cooldown_until=now + NUDGE_COOLDOWN,
        created_at=now,
    )
