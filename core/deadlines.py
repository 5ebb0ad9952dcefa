#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck v1.0 - Deadline & Status Classifier
Расчет следующего дедлайна цели и светофора соблюдения

Зеленый - до дедлайна далеко, желтый - дедлайн в пределах окна
предупреждения, красный - дедлайн прошел без засчитанного выполнения.

Версия: 1.0.0
Дата: 2026-10-19
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from core.models import Goal, GoalStatus, GoalType, Frequency, CompletionTiming, ValidationError
from utils.datetime_utils import (
    WEEKDAY_NAMES, END_OF_DAY, ensure_aware, local_datetime, start_of_day,
    to_local, parse_time, weekday_index
)

logger = logging.getLogger(__name__)

DEFAULT_GRACE_WINDOW = timedelta(hours=6)

@dataclass
class GoalEvaluation:
    """Результат оценки цели в момент now"""
    next_deadline: datetime
    current_status: GoalStatus
    red_since: Optional[datetime]

@dataclass
class DeadlineProximity:
    """Близость дедлайна для отображения"""
    hours_until_deadline: float
    is_overdue: bool
    display_text: str

def _allowed_weekdays(goal: Goal) -> List[int]:
    if goal.frequency == Frequency.DAILY:
        return list(range(len(WEEKDAY_NAMES)))
    if not goal.target_days:
        raise ValidationError("target_days не может быть пустым для не ежедневной цели")
    return sorted(weekday_index(day) for day in goal.target_days)

def _deadline_time(goal: Goal):
    if goal.goal_type == GoalType.TIME_BOUND:
        return parse_time(goal.target_time)
    return END_OF_DAY

def calculate_next_deadline(goal: Goal, reference: Optional[datetime] = None) -> datetime:
    """
    Следующий дедлайн цели.

    reference - момент, после которого ищем дедлайн. По умолчанию последнее
    выполнение, а если его не было - создание цели. После выполнения поиск
    начинается со следующего дня, иначе с дня reference.
    """
    allowed = _allowed_weekdays(goal)
    deadline_time = _deadline_time(goal)

    if reference is None:
        if goal.latest_completion_date is not None:
            reference, first_offset = goal.latest_completion_date, 1
        else:
            reference, first_offset = goal.created_at, 0
    else:
        first_offset = 1

    reference = ensure_aware(reference)
    local_day = to_local(reference, goal.timezone).date()

    for offset in range(first_offset, first_offset + 8):
        day = local_day + timedelta(days=offset)
        if day.weekday() not in allowed:
            continue
        deadline = local_datetime(day, deadline_time, goal.timezone)
        if deadline > reference:
            return deadline

    # недостижимо для валидного расписания
    raise ValidationError(f"Не удалось вычислить дедлайн для цели {goal.goal_id}")

def get_window_start(goal: Goal) -> datetime:
    """Начало окна, в котором выполнение засчитывается заново"""
    if goal.latest_completion_date is None:
        return goal.created_at
    completed_day = to_local(goal.latest_completion_date, goal.timezone).date()
    return start_of_day(completed_day + timedelta(days=1), goal.timezone)

def get_current_deadline(goal: Goal) -> datetime:
    return goal.next_deadline or calculate_next_deadline(goal)

def classify_completion(goal: Goal, completed_at: datetime) -> CompletionTiming:
    """В срок (строго до дедлайна), с опозданием (принято без продления стрика) или повтор"""
    completed_at = ensure_aware(completed_at)
    if completed_at < get_window_start(goal):
        return CompletionTiming.DUPLICATE
    if completed_at < get_current_deadline(goal):
        return CompletionTiming.ON_TIME
    return CompletionTiming.LATE

def apply_completion(goal: Goal, completed_at: datetime) -> Goal:
    """Цель после выполнения: новый дедлайн, зеленый статус"""
    completed_at = ensure_aware(completed_at)
    timing = classify_completion(goal, completed_at)
    if timing == CompletionTiming.DUPLICATE:
        logger.debug(f"Повторное выполнение цели {goal.goal_id} в том же окне проигнорировано")
        return goal

    updated = replace(goal, latest_completion_date=completed_at)
    return replace(
        updated,
        next_deadline=calculate_next_deadline(updated),
        current_status=GoalStatus.GREEN,
        red_since=None,
        shame_count=0
    )

def evaluate_goal(goal: Goal, now: datetime,
                  grace_window: timedelta = DEFAULT_GRACE_WINDOW) -> GoalEvaluation:
    """Статус цели в момент now"""
    now = ensure_aware(now)
    deadline = get_current_deadline(goal)

    if now >= deadline:
        red_since = goal.red_since if goal.current_status == GoalStatus.RED and goal.red_since else deadline
        return GoalEvaluation(deadline, GoalStatus.RED, red_since)

    if deadline - now <= grace_window:
        return GoalEvaluation(deadline, GoalStatus.YELLOW, None)

    return GoalEvaluation(deadline, GoalStatus.GREEN, None)

def refresh_goal(goal: Goal, now: datetime,
                 grace_window: timedelta = DEFAULT_GRACE_WINDOW) -> Goal:
    evaluation = evaluate_goal(goal, now, grace_window)
    if evaluation.current_status != GoalStatus.RED and goal.current_status == GoalStatus.RED:
        shame_count = 0
    else:
        shame_count = goal.shame_count
    return replace(
        goal,
        next_deadline=evaluation.next_deadline,
        current_status=evaluation.current_status,
        red_since=evaluation.red_since,
        shame_count=shame_count
    )

def missed_deadlines(goal: Goal, now: datetime) -> List[datetime]:
    """Все дедлайны начиная с текущего, которые уже прошли к now"""
    now = ensure_aware(now)
    missed = []
    deadline = get_current_deadline(goal)
    while deadline <= now:
        missed.append(deadline)
        deadline = calculate_next_deadline(goal, reference=deadline)
    return missed

def get_deadline_proximity(deadline: datetime, now: datetime) -> DeadlineProximity:
    hours_until = (ensure_aware(deadline) - ensure_aware(now)).total_seconds() / 3600
    is_overdue = hours_until < 0

    if is_overdue:
        hours_overdue = abs(hours_until)
        days_overdue = int(hours_overdue // 24)
        if days_overdue > 0:
            text = f"Overdue by {days_overdue}d"
        else:
            text = f"Overdue by {int(hours_overdue)}h"
    elif hours_until < 1:
        text = f"Due in {int(hours_until * 60)}m"
    elif hours_until < 24:
        text = f"Due in {int(hours_until)}h"
    else:
        text = f"Due in {int(hours_until // 24)}d"

    return DeadlineProximity(hours_until, is_overdue, text)

def should_show_nudge(goal: Goal, now: datetime,
                      grace_window: timedelta = DEFAULT_GRACE_WINDOW) -> bool:
    """Кнопку напоминания показываем только для желтых и красных целей"""
    status = evaluate_goal(goal, now, grace_window).current_status
    return status in (GoalStatus.YELLOW, GoalStatus.RED)
