#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck v1.0 - Streak Tracker
Учет серий выполнения: продление, заморозки, сброс и вехи

Версия: 1.0.0
Дата: 2026-10-19
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional
import logging

from core.models import Goal, HabitStreak, Milestone, CompletionTiming
from core.deadlines import classify_completion, missed_deadlines
from utils.datetime_utils import ensure_aware, to_local

logger = logging.getLogger(__name__)

# Вехи стрика в днях
MILESTONE_DAYS = (7, 30, 60, 100, 365)

# Заморозки, выдаваемые за веху. Других автоматических выдач нет
FREEZE_REWARDS: Dict[int, int] = {
    30: 1,
}

def create_streak(habit_id: str, user_id: str) -> HabitStreak:
    return HabitStreak(habit_id=habit_id, user_id=user_id)

def _copy(streak: HabitStreak, **changes) -> HabitStreak:
    changes.setdefault("milestones", list(streak.milestones))
    return replace(streak, **changes)

def record_completion(streak: Optional[HabitStreak], goal: Goal,
                      completion_time: datetime) -> HabitStreak:
    """
    Обновить стрик по факту выполнения.

    Выполнение в срок продлевает серию, опоздание только фиксирует дату,
    повтор в том же окне ничего не меняет. Стрик создается при первом
    выполнении привычки.
    """
    completion_time = ensure_aware(completion_time)
    if streak is None:
        streak = create_streak(goal.goal_id, goal.owner_id)

    timing = classify_completion(goal, completion_time)

    if timing == CompletionTiming.DUPLICATE:
        return streak

    if timing == CompletionTiming.LATE:
        logger.debug(f"Выполнение {goal.goal_id} с опозданием: стрик {streak.current_streak} не продлен")
        return _copy(streak, last_completion_date=completion_time)

    current = streak.current_streak + 1
    updated = _copy(
        streak,
        current_streak=current,
        best_streak=max(streak.best_streak, current),
        last_completion_date=completion_time,
    )
    if streak.current_streak == 0:
        updated.streak_start_date = to_local(completion_time, goal.timezone).date()

    if current in MILESTONE_DAYS:
        last_days = updated.milestones[-1].days if updated.milestones else 0
        if current > last_days:
            updated.milestones.append(Milestone(days=current, achieved_at=completion_time))
            reward = FREEZE_REWARDS.get(current, 0)
            updated.freezes_available += reward
            logger.info(f"🏆 Веха {current} дней для привычки {goal.goal_id}"
                        + (f" (+{reward} заморозка)" if reward else ""))

    return updated

def evaluate_miss(streak: HabitStreak, goal: Goal, now: datetime) -> HabitStreak:
    """
    Учесть пропущенные дедлайны.

    Каждый пропуск покрывается заморозкой, если она есть, иначе стрик
    сбрасывается. Уже учтенные дедлайны повторно не обрабатываются.
    """
    updated = _copy(streak)
    for deadline in missed_deadlines(goal, now):
        if updated.last_evaluated_deadline and deadline <= updated.last_evaluated_deadline:
            continue

        if updated.freezes_available > 0:
            updated.freezes_available -= 1
            updated.freezes_used += 1
            logger.info(f"🧊 Пропуск {goal.goal_id} ({deadline.isoformat()}) покрыт заморозкой")
        elif updated.current_streak > 0:
            logger.info(f"💔 Стрик {goal.goal_id} сброшен после {updated.current_streak} дней")
            updated.current_streak = 0
            updated.streak_start_date = None

        updated.last_evaluated_deadline = deadline

    return updated

def new_milestones(before: Optional[HabitStreak], after: HabitStreak) -> List[Milestone]:
    known = set(before.milestone_days) if before else set()
    return [milestone for milestone in after.milestones if milestone.days not in known]

def next_milestone(streak: HabitStreak) -> Optional[int]:
    for days in MILESTONE_DAYS:
        if days > streak.current_streak:
            return days
    return None
