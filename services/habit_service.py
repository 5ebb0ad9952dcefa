# services/habit_service.py

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from core.models import (
    Goal, HabitStreak, HabitCompletion, Milestone, CompletionTiming, generate_id
)
from core.deadlines import (
    DEFAULT_GRACE_WINDOW, apply_completion, calculate_next_deadline, classify_completion,
    evaluate_goal, refresh_goal, GoalEvaluation
)
from core.streaks import record_completion, evaluate_miss, new_milestones
from core.scoring import (
    HabitScore, calculate_multiple_habit_scores, normalize_habit_scores,
    calculate_overall_user_score, get_recognition_level
)
from services.store import DocumentStore
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

GOALS = "goals"
STREAKS = "streaks"
COMPLETIONS = "completions"

class GoalNotFoundError(LookupError):
    """Цель не найдена в хранилище"""
    pass

@dataclass
class CompletionResult:
    goal: Goal
    streak: HabitStreak
    timing: CompletionTiming
    new_milestones: List[Milestone] = field(default_factory=list)

def streak_id(user_id: str, habit_id: str) -> str:
    return f"{user_id}_{habit_id}"

class HabitService:
    """
    Сервис целей и стриков

    Связывает классификатор дедлайнов, трекер стриков и подсчет очков
    с хранилищем документов.
    """

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now,
                 grace_window: timedelta = DEFAULT_GRACE_WINDOW, default_timezone: str = "UTC"):
        self.store = store
        self.clock = clock
        self.grace_window = grace_window
        self.default_timezone = default_timezone
        logger.info("✅ HabitService инициализирован")

    # ===== ЦЕЛИ =====

    async def create_goal(self, owner_id: str, description: str, **kwargs) -> Goal:
        """Создать цель и вычислить первый дедлайн"""
        goal = Goal(
            goal_id=kwargs.pop("goal_id", None) or generate_id(),
            owner_id=owner_id,
            description=description,
            created_at=kwargs.pop("created_at", None) or self.clock(),
            timezone=kwargs.pop("timezone", None) or self.default_timezone,
            **kwargs
        )
        goal.next_deadline = calculate_next_deadline(goal)
        goal = refresh_goal(goal, self.clock(), self.grace_window)
        self._save_goal(goal)
        logger.info(f"➕ Цель {goal.goal_id} создана для {owner_id}, дедлайн {goal.next_deadline.isoformat()}")
        return goal

    async def get_goal(self, goal_id: str) -> Goal:
        data = self.store.get(GOALS, goal_id)
        if data is None:
            raise GoalNotFoundError(f"Цель {goal_id} не найдена")
        return Goal.from_dict(data)

    async def get_user_goals(self, user_id: str) -> List[Goal]:
        return [Goal.from_dict(doc) for doc in self.store.query(GOALS, owner_id=user_id)]

    async def delete_goal(self, goal_id: str) -> bool:
        # стрик и выполнения остаются: подсчет очков пропустит стрик без цели
        return self.store.delete(GOALS, goal_id)

    def _save_goal(self, goal: Goal):
        self.store.put(GOALS, goal.goal_id, goal.to_dict())

    # ===== СТРИКИ =====

    async def get_streak(self, user_id: str, habit_id: str) -> Optional[HabitStreak]:
        data = self.store.get(STREAKS, streak_id(user_id, habit_id))
        return HabitStreak.from_dict(data) if data else None

    def _save_streak(self, streak: HabitStreak):
        self.store.put(STREAKS, streak_id(streak.user_id, streak.habit_id), streak.to_dict())

    # ===== ВЫПОЛНЕНИЕ =====

    async def complete_goal(self, goal_id: str, completed_at: Optional[datetime] = None) -> CompletionResult:
        """Отметить выполнение цели: обновить дедлайн, статус и стрик"""
        completed_at = completed_at or self.clock()

        async with self.store.transaction(("goal", goal_id)):
            goal = await self.get_goal(goal_id)
            streak = await self.get_streak(goal.owner_id, goal.goal_id)

            # пропуски до этого выполнения учитываются раньше самого выполнения
            if streak is not None:
                streak = evaluate_miss(streak, goal, completed_at)

            timing = classify_completion(goal, completed_at)
            updated_streak = record_completion(streak, goal, completed_at)
            updated_goal = apply_completion(goal, completed_at)

            if timing != CompletionTiming.DUPLICATE:
                completion = HabitCompletion(
                    completion_id=generate_id(),
                    habit_id=goal.goal_id,
                    user_id=goal.owner_id,
                    completed_at=completed_at,
                    timing=timing
                )
                self.store.put(COMPLETIONS, completion.completion_id, completion.to_dict())
                self._save_goal(updated_goal)

            self._save_streak(updated_streak)

        milestones = new_milestones(streak, updated_streak)
        logger.info(f"✅ Цель {goal_id} выполнена ({timing.value}), стрик: {updated_streak.current_streak}")
        return CompletionResult(updated_goal, updated_streak, timing, milestones)

    # ===== ОЦЕНКА =====

    async def evaluate_goal_status(self, goal_id: str) -> GoalEvaluation:
        goal = await self.get_goal(goal_id)
        return evaluate_goal(goal, self.clock(), self.grace_window)

    async def refresh_goal_status(self, goal_id: str) -> Goal:
        """Пересчитать и сохранить статус цели"""
        async with self.store.transaction(("goal", goal_id)):
            goal = await self.get_goal(goal_id)
            refreshed = refresh_goal(goal, self.clock(), self.grace_window)
            if refreshed.current_status != goal.current_status:
                logger.info(f"🚦 Цель {goal_id}: {goal.current_status.value} -> {refreshed.current_status.value}")
            self._save_goal(refreshed)
        return refreshed

    async def evaluate_missed_deadlines(self, goal_id: str) -> Optional[HabitStreak]:
        """Применить пропущенные дедлайны к стрику. None, если стрика еще нет"""
        async with self.store.transaction(("goal", goal_id)):
            goal = await self.get_goal(goal_id)
            streak = await self.get_streak(goal.owner_id, goal.goal_id)
            if streak is None:
                return None
            updated = evaluate_miss(streak, goal, self.clock())
            if updated != streak:
                self._save_streak(updated)
        return updated

    async def save_goal(self, goal: Goal):
        self._save_goal(goal)

    # ===== ОЧКИ =====

    def _completion_counts(self, user_id: str) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for doc in self.store.query(COMPLETIONS, user_id=user_id):
            counts[doc['habit_id']] = counts.get(doc['habit_id'], 0) + 1
        return counts

    async def get_habit_scores(self, user_id: str) -> List[HabitScore]:
        streaks = [HabitStreak.from_dict(doc) for doc in self.store.query(STREAKS, user_id=user_id)]
        goals = await self.get_user_goals(user_id)
        return calculate_multiple_habit_scores(streaks, goals, self._completion_counts(user_id))

    async def get_user_score_summary(self, user_id: str) -> Dict[str, Any]:
        """Очки, нормализация, уровни признания и общий уровень пользователя"""
        scores = await self.get_habit_scores(user_id)
        normalized = {item.habit_id: item for item in normalize_habit_scores(scores)}

        habits = []
        for score in scores:
            habits.append({
                'score': score.to_dict(),
                'normalized': normalized[score.habit_id].to_dict(),
                'recognition': get_recognition_level(score, normalized[score.habit_id]).to_dict()
            })
        habits.sort(key=lambda item: item['normalized']['rank'])

        return {
            'user_id': user_id,
            'habits': habits,
            'overall': calculate_overall_user_score(scores).to_dict()
        }
