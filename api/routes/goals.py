from typing import List

from fastapi import APIRouter, Depends, status

from api.dependencies import get_habit_service
from api.schemas import (
    CreateGoalRequest, CompleteGoalRequest, GoalResponse, StreakResponse, CompletionResponse
)
from core.deadlines import evaluate_goal, get_deadline_proximity, should_show_nudge
from core.models import Goal, HabitStreak
from core.scoring import get_difficulty_encouragement
from services.habit_service import HabitService
from utils.datetime_utils import ensure_aware

router = APIRouter(tags=["goals"])

def goal_response(goal: Goal, service: HabitService) -> GoalResponse:
    """Цель со статусом на текущий момент. Хранилище не изменяется"""
    now = service.clock()
    evaluation = evaluate_goal(goal, now, service.grace_window)
    proximity = get_deadline_proximity(evaluation.next_deadline, now)
    return GoalResponse(
        goal_id=goal.goal_id,
        owner_id=goal.owner_id,
        description=goal.description,
        frequency=goal.frequency.value,
        target_days=list(goal.target_days),
        difficulty=goal.difficulty.value,
        goal_type=goal.goal_type.value,
        target_time=goal.target_time,
        current_status=evaluation.current_status.value,
        next_deadline=evaluation.next_deadline,
        red_since=evaluation.red_since,
        latest_completion_date=goal.latest_completion_date,
        deadline_text=proximity.display_text,
        show_nudge=should_show_nudge(goal, now, service.grace_window)
    )

def streak_response(streak: HabitStreak) -> StreakResponse:
    return StreakResponse(
        current_streak=streak.current_streak,
        best_streak=streak.best_streak,
        freezes_available=streak.freezes_available,
        freezes_used=streak.freezes_used,
        milestones=streak.milestone_days
    )

@router.post("/goals", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(request: CreateGoalRequest, service: HabitService = Depends(get_habit_service)):
    """Создать цель"""
    goal = await service.create_goal(
        owner_id=request.owner_id,
        description=request.description,
        frequency=request.frequency,
        target_days=request.target_days,
        difficulty=request.difficulty,
        goal_type=request.goal_type,
        target_time=request.target_time,
        is_shared=request.is_shared,
        timezone=request.timezone
    )
    return goal_response(goal, service)

@router.get("/goals/{goal_id}", response_model=GoalResponse)
async def get_goal(goal_id: str, service: HabitService = Depends(get_habit_service)):
    goal = await service.get_goal(goal_id)
    return goal_response(goal, service)

@router.get("/users/{user_id}/goals", response_model=List[GoalResponse])
async def get_user_goals(user_id: str, service: HabitService = Depends(get_habit_service)):
    goals = await service.get_user_goals(user_id)
    return [goal_response(goal, service) for goal in goals]

@router.post("/goals/{goal_id}/complete", response_model=CompletionResponse)
async def complete_goal(goal_id: str, request: CompleteGoalRequest = None,
                        service: HabitService = Depends(get_habit_service)):
    """
    Отметить выполнение цели.
    Повтор в том же окне возвращает timing=duplicate и ничего не меняет.
    """
    completed_at = ensure_aware(request.completed_at) if request and request.completed_at else None
    result = await service.complete_goal(goal_id, completed_at)
    return CompletionResponse(
        timing=result.timing.value,
        goal=goal_response(result.goal, service),
        streak=streak_response(result.streak),
        new_milestones=[milestone.days for milestone in result.new_milestones],
        encouragement=get_difficulty_encouragement(result.goal.difficulty)
    )
