from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import get_habit_service
from services.habit_service import HabitService

router = APIRouter(tags=["scores"])

@router.get("/users/{user_id}/scores", response_model=Dict[str, Any])
async def get_user_scores(user_id: str, service: HabitService = Depends(get_habit_service)):
    """Очки привычек, уровни признания и общий уровень пользователя"""
    return await service.get_user_score_summary(user_id)
