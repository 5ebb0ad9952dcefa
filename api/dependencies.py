"""
Зависимости FastAPI: сервисы берутся из состояния приложения,
куда их кладет create_app
"""

from fastapi import Request

from services.habit_service import HabitService
from services.nudge_service import NudgeService

def get_habit_service(request: Request) -> HabitService:
    return request.app.state.habit_service

def get_nudge_service(request: Request) -> NudgeService:
    return request.app.state.nudge_service
