from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from core.models import Difficulty, Frequency, GoalType

# Запросы
class CreateGoalRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, max_length=200)
    frequency: Frequency = Frequency.DAILY
    target_days: List[str] = []
    difficulty: Difficulty = Difficulty.MEDIUM
    goal_type: GoalType = GoalType.FLEXIBLE
    target_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    is_shared: bool = True
    timezone: Optional[str] = None

class CompleteGoalRequest(BaseModel):
    completed_at: Optional[datetime] = None

class SendNudgeRequest(BaseModel):
    # пустые значения проверяет сервис, чтобы вернуть ValidationError
    sender_id: str = ""
    sender_name: str = ""
    receiver_id: str = ""
    goal_id: str = ""
    goal_description: str = ""

# Ответы
class GoalResponse(BaseModel):
    goal_id: str
    owner_id: str
    description: str
    frequency: str
    target_days: List[str]
    difficulty: str
    goal_type: str
    target_time: Optional[str] = None
    current_status: str
    next_deadline: Optional[datetime] = None
    red_since: Optional[datetime] = None
    latest_completion_date: Optional[datetime] = None
    deadline_text: Optional[str] = None
    show_nudge: bool = False

class StreakResponse(BaseModel):
    current_streak: int
    best_streak: int
    freezes_available: int
    freezes_used: int
    milestones: List[int]

class CompletionResponse(BaseModel):
    timing: str
    goal: GoalResponse
    streak: StreakResponse
    new_milestones: List[int]
    encouragement: Dict[str, str]

class NudgeResponse(BaseModel):
    nudge_id: str
    sender_id: str
    sender_name: str
    receiver_id: str
    goal_id: str
    goal_description: str
    timestamp: datetime
    cooldown_until: datetime

class SendNudgeResponse(BaseModel):
    nudge_id: str
