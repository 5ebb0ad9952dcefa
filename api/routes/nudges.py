from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_nudge_service
from api.schemas import SendNudgeRequest, SendNudgeResponse, NudgeResponse
from core.nudges import SendNudgeInput
from services.nudge_service import NudgeService

router = APIRouter(tags=["nudges"])

@router.post("/nudges", response_model=SendNudgeResponse, status_code=status.HTTP_201_CREATED)
async def send_nudge(request: SendNudgeRequest, service: NudgeService = Depends(get_nudge_service)):
    """Отправить напоминание другу о его цели"""
    nudge_id = await service.send_nudge(SendNudgeInput(
        sender_id=request.sender_id,
        sender_name=request.sender_name,
        receiver_id=request.receiver_id,
        goal_id=request.goal_id,
        goal_description=request.goal_description
    ))
    return SendNudgeResponse(nudge_id=nudge_id)

@router.get("/users/{user_id}/nudge-cooldowns", response_model=Dict[str, Any])
async def get_nudge_cooldowns(user_id: str, service: NudgeService = Depends(get_nudge_service)):
    cooldowns = await service.get_nudge_cooldowns(user_id)
    return {
        "user_id": user_id,
        "cooldowns": {goal_id: until.isoformat() for goal_id, until in cooldowns.items()}
    }

@router.get("/users/{user_id}/nudges", response_model=List[NudgeResponse])
async def get_nudge_history(
    user_id: str,
    direction: str = Query("sent", pattern="^(sent|received)$"),
    days: int = Query(7, ge=1, le=90),
    service: NudgeService = Depends(get_nudge_service)
):
    nudges = await service.get_nudge_history(user_id, direction, days)
    return [NudgeResponse(**nudge.to_dict()) for nudge in nudges]
