"""Goal router - RPC endpoints for patient health goals."""
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from typing import Optional

from app.database import get_database
from app.models.goal import Goal, GoalCompleteResult, GoalCreate, GoalStatus, GoalUpdate, PendingReward
from app.services.goal_service import GoalService


router = APIRouter(prefix="/rpc/goals", tags=["goals"])


class ListGoalsRequest(BaseModel):
    status: Optional[GoalStatus] = None


class GoalHistoryRequest(BaseModel):
    limit: int = Field(50, ge=0)
    offset: int = Field(0, ge=0)


class UpdateGoalRequest(BaseModel):
    id: str
    updates: GoalUpdate


class GoalIdRequest(BaseModel):
    id: str


@router.post("/list", response_model=list[Goal])
async def list_goals(
    request: Optional[ListGoalsRequest] = None,
    db=Depends(get_database),
):
    """
    List goals, newest first.

    - Optional exact status filter
    """
    service = GoalService(db)
    return await service.list_goals(status=request.status if request else None)


@router.post("/getHistory", response_model=list[Goal])
async def get_history(
    request: Optional[GoalHistoryRequest] = None,
    db=Depends(get_database),
):
    """
    List completed and expired goals, most recently finished first.

    - Paginated with limit (default 50) and offset (default 0)
    """
    request = request or GoalHistoryRequest()
    service = GoalService(db)
    return await service.get_history(limit=request.limit, offset=request.offset)


@router.post("/getPendingRewards", response_model=list[PendingReward])
async def get_pending_rewards(db=Depends(get_database)):
    """Locked rewards for every active goal."""
    service = GoalService(db)
    return await service.get_pending_rewards()


@router.post("/create", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal: GoalCreate,
    db=Depends(get_database),
):
    """
    Create a new goal.

    - Start date defaults to now
    - Returns 422 for unknown category/status or out-of-range progress/reward
    """
    service = GoalService(db)
    return await service.create_goal(goal_create=goal)


@router.post("/update", response_model=Optional[Goal])
async def update_goal(
    request: UpdateGoalRequest,
    db=Depends(get_database),
):
    """
    Merge the supplied fields into a goal.

    - Returns null if the goal does not exist
    """
    service = GoalService(db)
    return await service.update_goal(goal_id=request.id, goal_update=request.updates)


@router.post("/complete", response_model=GoalCompleteResult, response_model_exclude_none=True)
async def complete_goal(
    request: GoalIdRequest,
    db=Depends(get_database),
):
    """
    Mark a goal as completed.

    - Returns {"success": false, "error": "Goal not found"} for unknown ids
    """
    service = GoalService(db)
    return await service.complete_goal(goal_id=request.id)
