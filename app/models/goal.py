"""Goal model definitions."""
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.types import UTCDateTime


class GoalCategory(str, Enum):
    """Health areas a goal can track."""

    WEIGHT = "weight"
    ACTIVITY = "activity"
    HYDRATION = "hydration"
    SLEEP = "sleep"
    BP = "bp"
    OTHER = "other"


class GoalStatus(str, Enum):
    """Goal lifecycle states."""

    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
    PENDING = "pending"


class AssignedByRole(str, Enum):
    """Who authored the goal."""

    SELF = "self"
    DOCTOR = "doctor"


class GoalBase(BaseModel):
    """Base goal fields."""

    title: str
    description: str = ""
    category: GoalCategory = GoalCategory.OTHER
    target: str = ""  # free-form, e.g. "120/80" or "10000 steps"
    current: str = ""
    reward: int = Field(0, ge=0)
    status: GoalStatus = GoalStatus.ACTIVE
    assigned_by: Optional[str] = None
    assigned_by_role: AssignedByRole = AssignedByRole.SELF
    user_id: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    completed_date: Optional[UTCDateTime] = None
    progress: int = Field(0, ge=0, le=100)


class GoalCreate(GoalBase):
    """Goal creation model."""

    pass


class GoalUpdate(BaseModel):
    """Goal update model - all fields optional, applied as a shallow merge."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[GoalCategory] = None
    target: Optional[str] = None
    current: Optional[str] = None
    reward: Optional[int] = Field(None, ge=0)
    status: Optional[GoalStatus] = None
    assigned_by: Optional[str] = None
    assigned_by_role: Optional[AssignedByRole] = None
    user_id: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    completed_date: Optional[UTCDateTime] = None
    progress: Optional[int] = Field(None, ge=0, le=100)

    @field_validator(
        "title", "description", "category", "target", "current",
        "reward", "status", "assigned_by_role", "progress",
    )
    @classmethod
    def not_null(cls, value):
        """Fields a goal always carries may be omitted but not set to null."""
        if value is None:
            raise ValueError("cannot be null")
        return value


class Goal(GoalBase):
    """Full goal model with store fields."""

    id: str
    created_at: UTCDateTime


class PendingReward(BaseModel):
    """Locked reward projected from an active goal."""

    id: str
    goal_id: str
    goal_title: str
    reward: int
    # Never transitions; "ready_to_claim" is not produced by the goal logic.
    status: Literal["locked"] = "locked"
    unlock_condition: str
    expires_at: Optional[UTCDateTime] = None
    days_remaining: Optional[int] = None


class GoalCompleteResult(BaseModel):
    """Outcome of completing a goal."""

    success: bool
    error: Optional[str] = None
