"""Goal service - business logic for health goal tracking."""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.models.goal import (
    Goal,
    GoalCompleteResult,
    GoalCreate,
    GoalStatus,
    GoalUpdate,
    PendingReward,
)
from app.utils.ids import generate_id, utcnow

logger = logging.getLogger(__name__)

HISTORY_STATUSES = (GoalStatus.COMPLETED, GoalStatus.EXPIRED)
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _recency(*candidates: Optional[datetime]) -> datetime:
    """First non-empty timestamp, or the epoch so undated goals sort last."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return _EPOCH


class GoalService:
    """Service for handling goal operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.goals = db["goals"]

    async def create_goal(self, goal_create: GoalCreate) -> Goal:
        """
        Create a new goal.

        Args:
            goal_create: Goal creation data

        Returns:
            Created goal object
        """
        now = utcnow()
        goal = Goal(
            **goal_create.model_dump(),
            id=generate_id("goal", now),
            created_at=now,
        )
        if goal.start_date is None:
            goal.start_date = now

        await self.goals.add(goal)
        logger.info(
            "Created goal %s (%s, %s, reward=%d, assigned by %s)",
            goal.id,
            goal.category.value,
            goal.status.value,
            goal.reward,
            goal.assigned_by_role.value,
        )
        return goal

    async def list_goals(self, status: Optional[GoalStatus] = None) -> list[Goal]:
        """
        List goals, newest first.

        Args:
            status: Optional exact status filter

        Returns:
            Goals sorted by creation (or start) date descending
        """
        goals = await self.goals.list_all()
        if status is not None:
            goals = [goal for goal in goals if goal.status == status]

        return sorted(
            goals,
            key=lambda goal: _recency(goal.created_at, goal.start_date),
            reverse=True,
        )

    async def get_history(self, limit: int = 50, offset: int = 0) -> list[Goal]:
        """
        List finished (completed or expired) goals, most recently finished first.

        Args:
            limit: Page size
            offset: Number of goals to skip

        Returns:
            One page of finished goals
        """
        goals = [
            goal for goal in await self.goals.list_all()
            if goal.status in HISTORY_STATUSES
        ]
        ordered = sorted(
            goals,
            key=lambda goal: _recency(goal.completed_date, goal.end_date, goal.created_at),
            reverse=True,
        )
        return ordered[offset:offset + limit]

    async def get_pending_rewards(self) -> list[PendingReward]:
        """
        Project a locked reward for every active goal.

        Recomputed on every call; the reward status is always "locked".
        """
        now = utcnow()
        rewards = []
        for goal in await self.goals.list_all():
            if goal.status != GoalStatus.ACTIVE:
                continue

            days_remaining = None
            if goal.end_date is not None:
                days_remaining = math.ceil((goal.end_date - now) / timedelta(days=1))

            rewards.append(PendingReward(
                id=f"pending-reward-{goal.id}",
                goal_id=goal.id,
                goal_title=goal.title,
                reward=goal.reward,
                unlock_condition=f"Complete {goal.title} to unlock {goal.reward} RDM",
                expires_at=goal.end_date,
                days_remaining=days_remaining,
            ))
        return rewards

    async def update_goal(self, goal_id: str, goal_update: GoalUpdate) -> Optional[Goal]:
        """
        Shallow-merge the fields set on `goal_update` into a goal.

        Args:
            goal_id: Goal ID
            goal_update: Update data; unset fields are left alone

        Returns:
            Updated goal, or None if the goal does not exist

        Raises:
            pydantic.ValidationError: If the merged goal is not a valid Goal;
                nothing is stored in that case
        """
        existing = await self.goals.get(goal_id)
        if existing is None:
            logger.warning("Update requested for unknown goal %s", goal_id)
            return None

        changes = goal_update.model_dump(exclude_unset=True)
        updated = Goal.model_validate({**existing.model_dump(), **changes})
        return await self.goals.save(updated)

    async def complete_goal(self, goal_id: str) -> GoalCompleteResult:
        """
        Mark a goal as completed.

        Sets progress to 100 and stamps the completion date regardless of
        prior progress.

        Args:
            goal_id: Goal ID

        Returns:
            Success flag, with an error message when the goal does not exist
        """
        goal = await self.goals.get(goal_id)
        if goal is None:
            return GoalCompleteResult(success=False, error="Goal not found")

        goal.status = GoalStatus.COMPLETED
        goal.progress = 100
        goal.completed_date = utcnow()
        await self.goals.save(goal)

        logger.info("Completed goal %s (reward=%d)", goal.id, goal.reward)
        return GoalCompleteResult(success=True)
