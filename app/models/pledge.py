"""Pledge model definitions and status transitions."""
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.exceptions import InvalidPledgeTransition
from app.models.types import UTCDateTime


class PledgeStatus(str, Enum):
    """Pledge lifecycle states."""

    PENDING = "pending"
    ACTIVE = "active"
    REPLACED = "replaced"
    COMPLETED = "completed"
    AT_RISK = "at-risk"


# Replaced and completed pledges are terminal.
ALLOWED_TRANSITIONS: dict[PledgeStatus, frozenset[PledgeStatus]] = {
    PledgeStatus.PENDING: frozenset({PledgeStatus.ACTIVE, PledgeStatus.REPLACED}),
    PledgeStatus.ACTIVE: frozenset({
        PledgeStatus.REPLACED,
        PledgeStatus.COMPLETED,
        PledgeStatus.AT_RISK,
    }),
    PledgeStatus.AT_RISK: frozenset({
        PledgeStatus.ACTIVE,
        PledgeStatus.REPLACED,
        PledgeStatus.COMPLETED,
    }),
    PledgeStatus.REPLACED: frozenset(),
    PledgeStatus.COMPLETED: frozenset(),
}

DEFAULT_DURATION_DAYS = "7"


class PledgeCreate(BaseModel):
    """Pledge creation model, as issued by a provider."""

    patient_id: str
    amount: int = Field(gt=0)
    goal: str
    message: Optional[str] = None
    metric_type: Optional[str] = None
    target: Optional[str] = None
    duration: Optional[str] = None  # days, string-encoded integer
    provider_id: Optional[str] = None
    provider_name: Optional[str] = None
    provider_email: Optional[str] = None

    @field_validator("duration")
    @classmethod
    def duration_is_positive_integer(cls, value: Optional[str]) -> Optional[str]:
        """Reject durations that are not a whole number of days."""
        if value is None or value == "":
            return None
        if not value.strip().isdigit() or int(value) <= 0:
            raise ValueError("duration must be a positive number of days")
        return value.strip()


class Pledge(BaseModel):
    """Full pledge model with store fields."""

    id: str
    patient_id: str
    patient_name: str
    patient_email: str = ""
    goal: str
    amount: int
    message: str = ""
    metric_type: str = "Blood Pressure"
    target: str = ""
    duration: str = DEFAULT_DURATION_DAYS
    status: PledgeStatus = PledgeStatus.PENDING
    progress: int = 0
    total_days: int = int(DEFAULT_DURATION_DAYS)
    timestamp: UTCDateTime
    provider_id: Optional[str] = None
    provider_name: str = "Your Healthcare Provider"
    provider_email: Optional[str] = None
    accepted: bool = False
    accepted_at: Optional[UTCDateTime] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    replaced_at: Optional[UTCDateTime] = None
    completed_at: Optional[UTCDateTime] = None

    @property
    def is_active_accepted(self) -> bool:
        """True for the one pledge a patient may be working on."""
        return self.status == PledgeStatus.ACTIVE and self.accepted

    @property
    def is_visible_to_patient(self) -> bool:
        """Pending pledges are shown along with the accepted active one."""
        return self.status == PledgeStatus.PENDING or self.is_active_accepted

    def _move_to(self, target: PledgeStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidPledgeTransition(self.id, self.status.value, target.value)
        self.status = target

    def accept(self, now: datetime) -> None:
        """
        Accept the pledge and start its window.

        A pledge already marked active but never accepted (legacy data)
        is accepted in place.
        """
        if self.status != PledgeStatus.ACTIVE:
            self._move_to(PledgeStatus.ACTIVE)
        self.accepted = True
        self.accepted_at = now
        self.start_date = now
        self.end_date = now + timedelta(days=self.total_days)

    def replace(self, now: datetime) -> None:
        """Retire the pledge in favour of a newer one."""
        self._move_to(PledgeStatus.REPLACED)
        self.replaced_at = now

    def complete(self, now: datetime) -> None:
        """Mark the pledge target as met."""
        self._move_to(PledgeStatus.COMPLETED)
        self.progress = self.total_days
        self.completed_at = now

    def mark_at_risk(self) -> None:
        """Flag an active pledge whose target is slipping."""
        self._move_to(PledgeStatus.AT_RISK)
