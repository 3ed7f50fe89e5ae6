"""Alert, tip, schedule and token ledger model definitions."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.models.types import UTCDateTime


class AlertSeverity(str, Enum):
    """Alert severities; only HIGH counts as critical."""

    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


class Alert(BaseModel):
    """Clinical alert raised for a patient."""

    id: str
    patient_id: str
    patient_name: str = ""
    type: str  # e.g. bp_spike, missed_meds
    severity: AlertSeverity
    message: str = ""
    details: str = ""
    timestamp: UTCDateTime


class TipType(str, Enum):
    """Kinds of patient-to-provider appreciation."""

    TIP = "tip"
    RATING = "rating"


class TipCreate(BaseModel):
    """Tip creation model, as sent by a patient."""

    patient_id: str
    amount: int = Field(ge=0)
    message: Optional[str] = None
    type: TipType = TipType.TIP
    rating: Optional[float] = Field(None, ge=0, le=5)


class Tip(BaseModel):
    """Tip or rating a patient sent to their care team."""

    id: str
    patient_id: str
    patient_name: str = ""
    amount: int = 0
    message: Optional[str] = None
    type: TipType = TipType.TIP
    rating: Optional[float] = None
    timestamp: UTCDateTime
    avatar: str = ""
    liked: bool = False


class ScheduleItem(BaseModel):
    """Provider calendar entry."""

    id: str
    time: str  # HH:MM
    title: str
    patient_name: str = ""
    patient_id: Optional[str] = None
    type: str  # urgent, follow-up, internal, discharge
    status: str  # done, now, upcoming
    date: str  # YYYY-MM-DD


class TokenMint(BaseModel):
    """RDM issued as a reward."""

    id: str
    amount: int
    reason: str  # adherence_reward, efficiency_bonus
    patient_id: Optional[str] = None
    staff_id: Optional[str] = None
    timestamp: UTCDateTime


class TokenBurn(BaseModel):
    """RDM removed as a penalty."""

    id: str
    amount: int
    reason: str  # missed_sla, protocol_violation
    staff_id: Optional[str] = None
    timestamp: UTCDateTime


class Donation(BaseModel):
    """RDM converted into the CSR fund."""

    id: str
    amount: int
    source: str  # staff_donation, pledge_completion
    staff_id: Optional[str] = None
    patient_id: Optional[str] = None
    converted_usd: float = 0
    timestamp: UTCDateTime
