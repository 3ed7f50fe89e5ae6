"""Response models for provider and admin dashboard aggregates."""
from typing import Literal, Optional

from pydantic import BaseModel

from app.models.activity import Alert, ScheduleItem, Tip
from app.models.pledge import Pledge
from app.models.types import UTCDateTime
from app.models.user import Patient


class CriticalPatient(BaseModel):
    """Alert paired with the patient it was raised for."""

    alert: Alert
    patient: Optional[Patient] = None


class ProviderDashboard(BaseModel):
    """Provider landing page summary."""

    total_patients: int
    critical_count: int
    rating: float
    rdm_balance: int
    critical_patients: list[CriticalPatient]
    schedule: list[ScheduleItem]
    recent_wishes: list[Tip]


class ProviderRanking(BaseModel):
    """Peer ranking row shown on the earnings page."""

    rank: int
    name: str
    score: int
    avatar: str = ""


class ProviderEarnings(BaseModel):
    """Provider earnings page summary."""

    total_available: int
    clinical_income: int
    performance_bonus: int
    patient_tips: int
    recent_tips: list[Tip]
    active_pledges: list[Pledge]
    rankings: list[ProviderRanking]


class LeaderboardEntry(BaseModel):
    """Staff member ranked by Role Performance Index."""

    id: str
    name: str
    email: str
    role: str
    rpi: int
    token_earnings: int
    key_strength: str
    patient_count: int
    avatar: str = ""
    rank: int


class TopPerformer(BaseModel):
    name: str
    rpi: int
    token_earnings: int


class MostImproved(BaseModel):
    name: str
    improvement: Optional[str] = None
    token_earnings: int


class Leaderboard(BaseModel):
    """Staff leaderboard for an admin's organization."""

    staff: list[LeaderboardEntry]
    top_performer: Optional[TopPerformer] = None
    most_improved: Optional[MostImproved] = None
    dept_velocity: int


class CareRadar(BaseModel):
    accuracy: int
    empathy: int
    timeliness: int
    hygiene: int
    compliance: int


class RoleContribution(BaseModel):
    """Share of token earnings per role group, in percent."""

    doctors: float
    nurses: float
    techs: float


class JourneyBottleneck(BaseModel):
    detected: bool
    message: Optional[str] = None


class RemorseLearning(BaseModel):
    trigger: str
    frequency: Literal["High", "Medium", "Low"]
    description: str
    system_action: str


class ESGImpact(BaseModel):
    free_surgeries: int
    medical_waste_reduction: int


class CommandCenter(BaseModel):
    """Hospital command center scores."""

    patient_experience: float
    clinical_discipline: int
    safety_hygiene: int
    staff_engagement: int
    esg_charity: int  # thousands of USD
    care_radar: CareRadar
    loop_status: Literal["healthy", "moderate", "needs_attention"]
    role_contribution: RoleContribution
    journey_bottleneck: JourneyBottleneck
    remorse_learning: Optional[RemorseLearning] = None
    esg_impact: ESGImpact


class ConversionRate(BaseModel):
    rdm: int
    usd: int


class MintingBreakdown(BaseModel):
    adherence_rewards: int
    efficiency_bonuses: int
    tips: int
    total: int


class BurningBreakdown(BaseModel):
    donations: int
    penalties: int
    total: int


class TangibleImpact(BaseModel):
    patients_subsidized: int
    free_lab_tests: int
    energy_saved: int


class TokenEconomy(BaseModel):
    """Token supply, sinks and CSR fund for an admin's organization."""

    circulating_liability: int
    remorse_pool: int
    csr_fund_value: int
    conversion_rate: ConversionRate
    minting: MintingBreakdown
    burning: BurningBreakdown
    tangible_impact: TangibleImpact


class BudgetUtilization(BaseModel):
    total_monthly: int
    currently_spent: int
    spent_percentage: int
    projected_status: Literal["on_track", "overspend_risk"]
    projected_day: Optional[int] = None
    cost_efficiency: int


class RemorseHotspot(BaseModel):
    type: str
    count: int
    severity: Literal["high", "medium", "low"]


class Scorecard(BaseModel):
    adherence: int
    satisfaction: int
    safety: int
    efficiency: int


class Analytics(BaseModel):
    """One analytics view; only the field matching `view` is populated."""

    view: Literal["budget", "remorse", "scorecard"]
    budget: Optional[BudgetUtilization] = None
    hotspots: Optional[list[RemorseHotspot]] = None
    scorecard: Optional[Scorecard] = None


class PatientPage(BaseModel):
    """One page of a filtered patient directory."""

    patients: list[Patient]
    total: int
    limit: int
    offset: int


class PatientVitals(BaseModel):
    blood_pressure: str
    heart_rate: int
    weight: str


class ActivitySummary(BaseModel):
    weekly_average: int
    weekly_data: list[int]


class PatientProfile(Patient):
    """Patient record with clinical context for the provider profile view."""

    vitals: Optional[PatientVitals] = None
    activity: Optional[ActivitySummary] = None
    prescriptions: list[str] = []
    visit_history: list[ScheduleItem] = []
    next_appointment: Optional[ScheduleItem] = None


class AdminDashboard(BaseModel):
    """Headcounts and verification backlog for an admin's organization."""

    total_staff: int
    total_patients: int
    pending_verifications: int
    verified_patients: int
    recent_alerts: list[Alert]


class StaffMember(BaseModel):
    id: str
    name: str
    email: str
    role: str
    patient_count: int
    created_at: Optional[UTCDateTime] = None


class StaffPage(BaseModel):
    """One page of an admin's staff directory."""

    staff: list[StaffMember]
    total: int
    limit: int
    offset: int
