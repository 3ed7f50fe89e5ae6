"""
Admin service

Organization-wide aggregates for a hospital admin: dashboard headcounts,
the staff directory and leaderboard, command center scores, token economy
and analytics. Every figure is derived from the stored records on each
call. Where an organization has no data for a figure, a demo value is
reported while demo fallbacks are enabled.
"""
import logging
import math
from collections import Counter
from typing import Literal, Optional

from app.config import settings
from app.exceptions import ValidationError
from app.models.activity import AlertSeverity, TipType
from app.models.dashboard import (
    AdminDashboard,
    Analytics,
    BudgetUtilization,
    BurningBreakdown,
    CareRadar,
    CommandCenter,
    ConversionRate,
    ESGImpact,
    JourneyBottleneck,
    Leaderboard,
    LeaderboardEntry,
    MintingBreakdown,
    MostImproved,
    RemorseHotspot,
    RemorseLearning,
    RoleContribution,
    Scorecard,
    StaffMember,
    StaffPage,
    TangibleImpact,
    TokenEconomy,
    TopPerformer,
)
from app.models.goal import GoalStatus
from app.models.pledge import PledgeStatus
from app.models.user import Patient, User, UserRole
from app.utils.ids import utcnow
from app.utils.metrics import average, clamp, round_half_up, title_case_identifier, with_fallback
from app.utils.patient_ids import belongs_to_any

logger = logging.getLogger(__name__)

RoleFilter = Literal["all", "doctors", "nurses", "techs"]
AnalyticsView = Literal["budget", "remorse", "scorecard"]

MONTHLY_BUDGET_RDM = 1_000_000
DAYS_PER_MONTH = 30
USD_PER_FREE_SURGERY = 100
USD_PER_SUBSIDIZED_PATIENT = 1000
USD_PER_LAB_TEST = 25

DEMO_RATING = 4.8
DEMO_ADHERENCE = 96
DEMO_SAFETY = 98
DEMO_STAFF_ENGAGEMENT = 850
DEMO_CHARITY_USD = 12000
DEMO_ACCURACY = 92
DEMO_EMPATHY = 96
DEMO_ROLE_CONTRIBUTION = RoleContribution(doctors=85, nurses=92, techs=78)
DEMO_FREE_SURGERIES = 120
DEMO_IMPROVEMENT = "+15%"
MEDICAL_WASTE_REDUCTION = 15
ENERGY_SAVED = 15
TIMELINESS_WITH_COMPLETED = 88
TIMELINESS_DEFAULT = 90
BOTTLENECK_MESSAGE = "Discharge delays of +45m impacting overall Exp Score."
REMORSE_DESCRIPTION = "Common across Night Shift nurses in Ward B."
REMORSE_ACTION = (
    'Micro-training "Timely Vitals" auto-assigned to 12 staff members. '
    "Completion Incentive: 50 Tokens."
)

# Leaderboard-only defaults
LEADERBOARD_DEMO_RATING = 4.0
LEADERBOARD_DEMO_ADHERENCE = 75

# Scorecard-only defaults
SCORECARD_DEMO_ADHERENCE = 85
SCORECARD_DEMO_RATING = 4.5
SCORECARD_EFFICIENCY = 88
DEMO_COST_PER_SUCCESS = 120

RECENT_ALERT_LIMIT = 5


def role_group(name: str) -> str:
    """
    Classify a staff member by name into doctors, nurses or techs.

    Examples:
        >>> role_group("Dr. Sarah Smith")
        'doctors'
        >>> role_group("Nurse Joy")
        'nurses'
        >>> role_group("Alex Lab")
        'techs'
    """
    lowered = name.lower()
    if "dr" in lowered or "doctor" in lowered:
        return "doctors"
    if "nurse" in lowered:
        return "nurses"
    return "techs"


def compute_rpi(satisfaction: float, adherence: float, token_earnings: float, critical_alerts: int) -> int:
    """
    Role Performance Index, rounded and clamped to [0, 100].

    Examples:
        >>> compute_rpi(80, 75, 160, 1)
        45
        >>> compute_rpi(100, 100, 0, 0)
        60
    """
    rpi = 0.3 * satisfaction + 0.3 * adherence + 0.2 * (token_earnings / 1000) - 2 * critical_alerts
    return int(clamp(round_half_up(rpi)))


def key_strength(satisfaction: float, adherence: float, token_earnings: float, critical_alerts: int) -> str:
    """First strength a staff member qualifies for, checked in priority order."""
    if satisfaction > 90:
        return "Patient Satisfaction"
    if adherence > 90:
        return "High Adherence"
    if token_earnings > 1000:
        return "High Earnings"
    if critical_alerts == 0:
        return "Safety Excellence"
    return "Consistency"


def _alert_frequency(count: int) -> Literal["High", "Medium", "Low"]:
    if count > 3:
        return "High"
    if count > 1:
        return "Medium"
    return "Low"


def _hotspot_severity(count: int) -> Literal["high", "medium", "low"]:
    if count > 5:
        return "high"
    if count > 2:
        return "medium"
    return "low"


class _Organization:
    """Records belonging to one admin, loaded once per aggregate call."""

    def __init__(self, admin_id: str, patients: list[Patient], staff: list[User], records: dict):
        self.admin_id = admin_id
        self.patients = patients
        self.staff = staff
        self.tips = [t for t in records["tips"] if belongs_to_any(patients, t.patient_id)]
        self.alerts = [a for a in records["alerts"] if belongs_to_any(patients, a.patient_id)]
        self.goals = [g for g in records["goals"] if belongs_to_any(patients, g.user_id)]
        self.pledges = [p for p in records["pledges"] if belongs_to_any(patients, p.patient_id)]
        self.schedule = [
            s for s in records["schedule"]
            if s.patient_id and belongs_to_any(patients, s.patient_id)
        ]
        staff_ids = {member.id for member in staff}
        self.burns = [b for b in records["token_burns"] if b.staff_id in staff_ids]
        self.mints = [
            m for m in records["token_mints"]
            if (m.patient_id and belongs_to_any(patients, m.patient_id))
            or (not m.patient_id and m.staff_id in staff_ids)
        ]
        self.donations = [
            d for d in records["donations"]
            if (d.staff_id and d.staff_id in staff_ids)
            or (not d.staff_id and d.patient_id and belongs_to_any(patients, d.patient_id))
        ]

    @property
    def ratings(self) -> list[float]:
        return [t.rating or 0 for t in self.tips if t.type == TipType.RATING]

    @property
    def critical_alert_count(self) -> int:
        return sum(1 for a in self.alerts if a.severity == AlertSeverity.HIGH)

    @property
    def completed_pledge_rdm(self) -> int:
        return sum(p.amount for p in self.pledges if p.status == PledgeStatus.COMPLETED)

    def patients_of(self, staff_member: User) -> list[Patient]:
        return [p for p in self.patients if p.provider_id == staff_member.id]

    def tip_earnings(self, staff_member: User) -> int:
        """RDM tipped by the staff member's patients."""
        patients = self.patients_of(staff_member)
        return sum(t.amount for t in self.tips if belongs_to_any(patients, t.patient_id))

    def alert_counts_by_type(self) -> Counter:
        return Counter(a.type for a in self.alerts)


class AdminService:
    """Service computing admin-facing organization aggregates."""

    def __init__(self, db, demo_fallback: Optional[bool] = None):
        """Initialize service with database connection."""
        self.db = db
        self.demo_fallback = settings.demo_fallback_enabled if demo_fallback is None else demo_fallback
        self.rdm_per_usd = settings.rdm_per_usd

    def _fallback(self, value, demo_value, empty_value=0):
        return with_fallback(value, demo_value, self.demo_fallback, empty_value)

    async def _load(self, admin_id: str) -> _Organization:
        """
        Load every record belonging to an admin's organization.

        Raises:
            ValidationError: If admin_id is blank
        """
        if not admin_id or not admin_id.strip():
            logger.error("Rejected aggregate request with blank admin id")
            raise ValidationError("adminId", "must be a non-empty string")

        users = await self.db["users"].list_all()
        if not any(u.id == admin_id and u.role == UserRole.ADMIN for u in users):
            logger.warning("Admin %s not found; aggregates will be empty", admin_id)

        patients = [p for p in await self.db["patients"].list_all() if p.admin_id == admin_id]
        staff = [u for u in users if u.role == UserRole.STAFF and u.admin_id == admin_id]
        records = {
            name: await self.db[name].list_all()
            for name in ("tips", "alerts", "goals", "pledges", "schedule",
                         "token_burns", "token_mints", "donations")
        }
        return _Organization(admin_id, patients, staff, records)

    async def get_dashboard(self, admin_id: str) -> AdminDashboard:
        """
        Staff and patient headcounts, verification backlog and recent alerts.

        Raises:
            ValidationError: If admin_id is blank
        """
        org = await self._load(admin_id)
        recent_alerts = sorted(org.alerts, key=lambda alert: alert.timestamp, reverse=True)
        return AdminDashboard(
            total_staff=len(org.staff),
            total_patients=len(org.patients),
            pending_verifications=sum(1 for p in org.patients if p.verification_status == "pending"),
            verified_patients=sum(1 for p in org.patients if p.verification_status == "verified"),
            recent_alerts=recent_alerts[:RECENT_ALERT_LIMIT],
        )

    async def get_staff(
        self,
        admin_id: str,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> StaffPage:
        """
        Page through an admin's staff with their patient counts.

        Args:
            admin_id: Admin whose staff are listed
            search: Optional case-insensitive name/email substring
            limit: Page size
            offset: Number of matching staff to skip

        Returns:
            The requested page and the total number of matches

        Raises:
            ValidationError: If admin_id is blank
        """
        org = await self._load(admin_id)

        staff = org.staff
        if search:
            needle = search.lower()
            staff = [s for s in staff if needle in s.name.lower() or needle in s.email.lower()]

        members = [
            StaffMember(
                id=member.id,
                name=member.name,
                email=member.email,
                role=member.role.value,
                patient_count=len(org.patients_of(member)),
                created_at=member.created_at,
            )
            for member in staff
        ]
        return StaffPage(
            staff=members[offset:offset + limit],
            total=len(members),
            limit=limit,
            offset=offset,
        )

    async def get_leaderboard(
        self,
        admin_id: str,
        role: Optional[RoleFilter] = None,
        search: Optional[str] = None,
    ) -> Leaderboard:
        """
        Rank an organization's staff by Role Performance Index.

        Args:
            admin_id: Admin whose staff are ranked
            role: Optional role group filter ("all" disables filtering)
            search: Optional case-insensitive name/email substring

        Returns:
            Ranked staff with top performer, most improved and department velocity

        Raises:
            ValidationError: If admin_id is blank
        """
        org = await self._load(admin_id)

        staff = org.staff
        if role and role != "all":
            staff = [s for s in staff if role_group(s.name) == role]
        if search:
            needle = search.lower()
            staff = [s for s in staff if needle in s.name.lower() or needle in s.email.lower()]

        entries = []
        for member in staff:
            patients = org.patients_of(member)
            ratings = [
                t.rating or 0 for t in org.tips
                if t.type == TipType.RATING and belongs_to_any(patients, t.patient_id)
            ]
            avg_rating = self._fallback(average(ratings), LEADERBOARD_DEMO_RATING)
            satisfaction = avg_rating / 5 * 100
            adherence = self._fallback(
                average(p.adherence_score for p in patients), LEADERBOARD_DEMO_ADHERENCE
            )
            earnings = org.tip_earnings(member)
            critical = sum(
                1 for a in org.alerts
                if a.severity == AlertSeverity.HIGH and belongs_to_any(patients, a.patient_id)
            )
            entries.append(dict(
                id=member.id,
                name=member.name,
                email=member.email,
                role=member.role.value,
                rpi=compute_rpi(satisfaction, adherence, earnings, critical),
                token_earnings=earnings,
                key_strength=key_strength(satisfaction, adherence, earnings, critical),
                patient_count=len(patients),
                avatar=member.avatar,
            ))

        entries.sort(key=lambda entry: entry["rpi"], reverse=True)
        ranked = [LeaderboardEntry(**entry, rank=index) for index, entry in enumerate(entries, start=1)]

        top = ranked[0] if ranked else None
        improved = next((entry for entry in ranked if entry.rpi > 80), top)
        logger.info("Leaderboard for %s: %d staff ranked", admin_id, len(ranked))
        return Leaderboard(
            staff=ranked,
            top_performer=TopPerformer(name=top.name, rpi=top.rpi, token_earnings=top.token_earnings) if top else None,
            most_improved=MostImproved(
                name=improved.name,
                improvement=self._fallback(None, DEMO_IMPROVEMENT, empty_value=None),
                token_earnings=improved.token_earnings,
            ) if improved else None,
            dept_velocity=sum(entry.token_earnings for entry in ranked),
        )

    async def get_command_center(self, admin_id: str) -> CommandCenter:
        """
        Hospital command center scores for an admin's organization.

        Raises:
            ValidationError: If admin_id is blank
        """
        org = await self._load(admin_id)

        avg_rating = average(org.ratings)
        experience = None if avg_rating is None else round(clamp(avg_rating, 0, 5), 1)
        adherence = average(p.adherence_score for p in org.patients)
        adherence = None if adherence is None else clamp(adherence)

        critical = org.critical_alert_count
        if critical > 0:
            safety = clamp(100 - critical * 2)
        else:
            # With no critical alerts the formula gives a perfect score.
            safety = self._fallback(None, DEMO_SAFETY, empty_value=100)

        staff_earnings = [org.tip_earnings(member) for member in org.staff]
        engagement = average(staff_earnings)

        donated_rdm = org.completed_pledge_rdm
        charity_usd = donated_rdm / self.rdm_per_usd if donated_rdm > 0 else None
        charity_usd = self._fallback(charity_usd, DEMO_CHARITY_USD)

        goals_completed = sum(1 for g in org.goals if g.status == GoalStatus.COMPLETED)
        accuracy = goals_completed / len(org.goals) * 100 if org.goals else None
        empathy = None if avg_rating is None else clamp(avg_rating / 5 * 100)
        timeliness = (
            TIMELINESS_WITH_COMPLETED if any(s.status == "done" for s in org.schedule)
            else TIMELINESS_DEFAULT
        )
        compliance = self._fallback(adherence, DEMO_ADHERENCE)

        radar = CareRadar(
            accuracy=round_half_up(self._fallback(accuracy, DEMO_ACCURACY)),
            empathy=round_half_up(self._fallback(empathy, DEMO_EMPATHY)),
            timeliness=timeliness,
            hygiene=round_half_up(safety),
            compliance=round_half_up(compliance),
        )
        health = (radar.accuracy + radar.empathy + radar.timeliness + radar.hygiene + radar.compliance) / 5
        if health >= 90:
            loop_status = "healthy"
        elif health >= 75:
            loop_status = "moderate"
        else:
            loop_status = "needs_attention"

        by_role = {"doctors": 0, "nurses": 0, "techs": 0}
        for member, earned in zip(org.staff, staff_earnings):
            by_role[role_group(member.name)] += earned
        total_role = sum(by_role.values())
        if total_role > 0:
            contribution = RoleContribution(**{k: v / total_role * 100 for k, v in by_role.items()})
        else:
            contribution = self._fallback(
                None, DEMO_ROLE_CONTRIBUTION, empty_value=RoleContribution(doctors=0, nurses=0, techs=0)
            )

        delayed = [s for s in org.schedule if s.type == "discharge" and s.status != "done"]

        alert_counts = org.alert_counts_by_type().most_common(1)
        if alert_counts:
            alert_type, count = alert_counts[0]
            remorse = RemorseLearning(
                trigger=title_case_identifier(alert_type),
                frequency=_alert_frequency(count),
                description=REMORSE_DESCRIPTION,
                system_action=REMORSE_ACTION,
            )
        else:
            remorse = self._fallback(None, RemorseLearning(
                trigger="Late Vitals Log",
                frequency="High",
                description=REMORSE_DESCRIPTION,
                system_action=REMORSE_ACTION,
            ), empty_value=None)

        free_surgeries = math.floor(charity_usd / USD_PER_FREE_SURGERY) if charity_usd > 0 else None

        logger.info(
            "Command center for %s: %d patients, %d staff, loop %s",
            admin_id, len(org.patients), len(org.staff), loop_status,
        )
        return CommandCenter(
            patient_experience=self._fallback(experience, DEMO_RATING),
            clinical_discipline=round_half_up(compliance),
            safety_hygiene=round_half_up(safety),
            staff_engagement=round_half_up(max(0, self._fallback(engagement, DEMO_STAFF_ENGAGEMENT))),
            esg_charity=round_half_up(charity_usd / 1000),
            care_radar=radar,
            loop_status=loop_status,
            role_contribution=contribution,
            journey_bottleneck=JourneyBottleneck(
                detected=bool(delayed),
                message=BOTTLENECK_MESSAGE if delayed else None,
            ),
            remorse_learning=remorse,
            esg_impact=ESGImpact(
                free_surgeries=self._fallback(free_surgeries, DEMO_FREE_SURGERIES),
                medical_waste_reduction=self._fallback(None, MEDICAL_WASTE_REDUCTION),
            ),
        )

    async def get_token_economy(self, admin_id: str) -> TokenEconomy:
        """
        Token supply, sinks and CSR fund for an admin's organization.

        Raises:
            ValidationError: If admin_id is blank
        """
        org = await self._load(admin_id)

        patient_earnings = sum(p.rdm_earnings for p in org.patients)
        staff_earnings = sum(org.tip_earnings(member) for member in org.staff)
        penalties = sum(b.amount for b in org.burns)
        donated = sum(d.amount for d in org.donations)
        csr_usd = (donated + org.completed_pledge_rdm) / self.rdm_per_usd

        adherence_rewards = sum(m.amount for m in org.mints if m.reason == "adherence_reward")
        efficiency_bonuses = sum(m.amount for m in org.mints if m.reason == "efficiency_bonus")
        tips_minted = sum(t.amount for t in org.tips)

        return TokenEconomy(
            circulating_liability=patient_earnings + staff_earnings,
            remorse_pool=penalties,
            csr_fund_value=round_half_up(csr_usd),
            conversion_rate=ConversionRate(rdm=self.rdm_per_usd, usd=1),
            minting=MintingBreakdown(
                adherence_rewards=adherence_rewards,
                efficiency_bonuses=efficiency_bonuses,
                tips=tips_minted,
                total=adherence_rewards + efficiency_bonuses + tips_minted,
            ),
            burning=BurningBreakdown(
                donations=donated,
                penalties=penalties,
                total=donated + penalties,
            ),
            tangible_impact=TangibleImpact(
                patients_subsidized=math.floor(csr_usd / USD_PER_SUBSIDIZED_PATIENT),
                free_lab_tests=math.floor(csr_usd / USD_PER_LAB_TEST),
                energy_saved=self._fallback(None, ENERGY_SAVED),
            ),
        )

    async def get_analytics(self, admin_id: str, view: Optional[AnalyticsView] = None) -> Analytics:
        """
        One analytics view for an admin's organization.

        Args:
            admin_id: Admin whose organization is analysed
            view: "budget" (default), "remorse" or "scorecard"

        Returns:
            Analytics with only the requested view populated

        Raises:
            ValidationError: If admin_id is blank
        """
        org = await self._load(admin_id)
        view = view or "budget"

        if view == "budget":
            return Analytics(view=view, budget=self._budget(org))

        if view == "remorse":
            hotspots = [
                RemorseHotspot(
                    type=title_case_identifier(alert_type),
                    count=count,
                    severity=_hotspot_severity(count),
                )
                for alert_type, count in org.alert_counts_by_type().most_common()
            ]
            return Analytics(view=view, hotspots=hotspots)

        adherence = self._fallback(average(p.adherence_score for p in org.patients), SCORECARD_DEMO_ADHERENCE)
        rating = self._fallback(average(org.ratings), SCORECARD_DEMO_RATING)
        return Analytics(view=view, scorecard=Scorecard(
            adherence=round_half_up(adherence),
            satisfaction=round_half_up(rating / 5 * 100),
            safety=int(clamp(100 - org.critical_alert_count * 2)),
            efficiency=self._fallback(None, SCORECARD_EFFICIENCY),
        ))

    def _budget(self, org: _Organization) -> BudgetUtilization:
        spent = (
            sum(p.rdm_earnings for p in org.patients)
            + sum(org.tip_earnings(member) for member in org.staff)
        )
        daily_rate = spent / utcnow().day
        overspending = daily_rate * DAYS_PER_MONTH > MONTHLY_BUDGET_RDM

        completed = sum(1 for g in org.goals if g.status == GoalStatus.COMPLETED)
        cost_per_success = spent / completed if completed else None

        return BudgetUtilization(
            total_monthly=MONTHLY_BUDGET_RDM,
            currently_spent=spent,
            spent_percentage=round_half_up(spent / MONTHLY_BUDGET_RDM * 100),
            projected_status="overspend_risk" if overspending else "on_track",
            projected_day=math.ceil(MONTHLY_BUDGET_RDM / daily_rate) if overspending else None,
            cost_efficiency=round_half_up(self._fallback(cost_per_success, DEMO_COST_PER_SUCCESS)),
        )
