"""Provider service - provider dashboards, schedule, alerts and patient tips."""
import logging
from typing import Literal, Optional

from app.config import settings
from app.exceptions import AccessDenied
from app.models.activity import Alert, AlertSeverity, ScheduleItem, Tip, TipCreate, TipType
from app.models.dashboard import (
    ActivitySummary,
    CriticalPatient,
    PatientPage,
    PatientProfile,
    PatientVitals,
    ProviderDashboard,
    ProviderEarnings,
    ProviderRanking,
)
from app.models.pledge import PledgeStatus
from app.models.user import Patient
from app.services.patient_service import PatientService
from app.utils.ids import generate_id, today_iso, utcnow
from app.utils.metrics import average, with_fallback
from app.utils.patient_ids import find_patient_by_any_id, patient_matches, same_patient_id

logger = logging.getLogger(__name__)

PatientStatusFilter = Literal["critical", "stable", "at-risk", "moderate"]

DEMO_VITALS = PatientVitals(blood_pressure="120/80", heart_rate=72, weight="78 kg")
DEMO_ACTIVITY = ActivitySummary(weekly_average=8200, weekly_data=[4000, 6000, 8500, 5500, 9000, 8000, 9500])
DEMO_RATING = 4.8
DEMO_RDM_BALANCE = 12500
DEMO_INCOME = {
    "total_available": 14250,
    "clinical_income": 10000,
    "performance_bonus": 3000,
}
DEMO_RANKINGS = [
    ProviderRanking(rank=1, name="Dr. Sarah Smith", score=98),
    ProviderRanking(rank=2, name="Dr. James Wilson", score=92),
    ProviderRanking(rank=3, name="Dr. Anita Kapoor", score=89),
]


def _newest_first(items):
    return sorted(items, key=lambda item: item.timestamp, reverse=True)


class ProviderService:
    """Service computing provider-facing views."""

    def __init__(self, db, demo_fallback: Optional[bool] = None):
        """Initialize service with database connection."""
        self.db = db
        self.patients = db["patients"]
        self.alerts = db["alerts"]
        self.tips = db["tips"]
        self.schedule = db["schedule"]
        self.pledges = db["pledges"]
        self.demo_fallback = settings.demo_fallback_enabled if demo_fallback is None else demo_fallback

    async def _scope(self, provider_id: Optional[str]) -> list[Patient]:
        """Patients of `provider_id`, or every patient when no provider is given."""
        patients = await self.patients.list_all()
        if not provider_id:
            return patients
        return [p for p in patients if p.provider_id == provider_id]

    @staticmethod
    def _owned(items, patients: list[Patient], provider_id: Optional[str]):
        """Filter records with a `patient_id` down to those of `patients`."""
        if not provider_id:
            return list(items)
        return [
            item for item in items
            if find_patient_by_any_id(patients, item.patient_id) is not None
        ]

    async def get_patients(
        self,
        search: Optional[str] = None,
        status: Optional[PatientStatusFilter] = None,
        limit: int = 50,
        offset: int = 0,
        provider_id: Optional[str] = None,
    ) -> PatientPage:
        """
        Page through the patient directory.

        Args:
            search: Case-insensitive substring of name, display id or diagnosis
            status: Exact patient status filter
            limit: Page size
            offset: Number of matching patients to skip
            provider_id: Only patients assigned to this provider

        Returns:
            The requested page and the total number of matches
        """
        patients = await self._scope(provider_id)

        if search:
            needle = search.lower()
            patients = [
                p for p in patients
                if needle in p.name.lower()
                or needle in p.patient_id.lower()
                or needle in p.diagnosis.lower()
            ]
        if status:
            patients = [p for p in patients if p.status == status]

        return PatientPage(
            patients=patients[offset:offset + limit],
            total=len(patients),
            limit=limit,
            offset=offset,
        )

    async def get_patient_profile(self, patient_id: str, provider_id: Optional[str] = None) -> PatientProfile:
        """
        Patient record with vitals, activity and appointments.

        Args:
            patient_id: Patient id in any accepted form
            provider_id: When given, the patient must be assigned to this provider

        Returns:
            Patient profile; vitals and activity are demo readings while demo
            fallbacks are enabled, since no device data is stored

        Raises:
            PatientNotFound: If the patient id does not resolve
            AccessDenied: If the patient belongs to a different provider
        """
        patient = await PatientService(self.db).find_patient(patient_id)
        if provider_id and patient.provider_id != provider_id:
            logger.warning("Provider %s denied profile of patient %s", provider_id, patient.id)
            raise AccessDenied(provider_id, patient.id)

        appointments = sorted(
            (item for item in await self.schedule.list_all() if patient_matches(patient, item.patient_id)),
            key=lambda item: (item.date, item.time),
        )
        today = today_iso()
        upcoming = [item for item in appointments if item.status != "done" and item.date >= today]

        return PatientProfile(
            **patient.model_dump(),
            vitals=with_fallback(None, DEMO_VITALS, self.demo_fallback, empty_value=None),
            activity=with_fallback(None, DEMO_ACTIVITY, self.demo_fallback, empty_value=None),
            visit_history=[item for item in reversed(appointments) if item.status == "done"],
            next_appointment=upcoming[0] if upcoming else None,
        )

    async def get_dashboard(self, provider_id: Optional[str] = None) -> ProviderDashboard:
        """
        Provider landing page summary.

        Args:
            provider_id: Optional provider to scope patients, alerts, schedule and tips to

        Returns:
            Patient and critical alert counts, rating, balance, the first three
            alerts with their patients, today's schedule and the three newest tips
        """
        patients = await self._scope(provider_id)
        all_patients = await self.patients.list_all()
        alerts = self._owned(await self.alerts.list_all(), patients, provider_id)
        tips = _newest_first(self._owned(await self.tips.list_all(), patients, provider_id))

        critical_patients = [
            CriticalPatient(alert=alert, patient=find_patient_by_any_id(all_patients, alert.patient_id))
            for alert in alerts[:3]
        ]

        ratings = [tip.rating or 0 for tip in tips if tip.type == TipType.RATING]
        rating = average(ratings)
        if rating is not None:
            rating = round(rating, 1)

        return ProviderDashboard(
            total_patients=len(patients),
            critical_count=sum(1 for alert in alerts if alert.severity == AlertSeverity.HIGH),
            rating=with_fallback(rating, DEMO_RATING, self.demo_fallback),
            rdm_balance=with_fallback(None, DEMO_RDM_BALANCE, self.demo_fallback),
            critical_patients=critical_patients,
            schedule=await self.get_schedule(provider_id=provider_id),
            recent_wishes=tips[:3],
        )

    async def get_earnings(self, provider_id: Optional[str] = None) -> ProviderEarnings:
        """
        Provider earnings summary.

        Income figures and peer rankings have no backing records and are
        demo values (zero/empty when demo fallbacks are disabled).
        """
        patients = await self._scope(provider_id)
        pledges = self._owned(await self.pledges.list_all(), patients, provider_id)
        tips = _newest_first(self._owned(await self.tips.list_all(), patients, provider_id))

        income = {
            name: with_fallback(None, value, self.demo_fallback)
            for name, value in DEMO_INCOME.items()
        }
        return ProviderEarnings(
            **income,
            patient_tips=sum(tip.amount for tip in tips),
            recent_tips=tips[:3],
            active_pledges=[
                pledge for pledge in pledges
                if pledge.status in (PledgeStatus.ACTIVE, PledgeStatus.AT_RISK)
            ],
            rankings=with_fallback(None, DEMO_RANKINGS, self.demo_fallback, empty_value=[]),
        )

    async def get_schedule(
        self,
        schedule_date: Optional[str] = None,
        provider_id: Optional[str] = None,
    ) -> list[ScheduleItem]:
        """
        Schedule for one day, ordered by time.

        Args:
            schedule_date: YYYY-MM-DD (defaults to today, UTC)
            provider_id: When given, only appointments with patients of this provider

        Returns:
            Schedule items sorted by HH:MM time
        """
        target = schedule_date or today_iso()
        items = [item for item in await self.schedule.list_all() if item.date == target]

        if provider_id:
            patients = await self._scope(provider_id)
            items = [
                item for item in items
                if item.patient_id and find_patient_by_any_id(patients, item.patient_id) is not None
            ]

        return sorted(items, key=lambda item: item.time)

    async def get_critical_alerts(self, provider_id: Optional[str] = None) -> list[Alert]:
        """Alerts for the provider's patients, newest first."""
        patients = await self._scope(provider_id)
        return _newest_first(self._owned(await self.alerts.list_all(), patients, provider_id))

    async def get_recent_wishes(self, limit: int = 10, provider_id: Optional[str] = None) -> list[Tip]:
        """Newest tips from the provider's patients, at most `limit`."""
        patients = await self._scope(provider_id)
        tips = _newest_first(self._owned(await self.tips.list_all(), patients, provider_id))
        return tips[:limit]

    async def send_tip(self, tip_create: TipCreate) -> Tip:
        """
        Record a tip or rating sent by a patient.

        Args:
            tip_create: Tip data; the patient id may be in any accepted form

        Returns:
            Stored tip, keyed by the patient's canonical id

        Raises:
            PatientNotFound: If the patient id does not resolve
        """
        patient = await PatientService(self.db).find_patient(tip_create.patient_id)
        now = utcnow()
        tip = Tip(
            id=generate_id("tip", now, suffix_length=6),
            patient_id=patient.id,
            patient_name=patient.name,
            amount=tip_create.amount,
            message=tip_create.message,
            type=tip_create.type,
            rating=tip_create.rating,
            timestamp=now,
            avatar=patient.avatar,
        )
        await self.tips.add(tip)
        logger.info(
            "Recorded %s %s from patient %s (provider %s): %d RDM",
            tip.type.value, tip.id, patient.id, patient.provider_id, tip.amount,
        )
        return tip

    async def get_my_sent_tips(self, patient_id: Optional[str] = None) -> list[Tip]:
        """Tips sent by a patient, newest first; empty without a patient id."""
        if not patient_id:
            return []
        tips = [tip for tip in await self.tips.list_all() if same_patient_id(tip.patient_id, patient_id)]
        return _newest_first(tips)
