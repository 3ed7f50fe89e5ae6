"""Demo data loaded into empty collections at startup."""
import logging
from datetime import datetime, timedelta

from app.models.activity import (
    Alert,
    AlertSeverity,
    Donation,
    ScheduleItem,
    Tip,
    TipType,
    TokenBurn,
    TokenMint,
)
from app.models.goal import AssignedByRole, Goal, GoalCategory, GoalStatus
from app.models.pledge import Pledge, PledgeStatus
from app.models.user import Patient, User, UserRole
from app.utils.ids import utcnow

logger = logging.getLogger(__name__)

DEMO_ADMIN_ID = "admin-1"
DEMO_STAFF_ID = "staff-1"


def _demo_patients(now: datetime) -> list[Patient]:
    rows = [
        ("83921", "Michael Chen", 45, "Male", "Hypertension", 75, 0, "critical", "+1-555-0123", 2, "michael.chen"),
        ("99201", "Sarah Jenkins", 38, "Female", "Diabetes T2", 65, 0, "critical", "+1-555-0124", 0, "sarah.jenkins"),
        ("1129", "David Kim", 42, "Male", "Diabetes T2", 98, 50, "stable", "+1-555-0125", 7, "david.kim"),
        ("9201", "Emily Davis", 35, "Female", "Hypertension", 65, 0, "at-risk", "+1-555-0126", 14, "emily.davis"),
        ("77123", "Robert Fox", 58, "Male", "Arrhythmia", 82, 25, "moderate", "+1-555-0127", 5, "robert.fox"),
    ]
    return [
        Patient(
            id=patient_id,
            patient_id=f"#{patient_id}",
            name=name,
            age=age,
            gender=gender,
            diagnosis=diagnosis,
            adherence_score=adherence,
            rdm_earnings=earnings,
            status=status,
            contact_number=phone,
            last_visit=now - timedelta(days=days_since_visit),
            email=f"{handle}@rdmhealth.patient",
            provider_id=DEMO_STAFF_ID,
            admin_id=DEMO_ADMIN_ID,
        )
        for (patient_id, name, age, gender, diagnosis, adherence, earnings,
             status, phone, days_since_visit, handle) in rows
    ]


def _demo_users(now: datetime, patients: list[Patient]) -> list[User]:
    users = [
        User(
            id=DEMO_STAFF_ID,
            email="doctor@rdmhealth.com",
            name="Dr. Sarah Smith",
            role=UserRole.STAFF,
            admin_id=DEMO_ADMIN_ID,
            created_at=now,
        ),
        User(
            id=DEMO_ADMIN_ID,
            email="admin@rdmhealth.com",
            name="RDM Health Hospital Admin",
            role=UserRole.ADMIN,
            organization_name="RDM Health Hospital",
            created_at=now,
        ),
    ]
    users.extend(
        User(id=p.id, email=p.email, name=p.name, role=UserRole.PATIENT, created_at=now)
        for p in patients
    )
    return users


def _demo_goals(now: datetime) -> list[Goal]:
    return [
        Goal(
            id="bp-goal",
            title="Lower Blood Pressure",
            description="Achieve and maintain blood pressure below 120/80.",
            category=GoalCategory.BP,
            target="120/80",
            current="145/90",
            reward=1000,
            status=GoalStatus.ACTIVE,
            assigned_by="Dr. Smith",
            assigned_by_role=AssignedByRole.DOCTOR,
            user_id="83921",
            start_date=now - timedelta(days=7),
            end_date=now + timedelta(days=5),
            progress=30,
            created_at=now - timedelta(days=7),
        )
    ]


def _demo_pledges(now: datetime) -> list[Pledge]:
    # Legacy records: marked active without ever being accepted.
    return [
        Pledge(
            id="pledge-1",
            patient_id="83921",
            patient_name="Michael Chen",
            goal="BP Stabilization",
            amount=500,
            status=PledgeStatus.ACTIVE,
            progress=4,
            total_days=7,
            timestamp=now - timedelta(days=4),
        ),
        Pledge(
            id="pledge-2",
            patient_id="9201",
            patient_name="Emily Davis",
            goal="Post-Op Mobility",
            amount=250,
            status=PledgeStatus.AT_RISK,
            progress=2,
            total_days=7,
            timestamp=now - timedelta(days=2),
        ),
    ]


def _demo_alerts(now: datetime) -> list[Alert]:
    return [
        Alert(id="alert-1", patient_id="83921", patient_name="Michael Chen", type="bp_spike",
              severity=AlertSeverity.HIGH, message="BP Spike (150/95)", details="Recorded 2h ago",
              timestamp=now - timedelta(hours=2)),
        Alert(id="alert-2", patient_id="99201", patient_name="Sarah Jenkins", type="missed_meds",
              severity=AlertSeverity.MODERATE, message="Missed Meds (3 Days)",
              details="Notification via App", timestamp=now - timedelta(hours=1)),
        Alert(id="alert-3", patient_id="77123", patient_name="Robert Fox", type="irregular_heartbeat",
              severity=AlertSeverity.MODERATE, message="Irregular Heartbeat", details="Wearable Detect",
              timestamp=now - timedelta(hours=3)),
    ]


def _demo_tips(now: datetime) -> list[Tip]:
    return [
        Tip(id="tip-1", patient_id="99201", patient_name="Sarah Jenkins", amount=50,
            message="Thank you for the extra time yesterday, Dr. Smith! I feel much better.",
            timestamp=now - timedelta(hours=2)),
        Tip(id="tip-2", patient_id="1129", patient_name="David Kim", amount=100,
            message="My BP is finally stable. Couldn't have done it without your pledge.",
            timestamp=now - timedelta(days=1), liked=True),
        Tip(id="tip-3", patient_id="9201", patient_name="Emily Davis", amount=10,
            type=TipType.RATING, rating=5, timestamp=now - timedelta(days=2)),
    ]


def _demo_schedule(now: datetime) -> list[ScheduleItem]:
    today = now.date().isoformat()
    return [
        ScheduleItem(id="schedule-1", time="09:00", title="Review Lab Results", patient_name="Michael Chen",
                     patient_id="83921", type="urgent", status="done", date=today),
        ScheduleItem(id="schedule-2", time="10:30", title="Video Consult", patient_name="David Kim",
                     patient_id="1129", type="follow-up", status="now", date=today),
        ScheduleItem(id="schedule-3", time="14:00", title="Staff Meeting", type="internal",
                     status="upcoming", date=today),
        ScheduleItem(id="schedule-4", time="16:30", title="Chart Review", type="internal",
                     status="upcoming", date=today),
    ]


def _demo_ledger(now: datetime) -> dict[str, list]:
    return {
        "token_burns": [
            TokenBurn(id="burn-1", amount=5000, reason="missed_sla", staff_id=DEMO_STAFF_ID,
                      timestamp=now - timedelta(days=7)),
            TokenBurn(id="burn-2", amount=3000, reason="protocol_violation", staff_id=DEMO_STAFF_ID,
                      timestamp=now - timedelta(days=5)),
        ],
        "token_mints": [
            TokenMint(id="mint-1", amount=10000, reason="adherence_reward", patient_id="1129",
                      timestamp=now - timedelta(days=10)),
            TokenMint(id="mint-2", amount=5000, reason="efficiency_bonus", staff_id=DEMO_STAFF_ID,
                      timestamp=now - timedelta(days=8)),
        ],
        "donations": [
            Donation(id="donation-1", amount=100000, source="staff_donation", staff_id=DEMO_STAFF_ID,
                     converted_usd=1000, timestamp=now - timedelta(days=30)),
            Donation(id="donation-2", amount=20000, source="pledge_completion", patient_id="83921",
                     converted_usd=200, timestamp=now - timedelta(days=15)),
        ],
    }


async def seed_demo_data(db, now: datetime | None = None) -> None:
    """
    Load the demo organization into every empty collection.

    Collections that already hold records are left untouched.

    Args:
        db: Database registry
        now: Optional reference time for relative timestamps (defaults to now)
    """
    if now is None:
        now = utcnow()

    patients = _demo_patients(now)
    records = {
        "patients": patients,
        "users": _demo_users(now, patients),
        "goals": _demo_goals(now),
        "pledges": _demo_pledges(now),
        "alerts": _demo_alerts(now),
        "tips": _demo_tips(now),
        "schedule": _demo_schedule(now),
        **_demo_ledger(now),
    }

    for name, items in records.items():
        repository = db[name]
        if await repository.count() > 0:
            continue
        for item in items:
            await repository.add(item)
        logger.info("Seeded %d demo records into %s", len(items), name)
