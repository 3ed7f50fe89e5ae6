"""Tests for PledgeService."""
import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from app.models.pledge import PledgeCreate, PledgeStatus
from app.models.user import Patient


async def _add_patient(db, patient_id="83921", name="Michael Chen", email="michael@example.com"):
    patient = Patient(id=patient_id, patient_id=f"#{patient_id}", name=name, email=email)
    await db["patients"].add(patient)
    return patient


def _create(patient_id="83921", **fields):
    return PledgeCreate(patient_id=patient_id, amount=fields.pop("amount", 500), goal="BP Stabilization", **fields)


@pytest.mark.asyncio
class TestPledgeServiceCreate:
    """Tests for creating pledges."""

    async def test_create_pledge_defaults(self, db, sender):
        """Test a new pledge is pending with default duration and provider name."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        pledge = await service.create_pledge(_create())

        assert pledge.id.startswith("pledge-")
        assert pledge.status == PledgeStatus.PENDING
        assert pledge.accepted is False
        assert pledge.duration == "7"
        assert pledge.total_days == 7
        assert pledge.progress == 0
        assert pledge.provider_name == "Your Healthcare Provider"
        assert pledge.metric_type == "Blood Pressure"
        assert pledge.patient_name == "Michael Chen"

    async def test_create_pledge_stores_canonical_patient_id(self, db, sender):
        """Test a '#'-prefixed id is stored in canonical form."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        pledge = await service.create_pledge(_create("#83921", duration="14"))

        assert pledge.patient_id == "83921"
        assert pledge.total_days == 14
        assert (await db["pledges"].get(pledge.id)).patient_id == "83921"

    async def test_create_pledge_unknown_patient(self, db, sender):
        """Test creating a pledge for an unknown patient fails and stores nothing."""
        from app.exceptions import PatientNotFound
        from app.services.pledge_service import PledgeService

        service = PledgeService(db, sender)
        with pytest.raises(PatientNotFound):
            await service.create_pledge(_create("404"))

        assert await db["pledges"].count() == 0
        assert sender.sent == []

    async def test_create_replaces_only_unaccepted_active_pledges(self, db, sender):
        """Test unaccepted active pledges are replaced while pending and accepted ones stay."""
        from app.models.pledge import Pledge
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        now = datetime.now(timezone.utc)
        for pledge_id, status, accepted in [
            ("legacy", PledgeStatus.ACTIVE, False),
            ("accepted", PledgeStatus.ACTIVE, True),
            ("pending", PledgeStatus.PENDING, False),
        ]:
            await db["pledges"].add(Pledge(
                id=pledge_id, patient_id="#83921", patient_name="Michael Chen",
                goal="g", amount=100, status=status, accepted=accepted, timestamp=now,
            ))

        service = PledgeService(db, sender)
        await service.create_pledge(_create())

        legacy = await db["pledges"].get("legacy")
        assert legacy.status == PledgeStatus.REPLACED
        assert legacy.replaced_at is not None
        assert (await db["pledges"].get("accepted")).status == PledgeStatus.ACTIVE
        assert (await db["pledges"].get("pending")).status == PledgeStatus.PENDING

    async def test_create_notifies_patient_and_provider(self, db, sender):
        """Test both parties are emailed with the pledge details."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        await service.create_pledge(_create(
            metric_type="Steps", provider_email="dr@example.com", provider_name="Dr. Smith",
        ))

        assert [m["to"] for m in sender.sent] == ["michael@example.com", "dr@example.com"]
        assert sender.sent[0]["subject"] == "New Health Challenge: Steps"
        assert sender.sent[1]["subject"] == "Pledge Created: Michael Chen - 500 RDM"
        assert "Dr. Smith" in sender.sent[0]["body"]

    async def test_create_skips_missing_addresses(self, db, sender):
        """Test recipients without an address are skipped."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db, email="")
        service = PledgeService(db, sender)
        await service.create_pledge(_create())

        assert sender.sent == []

    async def test_notification_failure_does_not_fail_creation(self, db):
        """Test a failing sender is logged and the pledge is still stored."""
        from app.exceptions import NotificationError
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        failing = AsyncMock()
        failing.send.side_effect = NotificationError("michael@example.com", "SMTP down")

        service = PledgeService(db, failing)
        pledge = await service.create_pledge(_create(provider_email="dr@example.com"))

        assert await db["pledges"].get(pledge.id) is not None
        assert failing.send.await_count == 2


@pytest.mark.asyncio
class TestPledgeServiceAccept:
    """Tests for accepting pledges."""

    async def test_accept_sets_window(self, db, sender):
        """Test acceptance activates the pledge and sets end = start + total days."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        pledge = await service.create_pledge(_create(duration="10"))

        accepted = await service.accept_pledge(pledge.id)

        assert accepted.status == PledgeStatus.ACTIVE
        assert accepted.accepted is True
        assert accepted.accepted_at == accepted.start_date
        assert accepted.end_date - accepted.start_date == timedelta(days=10)

    async def test_accept_replaces_previous_accepted_pledge(self, db, sender):
        """Test at most one accepted active pledge exists per patient."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        first = await service.create_pledge(_create())
        await service.accept_pledge(first.id)
        second = await service.create_pledge(_create("#83921"))
        await service.accept_pledge(second.id)

        assert (await db["pledges"].get(first.id)).status == PledgeStatus.REPLACED
        active = [p for p in await db["pledges"].list_all() if p.is_active_accepted]
        assert [p.id for p in active] == [second.id]

    async def test_accept_is_idempotent(self, db, sender):
        """Test accepting twice returns the same accepted pledge."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        pledge = await service.create_pledge(_create())
        first = await service.accept_pledge(pledge.id)
        second = await service.accept_pledge(pledge.id)

        assert second.accepted_at == first.accepted_at

    async def test_accept_legacy_active_pledge(self, seeded_db, sender):
        """Test an active but unaccepted pledge is accepted in place."""
        from app.services.pledge_service import PledgeService

        service = PledgeService(seeded_db, sender)
        pledge = await service.accept_pledge("pledge-1")

        assert pledge.status == PledgeStatus.ACTIVE
        assert pledge.accepted is True

    async def test_accept_unknown_pledge(self, db, sender):
        """Test accepting a missing pledge raises PledgeNotFound."""
        from app.exceptions import PledgeNotFound
        from app.services.pledge_service import PledgeService

        service = PledgeService(db, sender)
        with pytest.raises(PledgeNotFound):
            await service.accept_pledge("missing")

    async def test_accept_replaced_pledge_rejected(self, db, sender):
        """Test a replaced pledge cannot be accepted."""
        from app.exceptions import InvalidPledgeTransition
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        first = await service.create_pledge(_create())
        await service.accept_pledge(first.id)
        second = await service.create_pledge(_create())
        await service.accept_pledge(second.id)

        with pytest.raises(InvalidPledgeTransition):
            await service.accept_pledge(first.id)

    async def test_concurrent_accepts_leave_one_active(self, db, sender):
        """Test racing acceptances for one patient leave a single accepted pledge."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        pledges = [await service.create_pledge(_create()) for _ in range(5)]

        await asyncio.gather(*(service.accept_pledge(p.id) for p in pledges))

        stored = await db["pledges"].list_all()
        assert sum(1 for p in stored if p.is_active_accepted) == 1
        assert sum(1 for p in stored if p.status == PledgeStatus.REPLACED) == 4


@pytest.mark.asyncio
class TestPledgeServiceLifecycle:
    """Tests for completing and flagging pledges."""

    async def test_complete_and_at_risk(self, db, sender):
        """Test an accepted pledge can go at risk, then complete."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        pledge = await service.create_pledge(_create())
        await service.accept_pledge(pledge.id)

        at_risk = await service.mark_pledge_at_risk(pledge.id)
        assert at_risk.status == PledgeStatus.AT_RISK

        completed = await service.complete_pledge(pledge.id)
        assert completed.status == PledgeStatus.COMPLETED
        assert completed.progress == completed.total_days
        assert completed.completed_at is not None

    async def test_complete_pending_rejected(self, db, sender):
        """Test a pending pledge cannot be completed."""
        from app.exceptions import InvalidPledgeTransition
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        pledge = await service.create_pledge(_create())

        with pytest.raises(InvalidPledgeTransition):
            await service.complete_pledge(pledge.id)
        assert (await db["pledges"].get(pledge.id)).status == PledgeStatus.PENDING


@pytest.mark.asyncio
class TestPledgeServiceQueries:
    """Tests for listing pledges."""

    async def test_patient_pledges_any_id_form(self, db, sender):
        """Test listing by bare or '#' id returns the same pledges, newest first."""
        from app.services.pledge_service import PledgeService

        await _add_patient(db)
        service = PledgeService(db, sender)
        first = await service.create_pledge(_create())
        second = await service.create_pledge(_create())

        by_bare = [p.id for p in await service.get_patient_pledges("83921")]
        by_hash = [p.id for p in await service.get_patient_pledges("#83921")]

        assert by_bare == by_hash
        assert set(by_bare) == {first.id, second.id}

    async def test_patient_pledges_unknown_patient(self, db, sender):
        """Test listing pledges of an unknown patient raises PatientNotFound."""
        from app.exceptions import PatientNotFound
        from app.services.pledge_service import PledgeService

        service = PledgeService(db, sender)
        with pytest.raises(PatientNotFound):
            await service.get_patient_pledges("404")

    async def test_my_pledges_visibility(self, seeded_db, sender):
        """Test patients see pending pledges and their accepted active one only."""
        from app.services.pledge_service import PledgeService

        service = PledgeService(seeded_db, sender)
        # Seeded pledge-1 is active but unaccepted and therefore hidden.
        assert await service.get_my_pledges("83921") == []

        created = await service.create_pledge(_create())
        visible = await service.get_my_pledges("#83921")
        assert [p.id for p in visible] == [created.id]

        await service.accept_pledge(created.id)
        newer = await service.create_pledge(_create())
        visible = await service.get_my_pledges("83921")
        assert [p.id for p in visible] == [newer.id, created.id]

    async def test_my_pledges_without_user(self, db, sender):
        """Test an empty list is returned when no user id is given."""
        from app.services.pledge_service import PledgeService

        service = PledgeService(db, sender)
        assert await service.get_my_pledges(None) == []
        assert await service.get_my_pledges("") == []
