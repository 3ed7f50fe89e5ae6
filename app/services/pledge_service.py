"""Pledge service - business logic for provider-issued token pledges."""
import logging
from typing import Optional

from app.exceptions import NotificationError, PledgeNotFound
from app.models.pledge import DEFAULT_DURATION_DAYS, Pledge, PledgeCreate, PledgeStatus
from app.models.user import Patient
from app.services.notification_service import (
    LoggingNotificationSender,
    NotificationSender,
    patient_pledge_message,
    provider_pledge_message,
)
from app.services.patient_service import PatientService
from app.utils.ids import generate_id, utcnow
from app.utils.patient_ids import find_patient_by_any_id, patient_matches, same_patient_id

logger = logging.getLogger(__name__)


def _newest_first(pledges: list[Pledge]) -> list[Pledge]:
    return sorted(pledges, key=lambda pledge: pledge.timestamp, reverse=True)


def _already_accepted(pledge: Pledge) -> bool:
    return pledge.accepted and pledge.status in (PledgeStatus.ACTIVE, PledgeStatus.AT_RISK)


class PledgeService:
    """Service for handling pledge operations."""

    def __init__(self, db, notifier: Optional[NotificationSender] = None):
        """Initialize service with database connection and notification sender."""
        self.db = db
        self.pledges = db["pledges"]
        self.patients = PatientService(db)
        self.notifier = notifier or LoggingNotificationSender()

    async def _pledges_for(self, patient: Patient) -> list[Pledge]:
        """All pledges referencing `patient` in any id form, in store order."""
        return [
            pledge for pledge in await self.pledges.list_all()
            if patient_matches(patient, pledge.patient_id)
        ]

    async def _pledges_sharing_patient(self, pledge: Pledge) -> list[Pledge]:
        """All pledges for the same patient as `pledge`, including itself."""
        patient = find_patient_by_any_id(
            await self.patients.patients.list_all(), pledge.patient_id
        )
        if patient is not None:
            return await self._pledges_for(patient)
        return [
            other for other in await self.pledges.list_all()
            if same_patient_id(other.patient_id, pledge.patient_id)
        ]

    async def create_pledge(self, pledge_create: PledgeCreate) -> Pledge:
        """
        Create a pending pledge for a patient.

        Any pledge of the same patient that is active but was never accepted
        is marked replaced. The new pledge stores the patient's canonical id
        regardless of the form the caller used.

        Args:
            pledge_create: Pledge creation data

        Returns:
            Created pledge

        Raises:
            PatientNotFound: If the patient id does not resolve
        """
        patient = await self.patients.find_patient(pledge_create.patient_id)
        duration = pledge_create.duration or DEFAULT_DURATION_DAYS

        async with self.db.patient_lock(patient.id):
            now = utcnow()
            for existing in await self._pledges_for(patient):
                if existing.status == PledgeStatus.ACTIVE and not existing.accepted:
                    existing.replace(now)
                    await self.pledges.save(existing)
                    logger.info("Replaced unaccepted pledge %s for patient %s", existing.id, patient.id)

            pledge = Pledge(
                id=generate_id("pledge", now, suffix_length=4),
                patient_id=patient.id,
                patient_name=patient.name,
                patient_email=patient.email,
                goal=pledge_create.goal,
                amount=pledge_create.amount,
                message=pledge_create.message or "",
                metric_type=pledge_create.metric_type or "Blood Pressure",
                target=pledge_create.target or "",
                duration=duration,
                status=PledgeStatus.PENDING,
                progress=0,
                total_days=int(duration),
                timestamp=now,
                provider_id=pledge_create.provider_id,
                provider_name=pledge_create.provider_name or "Your Healthcare Provider",
                provider_email=pledge_create.provider_email,
            )
            await self.pledges.add(pledge)

        logger.info(
            "Created pledge %s for patient %s (requested as %r): %d RDM over %d days",
            pledge.id,
            patient.id,
            pledge_create.patient_id,
            pledge.amount,
            pledge.total_days,
        )

        await self._notify_created(pledge, patient, pledge_create.patient_id)
        return pledge

    async def _notify_created(self, pledge: Pledge, patient: Patient, requested_id: str) -> None:
        """Notify patient and provider; failures never affect the pledge."""
        messages = [
            (patient.email, patient_pledge_message(pledge, patient)),
            (pledge.provider_email, provider_pledge_message(pledge, patient, requested_id)),
        ]
        for recipient, (subject, body) in messages:
            if not recipient:
                logger.info("No address for pledge %s notification %r; skipped", pledge.id, subject)
                continue
            try:
                await self.notifier.send(recipient, subject, body)
            except NotificationError:
                logger.exception("Failed to send pledge %s notification to %s", pledge.id, recipient)

    async def get_pledge(self, pledge_id: str) -> Pledge:
        """
        Get a pledge by id.

        Raises:
            PledgeNotFound: If the pledge does not exist
        """
        pledge = await self.pledges.get(pledge_id)
        if pledge is None:
            raise PledgeNotFound(pledge_id)
        return pledge

    async def accept_pledge(self, pledge_id: str) -> Pledge:
        """
        Accept a pledge on the patient's behalf.

        Starts the pledge window (end date = start + total days) and replaces
        any other accepted active pledge of the same patient. Accepting an
        already accepted pledge returns it unchanged.

        Args:
            pledge_id: Pledge ID

        Returns:
            Accepted pledge

        Raises:
            PledgeNotFound: If the pledge does not exist
            InvalidPledgeTransition: If the pledge was already replaced or completed
        """
        pledge = await self.get_pledge(pledge_id)
        if _already_accepted(pledge):
            return pledge

        async with self.db.patient_lock(pledge.patient_id):
            # Re-read under the lock; a concurrent accept may have won.
            pledge = await self.get_pledge(pledge_id)
            if _already_accepted(pledge):
                return pledge

            now = utcnow()
            pledge.accept(now)
            await self.pledges.save(pledge)

            for other in await self._pledges_sharing_patient(pledge):
                if other.id != pledge.id and other.is_active_accepted:
                    other.replace(now)
                    await self.pledges.save(other)
                    logger.info("Replaced accepted pledge %s by %s", other.id, pledge.id)

        logger.info("Pledge %s accepted; ends %s", pledge.id, pledge.end_date.isoformat())
        return pledge

    async def complete_pledge(self, pledge_id: str) -> Pledge:
        """
        Mark an active or at-risk pledge as completed.

        Raises:
            PledgeNotFound: If the pledge does not exist
            InvalidPledgeTransition: If the pledge is not active or at risk
        """
        async with self.db.patient_lock((await self.get_pledge(pledge_id)).patient_id):
            pledge = await self.get_pledge(pledge_id)
            pledge.complete(utcnow())
            await self.pledges.save(pledge)
        logger.info("Pledge %s completed (%d RDM)", pledge.id, pledge.amount)
        return pledge

    async def mark_pledge_at_risk(self, pledge_id: str) -> Pledge:
        """
        Flag an active pledge as at risk.

        Raises:
            PledgeNotFound: If the pledge does not exist
            InvalidPledgeTransition: If the pledge is not active
        """
        async with self.db.patient_lock((await self.get_pledge(pledge_id)).patient_id):
            pledge = await self.get_pledge(pledge_id)
            pledge.mark_at_risk()
            await self.pledges.save(pledge)
        logger.info("Pledge %s flagged at risk", pledge.id)
        return pledge

    async def get_patient_pledges(self, patient_id: str) -> list[Pledge]:
        """
        List every pledge of a patient, newest first.

        Raises:
            PatientNotFound: If the patient id does not resolve
        """
        patient = await self.patients.find_patient(patient_id)
        return _newest_first(await self._pledges_for(patient))

    async def get_my_pledges(self, user_id: Optional[str]) -> list[Pledge]:
        """
        List the pledges a patient should currently see, newest first.

        Only pending pledges and the accepted active pledge are included.
        Without a user id the list is empty.

        Raises:
            PatientNotFound: If the user id does not resolve to a patient
        """
        if not user_id:
            return []

        patient = await self.patients.find_patient(user_id)
        visible = [
            pledge for pledge in await self._pledges_for(patient)
            if pledge.is_visible_to_patient
        ]
        return _newest_first(visible)
