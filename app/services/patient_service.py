"""Patient service - patient lookup across id formats and status updates."""
import logging

from app.exceptions import PatientNotFound
from app.models.user import Patient
from app.utils.patient_ids import find_patient_by_any_id

logger = logging.getLogger(__name__)


class PatientService:
    """Service for resolving and updating patient records."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.patients = db["patients"]

    async def find_patient(self, patient_id: str) -> Patient:
        """
        Resolve a patient from any accepted id form.

        Args:
            patient_id: Bare id, "#"-prefixed id, or either stored field

        Returns:
            Matching patient record

        Raises:
            PatientNotFound: If no patient matches
        """
        patient = find_patient_by_any_id(await self.patients.list_all(), patient_id)
        if patient is None:
            logger.warning("Patient lookup failed for id %r", patient_id)
            raise PatientNotFound(patient_id)
        return patient

    async def update_patient_status(self, patient_id: str, status: str) -> Patient:
        """
        Set a patient's status. Any status string is accepted.

        Args:
            patient_id: Patient id in any accepted form
            status: New status

        Returns:
            Updated patient

        Raises:
            PatientNotFound: If no patient matches
        """
        patient = await self.find_patient(patient_id)
        patient.status = status
        await self.patients.save(patient)
        logger.info("Patient %s status set to %s", patient.id, status)
        return patient
