"""User and patient model definitions."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.models.types import UTCDateTime


class UserRole(str, Enum):
    """Account roles."""

    PATIENT = "PATIENT"
    STAFF = "STAFF"
    ADMIN = "ADMIN"


class User(BaseModel):
    """Platform account (staff, admin or patient login)."""

    id: str
    email: str
    name: str
    role: UserRole
    admin_id: Optional[str] = None  # staff are linked to the admin they report to
    organization_name: Optional[str] = None
    avatar: str = ""
    created_at: Optional[UTCDateTime] = None


class Patient(BaseModel):
    """
    Patient record.

    `id` is the canonical identifier; `patient_id` is the display form
    (usually `#<id>`). Callers may reference a patient by either.
    """

    id: str
    patient_id: str = ""
    name: str
    email: str = ""
    age: Optional[int] = None
    gender: Optional[str] = None
    diagnosis: str = ""
    adherence_score: float = 0
    rdm_earnings: int = 0
    status: str = "stable"
    avatar: str = ""
    last_visit: Optional[UTCDateTime] = None
    contact_number: str = ""
    provider_id: Optional[str] = None
    admin_id: Optional[str] = None
    verification_status: str = "verified"
