"""Patient identifier normalization and matching.

Patients are referenced by their bare id ("83921"), by the display form
("#83921"), or by either stored field of the patient record. All lookups go
through these helpers so that every form resolves to the same patient.
"""
from typing import Iterable, Optional

from app.models.user import Patient


def normalize_patient_id(raw: Optional[str]) -> str:
    """
    Reduce a patient reference to its canonical comparison form.

    Args:
        raw: Patient id as supplied by a caller or stored on a record

    Returns:
        Id without surrounding whitespace or leading "#"; empty string for None

    Examples:
        >>> normalize_patient_id("#83921")
        '83921'
        >>> normalize_patient_id(" 83921 ")
        '83921'
        >>> normalize_patient_id(None)
        ''
    """
    if raw is None:
        return ""
    return str(raw).strip().lstrip("#").strip()


def same_patient_id(left: Optional[str], right: Optional[str]) -> bool:
    """
    Check whether two patient references denote the same id.

    Examples:
        >>> same_patient_id("83921", "#83921")
        True
        >>> same_patient_id("", "")
        False
    """
    left_key = normalize_patient_id(left)
    return bool(left_key) and left_key == normalize_patient_id(right)


def patient_keys(patient: Patient) -> set[str]:
    """Return every normalized id under which a patient may be referenced."""
    keys = {normalize_patient_id(patient.id), normalize_patient_id(patient.patient_id)}
    keys.discard("")
    return keys


def patient_matches(patient: Patient, raw_id: Optional[str]) -> bool:
    """Check whether `raw_id`, in any accepted form, refers to `patient`."""
    return normalize_patient_id(raw_id) in patient_keys(patient)


def find_patient_by_any_id(
    patients: Iterable[Patient],
    raw_id: Optional[str],
) -> Optional[Patient]:
    """
    Find the patient referenced by `raw_id`.

    Args:
        patients: Patient records to search, in store order
        raw_id: Id in any accepted form

    Returns:
        First matching patient, or None
    """
    key = normalize_patient_id(raw_id)
    if not key:
        return None
    for patient in patients:
        if key in patient_keys(patient):
            return patient
    return None


def belongs_to_any(patients: Iterable[Patient], raw_id: Optional[str]) -> bool:
    """Check whether `raw_id` refers to one of `patients`."""
    return find_patient_by_any_id(patients, raw_id) is not None
