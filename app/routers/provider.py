"""Provider router - RPC endpoints for pledges, patients and provider dashboards."""
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from typing import Optional

from app.database import get_database
from app.exceptions import RDMHealthError
from app.models.activity import Alert, ScheduleItem, Tip, TipCreate
from app.models.dashboard import PatientPage, PatientProfile, ProviderDashboard, ProviderEarnings
from app.models.pledge import Pledge, PledgeCreate
from app.models.user import Patient
from app.routers.errors import to_http_exception
from app.services.notification_service import NotificationSender, get_notification_sender
from app.services.patient_service import PatientService
from app.services.pledge_service import PledgeService
from app.services.provider_service import PatientStatusFilter, ProviderService
from app.utils.ids import parse_iso_date


router = APIRouter(prefix="/rpc/provider", tags=["provider"])


class PledgeIdRequest(BaseModel):
    pledge_id: str


class PatientIdRequest(BaseModel):
    patient_id: str


class MyPledgesRequest(BaseModel):
    user_id: Optional[str] = None


class PatientStatusRequest(BaseModel):
    patient_id: str
    status: str


class ProviderScopeRequest(BaseModel):
    provider_id: Optional[str] = None


class ScheduleRequest(BaseModel):
    date: Optional[str] = None
    provider_id: Optional[str] = None

    @field_validator("date")
    @classmethod
    def date_is_iso(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return parse_iso_date(value).isoformat()


class RecentWishesRequest(BaseModel):
    limit: int = Field(10, ge=1)
    provider_id: Optional[str] = None


class PatientsRequest(BaseModel):
    search: Optional[str] = None
    status: Optional[PatientStatusFilter] = None
    limit: int = Field(50, ge=1)
    offset: int = Field(0, ge=0)
    provider_id: Optional[str] = None


class PatientProfileRequest(BaseModel):
    patient_id: str
    provider_id: Optional[str] = None


class SentTipsRequest(BaseModel):
    patient_id: Optional[str] = None


@router.post("/createPledge", response_model=Pledge, status_code=status.HTTP_201_CREATED)
async def create_pledge(
    pledge: PledgeCreate,
    db=Depends(get_database),
    notifier: NotificationSender = Depends(get_notification_sender),
):
    """
    Create a pending pledge for a patient.

    Args:
        pledge: Pledge creation data (patient id in any accepted form)
        db: Database connection
        notifier: Notification sender for patient and provider emails

    Returns:
        Created pledge

    Raises:
        HTTPException: If the patient does not exist (404)
    """
    service = PledgeService(db, notifier)

    try:
        return await service.create_pledge(pledge)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/acceptPledge", response_model=Pledge)
async def accept_pledge(
    request: PledgeIdRequest,
    db=Depends(get_database),
):
    """
    Accept a pledge and start its window.

    Raises:
        HTTPException: If the pledge does not exist (404) or can no longer be accepted (400)
    """
    service = PledgeService(db)

    try:
        return await service.accept_pledge(request.pledge_id)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/completePledge", response_model=Pledge)
async def complete_pledge(
    request: PledgeIdRequest,
    db=Depends(get_database),
):
    """Mark an active or at-risk pledge as completed."""
    service = PledgeService(db)

    try:
        return await service.complete_pledge(request.pledge_id)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/markPledgeAtRisk", response_model=Pledge)
async def mark_pledge_at_risk(
    request: PledgeIdRequest,
    db=Depends(get_database),
):
    """Flag an active pledge as at risk."""
    service = PledgeService(db)

    try:
        return await service.mark_pledge_at_risk(request.pledge_id)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getPatientPledges", response_model=list[Pledge])
async def get_patient_pledges(
    request: PatientIdRequest,
    db=Depends(get_database),
):
    """
    List all pledges of a patient, newest first.

    Raises:
        HTTPException: If the patient does not exist (404)
    """
    service = PledgeService(db)

    try:
        return await service.get_patient_pledges(request.patient_id)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getMyPledges", response_model=list[Pledge])
async def get_my_pledges(
    request: Optional[MyPledgesRequest] = None,
    db=Depends(get_database),
):
    """
    List the pending and accepted active pledges a patient can see.

    - Empty list without a user id
    """
    service = PledgeService(db)

    try:
        return await service.get_my_pledges(request.user_id if request else None)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/updatePatientStatus", response_model=Patient)
async def update_patient_status(
    request: PatientStatusRequest,
    db=Depends(get_database),
):
    """
    Set a patient's status.

    Raises:
        HTTPException: If the patient does not exist (404)
    """
    service = PatientService(db)

    try:
        return await service.update_patient_status(request.patient_id, request.status)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getPatients", response_model=PatientPage)
async def get_patients(
    request: Optional[PatientsRequest] = None,
    db=Depends(get_database),
):
    """
    Page through the patient directory.

    - Search matches name, display id or diagnosis, case-insensitively
    - Optional status and provider filters
    """
    request = request or PatientsRequest()
    service = ProviderService(db)
    return await service.get_patients(
        search=request.search,
        status=request.status,
        limit=request.limit,
        offset=request.offset,
        provider_id=request.provider_id,
    )


@router.post("/getPatientProfile", response_model=PatientProfile)
async def get_patient_profile(
    request: PatientProfileRequest,
    db=Depends(get_database),
):
    """
    Patient record with vitals, activity and appointments.

    Raises:
        HTTPException: If the patient does not exist (404) or is assigned
            to a different provider (403)
    """
    service = ProviderService(db)

    try:
        return await service.get_patient_profile(request.patient_id, provider_id=request.provider_id)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getDashboard", response_model=ProviderDashboard)
async def get_dashboard(
    request: Optional[ProviderScopeRequest] = None,
    db=Depends(get_database),
):
    """Provider landing page summary."""
    service = ProviderService(db)
    return await service.get_dashboard(request.provider_id if request else None)


@router.post("/getEarnings", response_model=ProviderEarnings)
async def get_earnings(
    request: Optional[ProviderScopeRequest] = None,
    db=Depends(get_database),
):
    """Provider earnings summary."""
    service = ProviderService(db)
    return await service.get_earnings(request.provider_id if request else None)


@router.post("/getSchedule", response_model=list[ScheduleItem])
async def get_schedule(
    request: Optional[ScheduleRequest] = None,
    db=Depends(get_database),
):
    """
    Schedule for one day, ordered by time.

    - Date defaults to today (UTC)
    """
    request = request or ScheduleRequest()
    service = ProviderService(db)
    return await service.get_schedule(schedule_date=request.date, provider_id=request.provider_id)


@router.post("/getCriticalAlerts", response_model=list[Alert])
async def get_critical_alerts(
    request: Optional[ProviderScopeRequest] = None,
    db=Depends(get_database),
):
    """Alerts for the provider's patients, newest first."""
    service = ProviderService(db)
    return await service.get_critical_alerts(request.provider_id if request else None)


@router.post("/getRecentWishes", response_model=list[Tip])
async def get_recent_wishes(
    request: Optional[RecentWishesRequest] = None,
    db=Depends(get_database),
):
    """Newest tips from the provider's patients."""
    request = request or RecentWishesRequest()
    service = ProviderService(db)
    return await service.get_recent_wishes(limit=request.limit, provider_id=request.provider_id)


@router.post("/sendTip", response_model=Tip, status_code=status.HTTP_201_CREATED)
async def send_tip(
    tip: TipCreate,
    db=Depends(get_database),
):
    """
    Record a tip or rating from a patient.

    Raises:
        HTTPException: If the patient does not exist (404)
    """
    service = ProviderService(db)

    try:
        return await service.send_tip(tip)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getMySentTips", response_model=list[Tip])
async def get_my_sent_tips(
    request: Optional[SentTipsRequest] = None,
    db=Depends(get_database),
):
    """Tips a patient has sent, newest first."""
    service = ProviderService(db)
    return await service.get_my_sent_tips(request.patient_id if request else None)
