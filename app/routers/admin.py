"""Admin router - RPC endpoints for organization-wide aggregates."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import Optional

from app.database import get_database
from app.exceptions import RDMHealthError
from app.models.dashboard import (
    AdminDashboard,
    Analytics,
    CommandCenter,
    Leaderboard,
    StaffPage,
    TokenEconomy,
)
from app.routers.errors import to_http_exception
from app.services.admin_service import AdminService, AnalyticsView, RoleFilter


router = APIRouter(prefix="/rpc/admin", tags=["admin"])


class AdminRequest(BaseModel):
    admin_id: str


class LeaderboardRequest(AdminRequest):
    role: Optional[RoleFilter] = None
    search: Optional[str] = None


class AnalyticsRequest(AdminRequest):
    view: Optional[AnalyticsView] = None


class StaffRequest(AdminRequest):
    search: Optional[str] = None
    limit: int = Field(50, ge=1)
    offset: int = Field(0, ge=0)


@router.post("/getDashboard", response_model=AdminDashboard)
async def get_dashboard(
    request: AdminRequest,
    db=Depends(get_database),
):
    """Headcounts, verification backlog and the five newest alerts."""
    service = AdminService(db)

    try:
        return await service.get_dashboard(request.admin_id)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getStaff", response_model=StaffPage)
async def get_staff(
    request: StaffRequest,
    db=Depends(get_database),
):
    """
    Page through an admin's staff directory.

    Args:
        request: Admin id with optional search, limit and offset
        db: Database connection

    Returns:
        Staff page with patient counts and the total number of matches

    Raises:
        HTTPException: If the admin id is blank (400)
    """
    service = AdminService(db)

    try:
        return await service.get_staff(
            request.admin_id, search=request.search, limit=request.limit, offset=request.offset,
        )
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getLeaderboard", response_model=Leaderboard)
async def get_leaderboard(
    request: LeaderboardRequest,
    db=Depends(get_database),
):
    """
    Rank an admin's staff by Role Performance Index.

    Args:
        request: Admin id with optional role group and search filters
        db: Database connection

    Returns:
        Leaderboard

    Raises:
        HTTPException: If the admin id is blank (400)
    """
    service = AdminService(db)

    try:
        return await service.get_leaderboard(request.admin_id, role=request.role, search=request.search)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getCommandCenter", response_model=CommandCenter)
async def get_command_center(
    request: AdminRequest,
    db=Depends(get_database),
):
    """Hospital command center scores."""
    service = AdminService(db)

    try:
        return await service.get_command_center(request.admin_id)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getTokenEconomy", response_model=TokenEconomy)
async def get_token_economy(
    request: AdminRequest,
    db=Depends(get_database),
):
    """Token supply, sinks and CSR fund."""
    service = AdminService(db)

    try:
        return await service.get_token_economy(request.admin_id)
    except RDMHealthError as e:
        raise to_http_exception(e)


@router.post("/getAnalytics", response_model=Analytics, response_model_exclude_none=True)
async def get_analytics(
    request: AnalyticsRequest,
    db=Depends(get_database),
):
    """
    One analytics view: budget (default), remorse or scorecard.

    - Only the requested view is present in the response
    """
    service = AdminService(db)

    try:
        return await service.get_analytics(request.admin_id, view=request.view)
    except RDMHealthError as e:
        raise to_http_exception(e)
