"""
Admin endpoints: dashboard, user management, resident assignment and
billing operations. All require the admin account.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from society.core.database import get_db
from society.models.user import User
from society.schemas.auth import UserResponse
from society.schemas.flat import (
    AssignResidentRequest,
    AssignResidentResponse,
    AssignedUser,
    AssignedFlat,
    AvailableResident,
    UserStatusUpdate,
)
from society.schemas.maintenance import (
    BulkGenerateRequest,
    BulkResult,
    MarkOverdueRequest,
    MarkOverdueResult,
    BillStats,
    DashboardStats,
)
from society.modules.auth.dependencies import get_current_admin
from society.services.billing_service import billing_service
from society.services.occupancy_service import occupancy_service


router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard-stats", response_model=DashboardStats)
async def dashboard_stats(
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await billing_service.dashboard_stats(db)


# ==================== Users ====================

@router.get("/users", response_model=List[UserResponse])
async def list_users(
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await occupancy_service.list_users(db)


@router.put("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: str,
    data: UserStatusUpdate,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Activate or deactivate an account"""
    return await occupancy_service.set_user_active(db, user_id, data.is_active)


@router.get("/available-residents", response_model=List[AvailableResident])
async def available_residents(
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Residents not linked to any flat"""
    return await occupancy_service.list_available_residents(db)


@router.post("/assign-resident", response_model=AssignResidentResponse)
async def assign_resident(
    data: AssignResidentRequest,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    user, flat = await occupancy_service.assign_resident(db, data.user_id, data.flat_id)
    return AssignResidentResponse(
        message="Resident assigned to flat successfully",
        user=AssignedUser(name=user.name, email=user.email),
        flat=AssignedFlat(wing=flat.wing, flat_no=flat.flat_no),
    )


# ==================== Billing ====================

@router.post("/maintenance/bulk-generate", response_model=BulkResult, status_code=status.HTTP_201_CREATED)
async def bulk_generate(
    data: BulkGenerateRequest,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Generate one bill per occupied flat for a period.

    Bills already present for the same month and year are replaced,
    including any that were paid.
    """
    return await billing_service.generate_bulk(db, data)


@router.post("/maintenance/mark-overdue", response_model=MarkOverdueResult)
async def mark_overdue(
    data: Optional[MarkOverdueRequest] = None,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Move pending bills past their due date to overdue"""
    count, as_of = await billing_service.mark_overdue(db, data.as_of if data else None)
    return MarkOverdueResult(
        message=f"{count} bills marked overdue",
        updated_count=count,
        as_of=as_of,
    )


@router.get("/financial-summary", response_model=BillStats)
async def financial_summary(
    month: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await billing_service.stats(db, month=month, year=year)
