from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from society.core.database import get_db
from society.models.user import User
from society.models.maintenance import BillStatus
from society.schemas.auth import MessageResponse
from society.schemas.maintenance import (
    BillCreate,
    BulkCreateRequest,
    BillResponse,
    BulkResult,
    PayRequest,
    BillStats,
)
from society.modules.auth.dependencies import get_current_user, get_current_admin
from society.services.billing_service import billing_service


router = APIRouter()


@router.get("", response_model=List[BillResponse])
async def list_bills(
    month: Optional[str] = Query(None, description="Billing month name"),
    year: Optional[int] = Query(None),
    bill_status: Optional[BillStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List bills, newest period first. Residents only see their own flat's bills."""
    return await billing_service.list_bills(db, current_user, month=month, year=year, status=bill_status)


@router.post("", response_model=BillResponse, status_code=status.HTTP_201_CREATED)
async def create_bill(
    data: BillCreate,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await billing_service.create_bill(db, data)


@router.post("/bulk", response_model=BulkResult, status_code=status.HTTP_201_CREATED)
async def create_bulk(
    data: BulkCreateRequest,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create the given bills; duplicates and unknown flats are skipped"""
    return await billing_service.create_bulk(db, data.bills)


@router.get("/stats/overview", response_model=BillStats)
async def stats_overview(
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await billing_service.stats(db)


@router.put("/{bill_id}/pay", response_model=BillResponse)
async def pay_bill(
    bill_id: str,
    data: Optional[PayRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark a bill paid (payment method defaults to "online")"""
    method = data.payment_method if data else None
    return await billing_service.pay(db, current_user, bill_id, method)


@router.delete("/{bill_id}", response_model=MessageResponse)
async def delete_bill(
    bill_id: str,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await billing_service.delete_bill(db, bill_id)
    return MessageResponse(message="Maintenance bill deleted successfully")
