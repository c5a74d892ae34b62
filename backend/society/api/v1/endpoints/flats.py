from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from society.core.database import get_db
from society.models.user import User
from society.schemas.auth import MessageResponse
from society.schemas.flat import FlatCreate, FlatUpdate, FlatResponse
from society.modules.auth.dependencies import get_current_user, get_current_admin
from society.services.occupancy_service import occupancy_service


router = APIRouter()


@router.get("", response_model=List[FlatResponse])
async def list_flats(
    wing: Optional[str] = Query(None, description="Only flats of this wing"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List flats sorted by wing and flat number"""
    return await occupancy_service.list_flats(db, wing)


@router.get("/wings", response_model=List[str])
async def list_wings(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await occupancy_service.list_wings(db)


@router.post("", response_model=FlatResponse, status_code=status.HTTP_201_CREATED)
async def create_flat(
    data: FlatCreate,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Add a flat (always created vacant)"""
    return await occupancy_service.create_flat(db, data)


@router.put("/{flat_id}", response_model=FlatResponse)
async def update_flat(
    flat_id: str,
    data: FlatUpdate,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Edit a flat.

    Setting status to ``vacant`` also detaches the resident account(s)
    linked to the flat.
    """
    return await occupancy_service.update_flat(db, flat_id, data)


@router.delete("/{flat_id}", response_model=MessageResponse)
async def delete_flat(
    flat_id: str,
    current_admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await occupancy_service.delete_flat(db, flat_id)
    return MessageResponse(message="Flat deleted successfully")
