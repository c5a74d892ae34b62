"""
Flat Schemas - flat registry and resident assignment payloads
"""
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from society.models.flat import FlatStatus
from society.schemas.base import CamelModel, normalize_wing, normalize_flat_no


class FlatCreate(CamelModel):
    """New flats always start vacant"""
    wing: str = Field(..., min_length=1, max_length=20)
    flat_no: str = Field(..., min_length=1, max_length=20)
    owner_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    area: Optional[float] = Field(None, ge=0)
    parking_slots: Optional[int] = Field(None, ge=0)

    @field_validator('wing')
    @classmethod
    def clean_wing(cls, v):
        v = normalize_wing(v)
        if not v:
            raise ValueError("Wing is required")
        return v

    @field_validator('flat_no')
    @classmethod
    def clean_flat_no(cls, v):
        v = normalize_flat_no(v)
        if not v:
            raise ValueError("Flat No is required")
        return v


class FlatUpdate(CamelModel):
    wing: Optional[str] = Field(None, max_length=20)
    flat_no: Optional[str] = Field(None, max_length=20)
    status: Optional[FlatStatus] = None
    owner_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    area: Optional[float] = Field(None, ge=0)
    parking_slots: Optional[int] = Field(None, ge=0)

    @field_validator('wing')
    @classmethod
    def clean_wing(cls, v):
        return normalize_wing(v)

    @field_validator('flat_no')
    @classmethod
    def clean_flat_no(cls, v):
        return normalize_flat_no(v)


class FlatResponse(CamelModel):
    id: str
    wing: str
    flat_no: str
    status: FlatStatus
    owner_name: Optional[str] = None
    resident_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    area: Optional[float] = None
    parking_slots: Optional[int] = None
    resident_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class AssignResidentRequest(CamelModel):
    user_id: str
    flat_id: str


class AssignedUser(CamelModel):
    name: str
    email: str


class AssignedFlat(CamelModel):
    wing: str
    flat_no: str


class AssignResidentResponse(CamelModel):
    message: str
    user: AssignedUser
    flat: AssignedFlat


class UserStatusUpdate(CamelModel):
    is_active: bool


class AvailableResident(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime
