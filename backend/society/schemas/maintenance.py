"""
Maintenance Schemas - bill creation, bulk generation, payment and stats
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, field_validator

from society.core.config import settings
from society.models.maintenance import BillStatus, BillingMonth
from society.schemas.base import CamelModel, normalize_wing, normalize_flat_no


def normalize_month(value):
    """Accept any casing ("March", " MARCH ") and return the stored name"""
    if value is None:
        return None
    if isinstance(value, BillingMonth):
        return value.value
    name = str(value).strip().lower()
    if not name:
        return None
    try:
        return BillingMonth(name).value
    except ValueError:
        raise ValueError(f"Invalid month '{value}'. Use a full English month name.")


def check_year(value):
    if value is None:
        return None
    if not settings.BILLING_YEAR_MIN <= value <= settings.BILLING_YEAR_MAX:
        raise ValueError(
            f"Year must be between {settings.BILLING_YEAR_MIN} and {settings.BILLING_YEAR_MAX}"
        )
    return value


class BillCreate(CamelModel):
    """Single bill for one flat and one period"""
    wing: str = Field(..., min_length=1, max_length=20)
    flat_no: str = Field(..., min_length=1, max_length=20)
    amount: float = Field(..., ge=0, description="Bill amount, never negative")
    month: str = Field(..., description="Full month name, case-insensitive")
    year: int
    due_date: date
    description: Optional[str] = None

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

    @field_validator('month')
    @classmethod
    def clean_month(cls, v):
        v = normalize_month(v)
        if not v:
            raise ValueError("Month is required")
        return v

    @field_validator('year')
    @classmethod
    def clean_year(cls, v):
        return check_year(v)


class BulkCreateRequest(CamelModel):
    bills: List[BillCreate] = Field(..., min_length=1)


class BulkGenerateRequest(CamelModel):
    """
    Bulk generation for every occupied flat.

    All fields are optional at the schema level; the billing service reports
    the missing ones together as a single validation error.
    """
    month: Optional[str] = None
    year: Optional[int] = None
    amount: Optional[float] = Field(None, ge=0)
    due_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator('month')
    @classmethod
    def clean_month(cls, v):
        return normalize_month(v)

    @field_validator('year')
    @classmethod
    def clean_year(cls, v):
        return check_year(v)


class PayRequest(CamelModel):
    payment_method: Optional[str] = Field(None, max_length=50)

    @field_validator('payment_method')
    @classmethod
    def clean_method(cls, v):
        if v is None:
            return None
        return v.strip() or None


class MarkOverdueRequest(CamelModel):
    as_of: Optional[date] = Field(None, description="Bills due before this date become overdue (default: today)")


class BillResponse(CamelModel):
    id: str
    wing: str
    flat_no: str
    amount: float
    month: str
    year: int
    description: Optional[str] = None
    status: BillStatus
    due_date: Optional[date] = None
    paid_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    resident_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class BulkResult(CamelModel):
    success: bool = True
    message: str
    bills_count: int
    skipped_count: int = 0
    replaced_count: int = 0


class MarkOverdueResult(CamelModel):
    message: str
    updated_count: int
    as_of: date


class BillStats(CamelModel):
    total_bills: int = 0
    paid_bills: int = 0
    pending_bills: int = 0
    overdue_bills: int = 0
    total_amount: float = 0.0
    paid_amount: float = 0.0
    pending_amount: float = 0.0
    overdue_amount: float = 0.0
    outstanding_amount: float = 0.0
    collection_rate: float = 0.0


class DashboardStats(CamelModel):
    total_residents: int
    total_flats: int
    vacant_flats: int
    occupied_flats: int
    pending_payments: int
