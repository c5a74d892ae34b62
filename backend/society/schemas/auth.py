"""
Auth Schemas - registration, verification and login payloads
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from pydantic import EmailStr, Field, field_validator

from society.core.exceptions import MissingUnitError
from society.models.user import UserRole
from society.models.flat import FlatStatus
from society.schemas.base import CamelModel, normalize_wing, normalize_flat_no


# ============== Identity variant ==============

@dataclass(frozen=True)
class AdminIdentity:
    role: UserRole = UserRole.ADMIN


@dataclass(frozen=True)
class ResidentIdentity:
    wing: str
    flat_no: str
    role: UserRole = UserRole.RESIDENT

    @property
    def label(self) -> str:
        return f"{self.wing}-{self.flat_no}"


Identity = Union[AdminIdentity, ResidentIdentity]


def identity_for(role: UserRole, wing: Optional[str], flat_no: Optional[str]) -> Identity:
    """
    Build the registration identity. Residents must name a unit; any unit
    given together with role=admin is dropped.
    """
    if role == UserRole.ADMIN:
        return AdminIdentity()
    wing = normalize_wing(wing)
    flat_no = normalize_flat_no(flat_no)
    if not wing or not flat_no:
        raise MissingUnitError()
    return ResidentIdentity(wing=wing, flat_no=flat_no)


# ============== Requests ==============

class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Optional[str] = Field(None, max_length=20)
    role: UserRole = UserRole.RESIDENT
    wing: Optional[str] = Field(None, max_length=20)
    flat_no: Optional[str] = Field(None, max_length=20)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator('wing')
    @classmethod
    def clean_wing(cls, v):
        return normalize_wing(v)

    @field_validator('flat_no')
    @classmethod
    def clean_flat_no(cls, v):
        return normalize_flat_no(v)

    def identity(self) -> Identity:
        return identity_for(self.role, self.wing, self.flat_no)


class VerifyEmailRequest(CamelModel):
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)

    @field_validator('code')
    @classmethod
    def strip_code(cls, v):
        return v.strip()


class ResendVerificationRequest(CamelModel):
    email: EmailStr


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


# ============== Responses ==============

class RegisterResponse(CamelModel):
    message: str
    email: str


class MessageResponse(CamelModel):
    message: str


class FlatSummary(CamelModel):
    id: str
    wing: str
    flat_no: str
    status: FlatStatus


class LoginUser(CamelModel):
    id: str
    name: str
    email: str
    role: UserRole
    wing: Optional[str] = None
    flat_no: Optional[str] = None
    flat: Optional[FlatSummary] = None
    is_active: bool


class LoginResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: LoginUser


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    wing: Optional[str] = None
    flat_no: Optional[str] = None
    flat: Optional[FlatSummary] = None
    is_active: bool
    is_verified: bool
    created_at: datetime
