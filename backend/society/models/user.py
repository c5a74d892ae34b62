from sqlalchemy import Column, String, Boolean, DateTime, Index, text
from datetime import datetime
import enum

from society.core.database import Base
from society.core.types import GUID, generate_uuid, value_enum


class UserRole(str, enum.Enum):
    """User roles"""
    ADMIN = "admin"
    RESIDENT = "resident"


class User(Base):
    """Society member account (admin or resident)"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    role = Column(value_enum(UserRole, "userrole"), default=UserRole.RESIDENT, nullable=False)

    # Unit linkage - wing/flat_no mirror the linked flat, flat_id may go stale
    wing = Column(String(20), nullable=True, index=True)
    flat_no = Column(String(20), nullable=True, index=True)
    flat_id = Column(GUID, nullable=True)

    is_verified = Column(Boolean, default=False, nullable=False)
    verification_code = Column(String(12), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        # At most one admin account
        Index(
            "uq_users_single_admin",
            "role",
            unique=True,
            sqlite_where=text("role = 'admin'"),
            postgresql_where=text("role = 'admin'"),
        ),
    )

    @property
    def has_unit(self) -> bool:
        return bool(self.wing and self.flat_no)

    def detach_unit(self) -> None:
        """Clear the flat linkage"""
        self.wing = None
        self.flat_no = None
        self.flat_id = None

    def __repr__(self):
        return f"<User {self.email}>"
