from sqlalchemy import Column, String, DateTime, Float, Integer, ForeignKey, UniqueConstraint
from datetime import datetime
import enum

from society.core.database import Base
from society.core.types import GUID, generate_uuid, value_enum


class FlatStatus(str, enum.Enum):
    """Occupancy status"""
    PERMANENT = "permanent"
    RENTED = "rented"
    VACANT = "vacant"


OCCUPIED_STATUSES = (FlatStatus.PERMANENT, FlatStatus.RENTED)


class Flat(Base):
    """Residential unit identified by (wing, flat_no)"""
    __tablename__ = "flats"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    wing = Column(String(20), nullable=False, index=True)
    flat_no = Column(String(20), nullable=False)

    status = Column(value_enum(FlatStatus, "flatstatus"), default=FlatStatus.VACANT, nullable=False)

    owner_name = Column(String(255), nullable=True)
    resident_name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    area = Column(Float, nullable=True)
    parking_slots = Column(Integer, nullable=True)

    resident_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("wing", "flat_no", name="uq_flats_wing_flat_no"),
    )

    @property
    def is_occupied(self) -> bool:
        return self.status in OCCUPIED_STATUSES

    @property
    def label(self) -> str:
        return f"{self.wing}-{self.flat_no}"

    def occupy(self, user) -> None:
        """Mark the flat as permanently occupied by ``user``"""
        self.status = FlatStatus.PERMANENT
        self.resident_name = user.name
        self.phone = user.phone
        self.resident_id = user.id

    def vacate(self) -> None:
        """Clear resident details and mark the flat vacant"""
        self.status = FlatStatus.VACANT
        self.resident_name = None
        self.phone = None
        self.resident_id = None

    def __repr__(self):
        return f"<Flat {self.label} ({self.status.value if self.status else '?'})>"
