from sqlalchemy import Column, String, Date, DateTime, Float, Integer, Text, ForeignKey, UniqueConstraint, CheckConstraint
from datetime import datetime
import enum

from society.core.database import Base
from society.core.types import GUID, generate_uuid, value_enum


class BillStatus(str, enum.Enum):
    """Maintenance bill status"""
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class BillingMonth(str, enum.Enum):
    """Billing months, stored lowercase"""
    JANUARY = "january"
    FEBRUARY = "february"
    MARCH = "march"
    APRIL = "april"
    MAY = "may"
    JUNE = "june"
    JULY = "july"
    AUGUST = "august"
    SEPTEMBER = "september"
    OCTOBER = "october"
    NOVEMBER = "november"
    DECEMBER = "december"

    @property
    def number(self) -> int:
        return list(BillingMonth).index(self) + 1


class MaintenanceBill(Base):
    """One maintenance obligation for one flat and one billing period"""
    __tablename__ = "maintenance_bills"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    wing = Column(String(20), nullable=False, index=True)
    flat_no = Column(String(20), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    month = Column(String(9), nullable=False)
    year = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)

    status = Column(value_enum(BillStatus, "billstatus"), default=BillStatus.PENDING, nullable=False)
    due_date = Column(Date, nullable=True)
    paid_date = Column(DateTime, nullable=True)
    payment_method = Column(String(50), nullable=True)

    resident_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("wing", "flat_no", "month", "year", name="uq_bills_flat_period"),
        CheckConstraint("amount >= 0", name="ck_bills_amount_non_negative"),
    )

    @property
    def month_number(self) -> int:
        return BillingMonth(self.month).number

    def __repr__(self):
        return f"<MaintenanceBill {self.wing}-{self.flat_no} {self.month} {self.year} ({self.status.value if self.status else '?'})>"
