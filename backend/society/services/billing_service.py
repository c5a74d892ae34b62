"""
Billing Service
===============
Maintenance bills for occupied flats:
- bulk generation for a billing period (replaces that period's bills)
- explicit bulk and single bill creation
- listing scoped to the caller
- payment, deletion and the overdue sweep
- collection statistics

Bulk inserts skip rows that hit the one-bill-per-flat-per-period
constraint instead of failing the whole batch; the skipped rows are
reported back to the caller.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, delete, update, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from society.core.config import settings
from society.core.logging_config import logger
from society.core.types import generate_uuid
from society.core.exceptions import (
    ValidationError,
    MissingFieldsError,
    NoOccupiedFlatsError,
    NoFlatLinkedError,
    FlatNotFoundError,
    DuplicatePeriodError,
    BillNotFoundError,
    BillAlreadyPaidError,
    AccessDeniedError,
)
from society.models.user import User, UserRole
from society.models.flat import Flat, OCCUPIED_STATUSES
from society.models.maintenance import MaintenanceBill, BillStatus
from society.schemas.maintenance import BillCreate, BulkGenerateRequest, normalize_month
from society.services.email_service import email_service
from society.services.notifier import notifier
from society.services.occupancy_service import occupancy_service


# Rows per INSERT statement; keeps SQLite under its bound-parameter limit
INSERT_CHUNK_SIZE = 500


def default_description(month: str, year: int) -> str:
    return f"Maintenance for {month} {year}"


def _month_filter(month: Optional[str]) -> Optional[str]:
    try:
        return normalize_month(month)
    except ValueError as e:
        raise ValidationError(str(e), field="month")


class BillingService:
    """Maintenance bill lifecycle"""

    # ==================== Helpers ====================

    async def _resident_map(self, db: AsyncSession) -> Dict[Tuple[str, str], str]:
        """(wing, flat_no) -> resident user id"""
        result = await db.execute(
            select(User.id, User.wing, User.flat_no).where(
                User.role == UserRole.RESIDENT,
                User.wing.is_not(None),
                User.flat_no.is_not(None),
            )
        )
        return {(wing, flat_no): user_id for user_id, wing, flat_no in result.all()}

    def _bill_row(
        self,
        wing: str,
        flat_no: str,
        amount: float,
        month: str,
        year: int,
        due_date: Optional[date],
        description: Optional[str],
        resident_id: Optional[str],
    ) -> Dict[str, Any]:
        now = datetime.utcnow()
        return {
            "id": generate_uuid(),
            "wing": wing,
            "flat_no": flat_no,
            "amount": float(amount),
            "month": month,
            "year": year,
            "description": description or default_description(month, year),
            "status": BillStatus.PENDING,
            "due_date": due_date,
            "resident_id": resident_id,
            "created_at": now,
            "updated_at": now,
        }

    async def _insert_ignoring_conflicts(self, db: AsyncSession, rows: List[Dict[str, Any]]) -> List[str]:
        """
        INSERT ... ON CONFLICT DO NOTHING RETURNING id.

        Returns the ids that were actually inserted.
        """
        if not rows:
            return []

        dialect = db.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        table = MaintenanceBill.__table__

        inserted: List[str] = []
        for start in range(0, len(rows), INSERT_CHUNK_SIZE):
            chunk = rows[start:start + INSERT_CHUNK_SIZE]
            stmt = (
                insert(table)
                .values(chunk)
                .on_conflict_do_nothing()
                .returning(table.c.id)
            )
            result = await db.execute(stmt)
            inserted.extend(result.scalars().all())
        return inserted

    async def get_bill(self, db: AsyncSession, bill_id: str) -> MaintenanceBill:
        bill = await db.get(MaintenanceBill, bill_id)
        if not bill:
            raise BillNotFoundError(bill_id)
        return bill

    # ==================== Creation ====================

    async def generate_bulk(self, db: AsyncSession, data: BulkGenerateRequest) -> Dict[str, Any]:
        """
        Bill every occupied flat for one period.

        Existing bills for the period are deleted first, so running this
        twice leaves exactly one bill per occupied flat. Payments already
        recorded for the period are lost when it is re-run.
        """
        missing = [
            name for name, value in (
                ("month", data.month),
                ("year", data.year),
                ("amount", data.amount),
                ("dueDate", data.due_date),
            )
            if value is None
        ]
        if missing:
            raise MissingFieldsError(missing)

        result = await db.execute(
            select(Flat)
            .where(Flat.status.in_(OCCUPIED_STATUSES))
            .order_by(Flat.wing, Flat.flat_no)
        )
        flats = list(result.scalars().all())
        if not flats:
            raise NoOccupiedFlatsError()

        removed = await db.execute(
            delete(MaintenanceBill).where(
                MaintenanceBill.month == data.month,
                MaintenanceBill.year == data.year,
            ).execution_options(synchronize_session="evaluate")
        )
        replaced = removed.rowcount or 0

        residents = await self._resident_map(db)
        rows = [
            self._bill_row(
                flat.wing,
                flat.flat_no,
                data.amount,
                data.month,
                data.year,
                data.due_date,
                data.description,
                residents.get((flat.wing, flat.flat_no)) or flat.resident_id,
            )
            for flat in flats
        ]

        inserted = await self._insert_ignoring_conflicts(db, rows)
        await db.commit()

        skipped = len(rows) - len(inserted)
        logger.log_billing_event(
            "bulk_generated",
            count=len(inserted),
            month=data.month,
            year=data.year,
            replaced=replaced,
            skipped=skipped,
        )
        if skipped:
            logger.warning(f"[Billing] {skipped} bills skipped for {data.month} {data.year} (already present)")

        return {
            "success": True,
            "message": f"{len(inserted)} maintenance bills generated successfully for {data.month} {data.year}",
            "bills_count": len(inserted),
            "skipped_count": skipped,
            "replaced_count": replaced,
        }

    async def create_bulk(self, db: AsyncSession, bills: List[BillCreate]) -> Dict[str, Any]:
        """Insert an explicit list of bills; duplicates and unknown flats are skipped"""
        result = await db.execute(select(Flat.wing, Flat.flat_no))
        known = {(wing, flat_no) for wing, flat_no in result.all()}
        residents = await self._resident_map(db)

        rows = [
            self._bill_row(
                bill.wing,
                bill.flat_no,
                bill.amount,
                bill.month,
                bill.year,
                bill.due_date,
                bill.description,
                residents.get((bill.wing, bill.flat_no)),
            )
            for bill in bills
            if (bill.wing, bill.flat_no) in known
        ]

        inserted = await self._insert_ignoring_conflicts(db, rows)
        await db.commit()

        skipped = len(bills) - len(inserted)
        logger.log_billing_event("bulk_created", count=len(inserted), skipped=skipped)

        return {
            "success": True,
            "message": f"{len(inserted)} maintenance bills created",
            "bills_count": len(inserted),
            "skipped_count": skipped,
            "replaced_count": 0,
        }

    async def create_bill(self, db: AsyncSession, data: BillCreate) -> MaintenanceBill:
        flat = await occupancy_service.get_flat_by_unit(db, data.wing, data.flat_no)
        if not flat:
            raise FlatNotFoundError(f"{data.wing}-{data.flat_no}")

        existing = await db.execute(
            select(MaintenanceBill.id).where(
                MaintenanceBill.wing == data.wing,
                MaintenanceBill.flat_no == data.flat_no,
                MaintenanceBill.month == data.month,
                MaintenanceBill.year == data.year,
            )
        )
        if existing.first() is not None:
            raise DuplicatePeriodError(data.wing, data.flat_no, data.month, data.year)

        occupants = await occupancy_service.find_unit_residents(db, data.wing, data.flat_no)
        resident_id = occupants[0].id if occupants else flat.resident_id

        bill = MaintenanceBill(
            wing=data.wing,
            flat_no=data.flat_no,
            amount=data.amount,
            month=data.month,
            year=data.year,
            due_date=data.due_date,
            description=data.description or default_description(data.month, data.year),
            status=BillStatus.PENDING,
            resident_id=resident_id,
        )
        db.add(bill)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise DuplicatePeriodError(data.wing, data.flat_no, data.month, data.year)
        await db.refresh(bill)

        logger.log_billing_event("bill_created", bill_id=bill.id, wing=bill.wing, flat_no=bill.flat_no)
        return bill

    # ==================== Queries ====================

    async def list_bills(
        self,
        db: AsyncSession,
        user: User,
        month: Optional[str] = None,
        year: Optional[int] = None,
        status: Optional[BillStatus] = None,
    ) -> List[MaintenanceBill]:
        """Residents only see their own flat's bills. Newest period first."""
        query = select(MaintenanceBill)

        if user.role == UserRole.RESIDENT:
            if not user.has_unit:
                raise NoFlatLinkedError()
            query = query.where(
                MaintenanceBill.wing == user.wing,
                MaintenanceBill.flat_no == user.flat_no,
            )

        month = _month_filter(month)
        if month:
            query = query.where(MaintenanceBill.month == month)
        if year is not None:
            query = query.where(MaintenanceBill.year == year)
        if status is not None:
            query = query.where(MaintenanceBill.status == status)

        result = await db.execute(query)
        bills = list(result.scalars().all())
        bills.sort(key=lambda b: (b.year, b.month_number, b.created_at), reverse=True)
        return bills

    # ==================== Transitions ====================

    async def pay(
        self,
        db: AsyncSession,
        user: User,
        bill_id: str,
        payment_method: Optional[str] = None,
    ) -> MaintenanceBill:
        """
        Mark a bill paid.

        Residents may only pay bills of their own flat. A paid bill cannot
        be paid again. The confirmation email is best effort.
        """
        bill = await self.get_bill(db, bill_id)

        if user.role == UserRole.RESIDENT:
            if not user.has_unit:
                raise NoFlatLinkedError()
            if (bill.wing, bill.flat_no) != (user.wing, user.flat_no):
                logger.warning(
                    f"[Billing] {user.email} tried to pay bill {bill.id} of {bill.wing}-{bill.flat_no}"
                )
                raise AccessDeniedError()

        if bill.status == BillStatus.PAID:
            raise BillAlreadyPaidError(bill.id)

        method = payment_method or settings.DEFAULT_PAYMENT_METHOD
        result = await db.execute(
            update(MaintenanceBill)
            .where(MaintenanceBill.id == bill.id, MaintenanceBill.status != BillStatus.PAID)
            .values(status=BillStatus.PAID, paid_date=datetime.utcnow(), payment_method=method)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            # paid concurrently
            raise BillAlreadyPaidError(bill.id)
        await db.commit()
        await db.refresh(bill)

        logger.log_billing_event(
            "bill_paid",
            bill_id=bill.id,
            wing=bill.wing,
            flat_no=bill.flat_no,
            payment_method=method,
        )

        recipient = await self._payment_recipient(db, bill)
        if recipient is not None:
            notifier.dispatch(
                email_service.send_payment_confirmation(
                    recipient.email, recipient.name, bill.amount, bill.month, bill.year
                ),
                f"payment confirmation to {recipient.email}",
            )
        return bill

    async def _payment_recipient(self, db: AsyncSession, bill: MaintenanceBill) -> Optional[User]:
        occupants = await occupancy_service.find_unit_residents(db, bill.wing, bill.flat_no)
        if occupants:
            return occupants[0]
        if bill.resident_id:
            return await db.get(User, bill.resident_id)
        return None

    async def delete_bill(self, db: AsyncSession, bill_id: str) -> None:
        bill = await self.get_bill(db, bill_id)
        await db.delete(bill)
        await db.commit()
        logger.log_billing_event("bill_deleted", bill_id=bill_id, status=bill.status.value)

    async def mark_overdue(self, db: AsyncSession, as_of: Optional[date] = None) -> Tuple[int, date]:
        """Move pending bills whose due date is before ``as_of`` (default today) to overdue"""
        as_of = as_of or datetime.utcnow().date()
        result = await db.execute(
            select(MaintenanceBill).where(
                MaintenanceBill.status == BillStatus.PENDING,
                MaintenanceBill.due_date.is_not(None),
                MaintenanceBill.due_date < as_of,
            )
        )
        bills = list(result.scalars().all())
        for bill in bills:
            bill.status = BillStatus.OVERDUE
        await db.commit()

        count = len(bills)
        logger.log_billing_event("overdue_sweep", count=count, as_of=as_of.isoformat())
        return count, as_of

    # ==================== Statistics ====================

    async def stats(
        self,
        db: AsyncSession,
        month: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Bill counts and amounts per status, optionally for one period.

        ``outstanding_amount`` is everything unpaid (pending plus overdue).
        """
        query = (
            select(
                MaintenanceBill.status,
                func.count(MaintenanceBill.id),
                func.coalesce(func.sum(MaintenanceBill.amount), 0),
            )
            .group_by(MaintenanceBill.status)
        )
        month = _month_filter(month)
        if month:
            query = query.where(MaintenanceBill.month == month)
        if year is not None:
            query = query.where(MaintenanceBill.year == year)

        counts = {status: 0 for status in BillStatus}
        amounts = {status: 0.0 for status in BillStatus}
        result = await db.execute(query)
        for status, count, amount in result.all():
            counts[BillStatus(status)] = count
            amounts[BillStatus(status)] = float(amount)

        total_amount = sum(amounts.values())
        paid_amount = amounts[BillStatus.PAID]
        collection_rate = round(paid_amount / total_amount * 100, 2) if total_amount else 0.0

        return {
            "total_bills": sum(counts.values()),
            "paid_bills": counts[BillStatus.PAID],
            "pending_bills": counts[BillStatus.PENDING],
            "overdue_bills": counts[BillStatus.OVERDUE],
            "total_amount": total_amount,
            "paid_amount": paid_amount,
            "pending_amount": amounts[BillStatus.PENDING],
            "overdue_amount": amounts[BillStatus.OVERDUE],
            "outstanding_amount": total_amount - paid_amount,
            "collection_rate": collection_rate,
        }

    async def dashboard_stats(self, db: AsyncSession) -> Dict[str, int]:
        total_residents = await db.scalar(
            select(func.count(User.id)).where(User.role == UserRole.RESIDENT, User.is_verified.is_(True))
        )
        total_flats, vacant_flats = await occupancy_service.count_flats(db)
        pending = await db.scalar(
            select(func.count(MaintenanceBill.id)).where(MaintenanceBill.status == BillStatus.PENDING)
        )
        return {
            "total_residents": total_residents or 0,
            "total_flats": total_flats,
            "vacant_flats": vacant_flats,
            "occupied_flats": total_flats - vacant_flats,
            "pending_payments": pending or 0,
        }


# Singleton instance
billing_service = BillingService()
