"""
Occupancy Service
=================
Keeps user accounts and flats consistent with each other:
- flat registry (create / edit / delete / list)
- unit reservation during resident registration
- admin assignment of residents to flats
- occupancy status changes and vacancy
- admin user management (listing, activation)

A user's unit is recorded twice: ``User.wing/flat_no/flat_id`` and
``Flat.resident_id/resident_name/phone``. Every mutation here updates both
sides and commits once.
"""

from typing import List, Optional, Tuple

from sqlalchemy import select, or_, and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from society.core.logging_config import logger
from society.core.exceptions import (
    FlatNotFoundError,
    FlatExistsError,
    UnitOccupiedError,
    UnknownUnitError,
    UserNotFoundError,
    InvalidRoleError,
    InvalidStatusTransitionError,
)
from society.models.user import User, UserRole
from society.models.flat import Flat, FlatStatus
from society.schemas.flat import FlatCreate, FlatUpdate


class OccupancyService:
    """Flat registry and user/flat linkage"""

    # ==================== Lookups ====================

    async def get_flat(self, db: AsyncSession, flat_id: str) -> Flat:
        flat = await db.get(Flat, flat_id)
        if not flat:
            raise FlatNotFoundError(flat_id)
        return flat

    async def get_flat_by_unit(self, db: AsyncSession, wing: str, flat_no: str) -> Optional[Flat]:
        result = await db.execute(
            select(Flat).where(Flat.wing == wing, Flat.flat_no == flat_no)
        )
        return result.scalar_one_or_none()

    async def find_unit_residents(self, db: AsyncSession, wing: str, flat_no: str) -> List[User]:
        """Resident accounts whose stored unit is (wing, flat_no)"""
        result = await db.execute(
            select(User).where(
                User.role == UserRole.RESIDENT,
                User.wing == wing,
                User.flat_no == flat_no,
            )
        )
        return list(result.scalars().all())

    async def get_user(self, db: AsyncSession, user_id: str) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def reserve_unit(self, db: AsyncSession, wing: str, flat_no: str) -> Flat:
        """
        Find the flat a new resident is registering into.

        Raises UnknownUnitError when the flat is not in the registry and
        UnitOccupiedError when it is occupied by another resident account.
        Nothing is written; the caller links the flat once the user exists.
        """
        flat = await self.get_flat_by_unit(db, wing, flat_no)
        if not flat:
            raise UnknownUnitError(f"{wing}-{flat_no}")

        if flat.is_occupied and await self.find_unit_residents(db, wing, flat_no):
            raise UnitOccupiedError(wing, flat_no)

        return flat

    async def _detach_unit_users(self, db: AsyncSession, flat: Flat) -> int:
        """
        Clear the unit of every user pointing at ``flat``.

        Users are matched by (wing, flat_no) as well as by flat_id, since the
        stored id can go stale.
        """
        users = await self._unit_users(db, flat)
        for user in users:
            user.detach_unit()
        return len(users)

    async def _unit_users(self, db: AsyncSession, flat: Flat) -> List[User]:
        result = await db.execute(
            select(User).where(
                or_(
                    and_(User.wing == flat.wing, User.flat_no == flat.flat_no),
                    User.flat_id == flat.id,
                )
            )
        )
        return list(result.scalars().all())

    # ==================== Flat registry ====================

    async def list_flats(self, db: AsyncSession, wing: Optional[str] = None) -> List[Flat]:
        query = select(Flat)
        if wing:
            query = query.where(Flat.wing == wing.strip().upper())
        query = query.order_by(Flat.wing, Flat.flat_no)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_wings(self, db: AsyncSession) -> List[str]:
        result = await db.execute(select(Flat.wing).distinct().order_by(Flat.wing))
        return list(result.scalars().all())

    async def create_flat(self, db: AsyncSession, data: FlatCreate) -> Flat:
        """Add a flat to the registry; it starts vacant"""
        if await self.get_flat_by_unit(db, data.wing, data.flat_no):
            raise FlatExistsError(data.wing, data.flat_no)

        flat = Flat(
            wing=data.wing,
            flat_no=data.flat_no,
            status=FlatStatus.VACANT,
            owner_name=data.owner_name,
            email=data.email,
            area=data.area,
            parking_slots=data.parking_slots,
        )
        db.add(flat)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise FlatExistsError(data.wing, data.flat_no)
        await db.refresh(flat)

        logger.log_occupancy_event("flat_created", flat.wing, flat.flat_no, flat_id=flat.id)
        return flat

    async def update_flat(self, db: AsyncSession, flat_id: str, data: FlatUpdate) -> Flat:
        """
        Edit a flat.

        Status rules:
        - ``vacant`` clears the flat's resident details and detaches the
          linked users
        - ``permanent`` <-> ``rented`` only while the flat is occupied
        - a vacant flat becomes occupied only through registration or
          assignment, never through a status edit

        Renaming an occupied flat moves its residents' unit along with it.
        """
        flat = await self.get_flat(db, flat_id)
        changes = data.model_dump(exclude_unset=True)

        new_status = changes.pop("status", None)
        new_wing = changes.pop("wing", None) or flat.wing
        new_flat_no = changes.pop("flat_no", None) or flat.flat_no
        renamed = (new_wing, new_flat_no) != (flat.wing, flat.flat_no)

        if new_status is not None and new_status != flat.status:
            if new_status != FlatStatus.VACANT and not flat.is_occupied:
                raise InvalidStatusTransitionError(flat.status.value, new_status.value)

        if renamed:
            clash = await self.get_flat_by_unit(db, new_wing, new_flat_no)
            if clash is not None and clash.id != flat.id:
                raise FlatExistsError(new_wing, new_flat_no)

        for field, value in changes.items():
            setattr(flat, field, value)

        if new_status == FlatStatus.VACANT:
            detached = await self._detach_unit_users(db, flat)
            flat.vacate()
            logger.log_occupancy_event(
                "flat_vacated", flat.wing, flat.flat_no, flat_id=flat.id, users_detached=detached
            )
        elif new_status is not None and new_status != flat.status:
            flat.status = new_status

        if renamed:
            old_wing, old_flat_no = flat.wing, flat.flat_no
            if flat.is_occupied:
                for user in await self._unit_users(db, flat):
                    user.wing = new_wing
                    user.flat_no = new_flat_no
                    user.flat_id = flat.id
            flat.wing = new_wing
            flat.flat_no = new_flat_no
            logger.log_occupancy_event(
                "flat_renamed", new_wing, new_flat_no, previous=f"{old_wing}-{old_flat_no}"
            )

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise FlatExistsError(new_wing, new_flat_no)
        await db.refresh(flat)
        return flat

    async def set_flat_status(self, db: AsyncSession, flat_id: str, status: FlatStatus) -> Flat:
        return await self.update_flat(db, flat_id, FlatUpdate(status=status))

    async def delete_flat(self, db: AsyncSession, flat_id: str) -> int:
        """Delete a flat and detach its users. Returns the number detached."""
        flat = await self.get_flat(db, flat_id)
        wing, flat_no = flat.wing, flat.flat_no

        detached = await self._detach_unit_users(db, flat)
        await db.delete(flat)
        await db.commit()

        logger.log_occupancy_event("flat_deleted", wing, flat_no, flat_id=flat_id, users_detached=detached)
        return detached

    # ==================== Assignment ====================

    async def assign_resident(self, db: AsyncSession, user_id: str, flat_id: str) -> Tuple[User, Flat]:
        """
        Link a resident account to a flat and mark the flat occupied.

        A flat already occupied by a different resident is rejected. If the
        resident was living in another flat, that flat is released.
        """
        user = await self.get_user(db, user_id)
        flat = await self.get_flat(db, flat_id)

        if user.role != UserRole.RESIDENT:
            raise InvalidRoleError()

        if flat.is_occupied:
            others = [u for u in await self.find_unit_residents(db, flat.wing, flat.flat_no) if u.id != user.id]
            if others or (flat.resident_id and flat.resident_id != user.id):
                raise UnitOccupiedError(flat.wing, flat.flat_no)

        if user.has_unit and (user.wing, user.flat_no) != (flat.wing, flat.flat_no):
            previous = await self.get_flat_by_unit(db, user.wing, user.flat_no)
            if previous is not None and previous.resident_id in (None, user.id):
                previous.vacate()
                logger.log_occupancy_event(
                    "flat_released", previous.wing, previous.flat_no, user_id=user.id
                )

        user.wing = flat.wing
        user.flat_no = flat.flat_no
        user.flat_id = flat.id
        flat.occupy(user)

        await db.commit()

        logger.log_occupancy_event("resident_assigned", flat.wing, flat.flat_no, user_id=user.id)
        return user, flat

    # ==================== User management ====================

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def list_available_residents(self, db: AsyncSession) -> List[User]:
        """Residents with no unit on record"""
        result = await db.execute(
            select(User)
            .where(
                User.role == UserRole.RESIDENT,
                or_(
                    User.wing.is_(None), User.wing == "",
                    User.flat_no.is_(None), User.flat_no == "",
                ),
            )
            .order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    async def set_user_active(self, db: AsyncSession, user_id: str, is_active: bool) -> User:
        user = await self.get_user(db, user_id)
        user.is_active = is_active
        await db.commit()

        logger.log_auth_event(
            event="account_status",
            success=True,
            user_email=user.email,
            is_active=is_active,
        )
        return user

    async def count_flats(self, db: AsyncSession) -> Tuple[int, int]:
        """(total, vacant)"""
        total = await db.scalar(select(func.count(Flat.id)))
        vacant = await db.scalar(select(func.count(Flat.id)).where(Flat.status == FlatStatus.VACANT))
        return total or 0, vacant or 0


# Singleton instance
occupancy_service = OccupancyService()
