"""
Unit Tests for OccupancyService
Tests for: flat registry, status transitions, vacancy, assignment
"""
import pytest

from society.core.exceptions import (
    FlatNotFoundError,
    FlatExistsError,
    UnitOccupiedError,
    UserNotFoundError,
    InvalidRoleError,
    InvalidStatusTransitionError,
)
from society.models.flat import FlatStatus
from society.schemas.flat import FlatCreate, FlatUpdate
from society.services.occupancy_service import occupancy_service

from conftest import create_flat, create_resident


class TestFlatRegistry:

    @pytest.mark.asyncio
    async def test_create_starts_vacant(self, db_session):
        flat = await occupancy_service.create_flat(
            db_session, FlatCreate(wing="c", flat_no="301", owner_name="Owner", area=950.5)
        )

        assert flat.id is not None
        assert flat.wing == "C"
        assert flat.status == FlatStatus.VACANT
        assert flat.resident_id is None
        assert flat.area == 950.5

    @pytest.mark.asyncio
    async def test_duplicate_unit_rejected(self, db_session, flat_a101):
        with pytest.raises(FlatExistsError):
            await occupancy_service.create_flat(db_session, FlatCreate(wing="A", flat_no="101"))

    @pytest.mark.asyncio
    async def test_list_and_filter_by_wing(self, db_session):
        await create_flat(db_session, "B", "2")
        await create_flat(db_session, "A", "2")
        await create_flat(db_session, "A", "1")

        all_flats = await occupancy_service.list_flats(db_session)
        wing_a = await occupancy_service.list_flats(db_session, "a")

        assert [f.label for f in all_flats] == ["A-1", "A-2", "B-2"]
        assert [f.label for f in wing_a] == ["A-1", "A-2"]
        assert await occupancy_service.list_wings(db_session) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_unknown_flat(self, db_session):
        with pytest.raises(FlatNotFoundError):
            await occupancy_service.update_flat(db_session, "missing-id", FlatUpdate(area=10))
        with pytest.raises(FlatNotFoundError):
            await occupancy_service.delete_flat(db_session, "missing-id")

    @pytest.mark.asyncio
    async def test_count_flats(self, db_session, resident_a101):
        await create_flat(db_session, "A", "102")

        assert await occupancy_service.count_flats(db_session) == (2, 1)


class TestStatusTransitions:

    @pytest.mark.asyncio
    async def test_vacant_detaches_residents(self, db_session, flat_a101, resident_a101):
        flat = await occupancy_service.update_flat(
            db_session, flat_a101.id, FlatUpdate(status=FlatStatus.VACANT)
        )

        assert flat.status == FlatStatus.VACANT
        assert flat.resident_name is None
        assert flat.phone is None
        assert flat.resident_id is None
        await db_session.refresh(resident_a101)
        assert resident_a101.wing is None
        assert resident_a101.flat_no is None
        assert resident_a101.flat_id is None

    @pytest.mark.asyncio
    async def test_vacant_detaches_user_with_stale_flat_id(self, db_session, flat_a101):
        user = await create_resident(db_session, wing="A", flat_no="101", flat_id="stale-id")

        await occupancy_service.set_flat_status(db_session, flat_a101.id, FlatStatus.VACANT)

        await db_session.refresh(user)
        assert user.wing is None
        assert user.flat_id is None

    @pytest.mark.asyncio
    async def test_occupied_can_switch_to_rented(self, db_session, flat_a101, resident_a101):
        flat = await occupancy_service.set_flat_status(db_session, flat_a101.id, FlatStatus.RENTED)

        assert flat.status == FlatStatus.RENTED
        assert flat.resident_id == resident_a101.id
        await db_session.refresh(resident_a101)
        assert resident_a101.flat_no == "101"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [FlatStatus.PERMANENT, FlatStatus.RENTED])
    async def test_vacant_cannot_be_marked_occupied(self, db_session, flat_a101, status):
        with pytest.raises(InvalidStatusTransitionError):
            await occupancy_service.set_flat_status(db_session, flat_a101.id, status)

        await db_session.refresh(flat_a101)
        assert flat_a101.status == FlatStatus.VACANT

    @pytest.mark.asyncio
    async def test_edit_descriptive_fields_only(self, db_session, flat_a101, resident_a101):
        flat = await occupancy_service.update_flat(
            db_session, flat_a101.id, FlatUpdate(owner_name="New Owner", parking_slots=2)
        )

        assert flat.owner_name == "New Owner"
        assert flat.parking_slots == 2
        assert flat.status == FlatStatus.PERMANENT
        assert flat.resident_id == resident_a101.id


class TestRename:

    @pytest.mark.asyncio
    async def test_rename_moves_residents(self, db_session, flat_a101, resident_a101):
        flat = await occupancy_service.update_flat(db_session, flat_a101.id, FlatUpdate(flat_no="111"))

        assert flat.label == "A-111"
        await db_session.refresh(resident_a101)
        assert (resident_a101.wing, resident_a101.flat_no) == ("A", "111")
        assert resident_a101.flat_id == flat.id

    @pytest.mark.asyncio
    async def test_rename_onto_existing_unit(self, db_session, flat_a101):
        await create_flat(db_session, "A", "102")

        with pytest.raises(FlatExistsError):
            await occupancy_service.update_flat(db_session, flat_a101.id, FlatUpdate(flat_no="102"))


class TestDeleteFlat:

    @pytest.mark.asyncio
    async def test_delete_detaches_residents(self, db_session, flat_a101, resident_a101):
        detached = await occupancy_service.delete_flat(db_session, flat_a101.id)

        assert detached == 1
        assert await occupancy_service.get_flat_by_unit(db_session, "A", "101") is None
        await db_session.refresh(resident_a101)
        assert resident_a101.wing is None
        assert resident_a101.flat_no is None

    @pytest.mark.asyncio
    async def test_delete_vacant_flat(self, db_session, flat_a101):
        assert await occupancy_service.delete_flat(db_session, flat_a101.id) == 0


class TestAssignResident:

    @pytest.mark.asyncio
    async def test_assign_unlinked_resident(self, db_session, flat_a101):
        user = await create_resident(db_session, phone="9222222222")

        user, flat = await occupancy_service.assign_resident(db_session, user.id, flat_a101.id)

        assert (user.wing, user.flat_no, user.flat_id) == ("A", "101", flat_a101.id)
        assert flat.status == FlatStatus.PERMANENT
        assert flat.resident_name == user.name
        assert flat.phone == "9222222222"
        assert flat.resident_id == user.id

    @pytest.mark.asyncio
    async def test_reassign_releases_previous_flat(self, db_session, flat_a101, resident_a101):
        target = await create_flat(db_session, "B", "1")

        user, flat = await occupancy_service.assign_resident(db_session, resident_a101.id, target.id)

        assert (user.wing, user.flat_no) == ("B", "1")
        assert flat.resident_id == user.id
        await db_session.refresh(flat_a101)
        assert flat_a101.status == FlatStatus.VACANT
        assert flat_a101.resident_id is None

    @pytest.mark.asyncio
    async def test_reassign_to_same_flat(self, db_session, flat_a101, resident_a101):
        user, flat = await occupancy_service.assign_resident(db_session, resident_a101.id, flat_a101.id)

        assert flat.status == FlatStatus.PERMANENT
        assert flat.resident_id == user.id

    @pytest.mark.asyncio
    async def test_flat_occupied_by_someone_else(self, db_session, flat_a101, resident_a101):
        other = await create_resident(db_session)

        with pytest.raises(UnitOccupiedError):
            await occupancy_service.assign_resident(db_session, other.id, flat_a101.id)

        await db_session.refresh(flat_a101)
        assert flat_a101.resident_id == resident_a101.id

    @pytest.mark.asyncio
    async def test_admin_cannot_be_assigned(self, db_session, admin_user, flat_a101):
        with pytest.raises(InvalidRoleError):
            await occupancy_service.assign_resident(db_session, admin_user.id, flat_a101.id)

    @pytest.mark.asyncio
    async def test_unknown_user_or_flat(self, db_session, flat_a101, resident_a101):
        with pytest.raises(UserNotFoundError):
            await occupancy_service.assign_resident(db_session, "missing-user", flat_a101.id)
        with pytest.raises(FlatNotFoundError):
            await occupancy_service.assign_resident(db_session, resident_a101.id, "missing-flat")


class TestUserManagement:

    @pytest.mark.asyncio
    async def test_available_residents(self, db_session, admin_user, resident_a101):
        unlinked = await create_resident(db_session)

        available = await occupancy_service.list_available_residents(db_session)

        assert [u.id for u in available] == [unlinked.id]

    @pytest.mark.asyncio
    async def test_list_users(self, db_session, admin_user, resident_a101):
        users = await occupancy_service.list_users(db_session)

        assert {u.id for u in users} == {admin_user.id, resident_a101.id}

    @pytest.mark.asyncio
    async def test_deactivate_and_reactivate(self, db_session, resident_a101):
        user = await occupancy_service.set_user_active(db_session, resident_a101.id, False)
        assert user.is_active is False

        user = await occupancy_service.set_user_active(db_session, resident_a101.id, True)
        assert user.is_active is True

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundError):
            await occupancy_service.set_user_active(db_session, "missing-user", False)
