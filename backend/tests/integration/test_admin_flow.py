"""
Integration Tests for flat registry and admin operations
"""
import pytest

from conftest import auth_headers_for, create_flat, create_resident, TEST_PASSWORD


API = "/api/v1"


class TestFlats:

    @pytest.mark.asyncio
    async def test_create_list_and_filter(self, client, admin_headers, resident_headers):
        for wing, flat_no in (("b", "201"), ("A", "102")):
            response = await client.post(
                f"{API}/flats", json={"wing": wing, "flatNo": flat_no, "parkingSlots": 1}, headers=admin_headers
            )
            assert response.status_code == 201
            assert response.json()["status"] == "vacant"

        flats = await client.get(f"{API}/flats", headers=resident_headers)
        wing_b = await client.get(f"{API}/flats", params={"wing": "b"}, headers=resident_headers)
        wings = await client.get(f"{API}/flats/wings", headers=resident_headers)

        assert [(f["wing"], f["flatNo"]) for f in flats.json()] == [("A", "101"), ("A", "102"), ("B", "201")]
        assert [f["flatNo"] for f in wing_b.json()] == ["201"]
        assert wings.json() == ["A", "B"]

    @pytest.mark.asyncio
    async def test_duplicate_flat(self, client, admin_headers, flat_a101):
        response = await client.post(f"{API}/flats", json={"wing": "A", "flatNo": "101"}, headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_resident_cannot_edit(self, client, resident_headers, flat_a101):
        response = await client.post(f"{API}/flats", json={"wing": "C", "flatNo": "1"}, headers=resident_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_vacant_flat_cannot_become_occupied(self, client, admin_headers, flat_a101):
        response = await client.put(f"{API}/flats/{flat_a101.id}", json={"status": "rented"}, headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_detaches_resident(self, client, db_session, admin_headers, flat_a101, resident_a101):
        response = await client.delete(f"{API}/flats/{flat_a101.id}", headers=admin_headers)
        assert response.status_code == 200

        me = await client.get(f"{API}/auth/me", headers=auth_headers_for(resident_a101))
        assert me.json()["wing"] is None
        assert me.json()["flat"] is None

    @pytest.mark.asyncio
    async def test_unknown_flat(self, client, admin_headers):
        response = await client.delete(f"{API}/flats/missing", headers=admin_headers)

        assert response.status_code == 404


class TestAdmin:

    @pytest.mark.asyncio
    async def test_dashboard(self, client, db_session, admin_headers, resident_a101):
        await create_flat(db_session, "A", "102")

        response = await client.get(f"{API}/admin/dashboard-stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "totalResidents": 1,
            "totalFlats": 2,
            "vacantFlats": 1,
            "occupiedFlats": 1,
            "pendingPayments": 0,
        }

    @pytest.mark.asyncio
    async def test_admin_routes_need_admin(self, client, resident_headers):
        for path in ("/admin/dashboard-stats", "/admin/users", "/admin/available-residents", "/admin/financial-summary"):
            response = await client.get(f"{API}{path}", headers=resident_headers)
            assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_assign_available_resident(self, client, db_session, admin_headers, flat_a101):
        user = await create_resident(db_session, name="Unlinked")

        available = await client.get(f"{API}/admin/available-residents", headers=admin_headers)
        assert [r["id"] for r in available.json()] == [user.id]

        response = await client.post(
            f"{API}/admin/assign-resident",
            json={"userId": user.id, "flatId": flat_a101.id},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["user"] == {"name": "Unlinked", "email": user.email}
        assert response.json()["flat"] == {"wing": "A", "flatNo": "101"}

        available = await client.get(f"{API}/admin/available-residents", headers=admin_headers)
        assert available.json() == []

        flats = await client.get(f"{API}/flats", headers=admin_headers)
        assert flats.json()[0]["status"] == "permanent"
        assert flats.json()[0]["residentName"] == "Unlinked"

    @pytest.mark.asyncio
    async def test_assign_to_occupied_flat(self, client, db_session, admin_headers, flat_a101, resident_a101):
        other = await create_resident(db_session)

        response = await client.post(
            f"{API}/admin/assign-resident",
            json={"userId": other.id, "flatId": flat_a101.id},
            headers=admin_headers,
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_deactivate_user(self, client, admin_headers, resident_a101):
        response = await client.put(
            f"{API}/admin/users/{resident_a101.id}/status", json={"isActive": False}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["isActive"] is False

        login = await client.post(
            f"{API}/auth/login", json={"email": resident_a101.email, "password": TEST_PASSWORD}
        )
        assert login.status_code == 401

        me = await client.get(f"{API}/auth/me", headers=auth_headers_for(resident_a101))
        assert me.status_code == 403

    @pytest.mark.asyncio
    async def test_list_users(self, client, admin_user, admin_headers, resident_a101):
        response = await client.get(f"{API}/admin/users", headers=admin_headers)

        assert response.status_code == 200
        assert {u["email"] for u in response.json()} == {admin_user.email, resident_a101.email}

    @pytest.mark.asyncio
    async def test_mark_overdue_and_summary(self, client, admin_headers, resident_a101):
        await client.post(
            f"{API}/admin/maintenance/bulk-generate",
            json={"month": "january", "year": 2025, "amount": 3000, "dueDate": "2025-01-10"},
            headers=admin_headers,
        )

        sweep = await client.post(
            f"{API}/admin/maintenance/mark-overdue", json={"asOf": "2025-02-01"}, headers=admin_headers
        )
        assert sweep.status_code == 200
        assert sweep.json()["updatedCount"] == 1
        assert sweep.json()["asOf"] == "2025-02-01"

        summary = await client.get(
            f"{API}/admin/financial-summary", params={"month": "January", "year": 2025}, headers=admin_headers
        )
        assert summary.json()["overdueBills"] == 1
        assert summary.json()["overdueAmount"] == 3000.0

    @pytest.mark.asyncio
    async def test_mark_overdue_without_body(self, client, admin_headers):
        response = await client.post(f"{API}/admin/maintenance/mark-overdue", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["updatedCount"] == 0
