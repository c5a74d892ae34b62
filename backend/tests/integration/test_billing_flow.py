"""
Integration Tests for maintenance billing
Tests for: bulk generation, resident scoping, payment rules, vacancy
"""
import pytest
import pytest_asyncio

from conftest import auth_headers_for, create_flat, create_resident


API = "/api/v1"

MARCH = {"month": "March", "year": 2025, "amount": 5000, "dueDate": "2025-03-10"}


@pytest_asyncio.fixture
async def neighbour(db_session):
    """Resident U2 living in A-102"""
    flat = await create_flat(db_session, "A", "102")
    user = await create_resident(db_session, flat, name="Resident Two")
    return user, flat


async def generate(client, headers, **overrides):
    return await client.post(f"{API}/admin/maintenance/bulk-generate", json={**MARCH, **overrides}, headers=headers)


class TestBulkGenerate:

    @pytest.mark.asyncio
    async def test_generate_and_regenerate(self, client, admin_headers, resident_a101, neighbour):
        first = await generate(client, admin_headers)
        second = await generate(client, admin_headers)

        assert first.status_code == 201
        assert first.json()["billsCount"] == 2
        assert first.json()["success"] is True
        assert second.json()["billsCount"] == 2
        assert second.json()["replacedCount"] == 2

        bills = await client.get(f"{API}/maintenance", params={"month": "march", "year": 2025}, headers=admin_headers)
        assert len(bills.json()) == 2

    @pytest.mark.asyncio
    async def test_missing_fields(self, client, admin_headers, resident_a101):
        response = await client.post(
            f"{API}/admin/maintenance/bulk-generate", json={"month": "March"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert "year, amount, dueDate are required" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_nothing_to_bill(self, client, admin_headers, flat_a101):
        response = await generate(client, admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_month(self, client, admin_headers, resident_a101):
        response = await generate(client, admin_headers, month="Smarch")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_resident_cannot_generate(self, client, resident_headers):
        response = await generate(client, resident_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_vacated_flat_not_billed(self, client, admin_headers, resident_a101, neighbour):
        _, flat_a102 = neighbour
        await generate(client, admin_headers)

        response = await client.put(f"{API}/flats/{flat_a102.id}", json={"status": "vacant"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["residentName"] is None

        response = await generate(client, admin_headers)
        assert response.json()["billsCount"] == 1

        bills = await client.get(f"{API}/maintenance", headers=admin_headers)
        assert [(b["wing"], b["flatNo"]) for b in bills.json()] == [("A", "101")]


class TestPayment:

    @pytest.mark.asyncio
    async def test_resident_payment_rules(self, client, admin_headers, resident_a101, resident_headers, neighbour):
        u2, _ = neighbour
        await generate(client, admin_headers)

        own = await client.get(f"{API}/maintenance", headers=resident_headers)
        assert own.status_code == 200
        assert len(own.json()) == 1
        bill = own.json()[0]
        assert bill["flatNo"] == "101"
        assert bill["status"] == "pending"
        assert bill["dueDate"] == "2025-03-10"

        denied = await client.put(
            f"{API}/maintenance/{bill['id']}/pay", json={"paymentMethod": "upi"}, headers=auth_headers_for(u2)
        )
        assert denied.status_code == 403

        paid = await client.put(
            f"{API}/maintenance/{bill['id']}/pay", json={"paymentMethod": "upi"}, headers=resident_headers
        )
        assert paid.status_code == 200
        assert paid.json()["status"] == "paid"
        assert paid.json()["paymentMethod"] == "upi"
        assert paid.json()["paidDate"] is not None

        again = await client.put(f"{API}/maintenance/{bill['id']}/pay", headers=resident_headers)
        assert again.status_code == 400
        assert again.json()["error"]["code"] == "BILL_ALREADY_PAID"

    @pytest.mark.asyncio
    async def test_pay_without_body(self, client, admin_headers, resident_a101, resident_headers):
        await generate(client, admin_headers)
        bill = (await client.get(f"{API}/maintenance", headers=resident_headers)).json()[0]

        response = await client.put(f"{API}/maintenance/{bill['id']}/pay", headers=resident_headers)

        assert response.status_code == 200
        assert response.json()["paymentMethod"] == "online"

    @pytest.mark.asyncio
    async def test_unknown_bill(self, client, admin_headers):
        response = await client.put(f"{API}/maintenance/missing/pay", headers=admin_headers)

        assert response.status_code == 404


class TestBills:

    @pytest.mark.asyncio
    async def test_create_and_delete(self, client, admin_headers, resident_a101):
        created = await client.post(
            f"{API}/maintenance",
            json={"wing": "a", "flatNo": "101", "amount": 1200, "month": "APRIL", "year": 2025, "dueDate": "2025-04-10"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json()["month"] == "april"
        assert created.json()["residentId"] == resident_a101.id

        duplicate = await client.post(
            f"{API}/maintenance",
            json={"wing": "A", "flatNo": "101", "amount": 1, "month": "april", "year": 2025, "dueDate": "2025-04-10"},
            headers=admin_headers,
        )
        assert duplicate.status_code == 400

        deleted = await client.delete(f"{API}/maintenance/{created.json()['id']}", headers=admin_headers)
        assert deleted.status_code == 200

    @pytest.mark.asyncio
    async def test_negative_amount(self, client, admin_headers, resident_a101):
        response = await client.post(
            f"{API}/maintenance",
            json={"wing": "A", "flatNo": "101", "amount": -5, "month": "april", "year": 2025, "dueDate": "2025-04-10"},
            headers=admin_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_bulk_create(self, client, admin_headers, resident_a101):
        bill = {"wing": "A", "flatNo": "101", "amount": 900, "month": "may", "year": 2025, "dueDate": "2025-05-10"}

        response = await client.post(
            f"{API}/maintenance/bulk",
            json={"bills": [bill, bill, {**bill, "wing": "Q"}]},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["billsCount"] == 1
        assert response.json()["skippedCount"] == 2

    @pytest.mark.asyncio
    async def test_status_filter(self, client, admin_headers, resident_a101, resident_headers):
        await generate(client, admin_headers)

        pending = await client.get(f"{API}/maintenance", params={"status": "pending"}, headers=resident_headers)
        paid = await client.get(f"{API}/maintenance", params={"status": "paid"}, headers=resident_headers)

        assert len(pending.json()) == 1
        assert paid.json() == []

    @pytest.mark.asyncio
    async def test_stats_overview(self, client, admin_headers, resident_a101, resident_headers):
        await generate(client, admin_headers)

        response = await client.get(f"{API}/maintenance/stats/overview", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["totalBills"] == 1
        assert response.json()["pendingAmount"] == 5000.0
        assert response.json()["outstandingAmount"] == 5000.0
        assert response.json()["collectionRate"] == 0.0

        assert (await client.get(f"{API}/maintenance/stats/overview", headers=resident_headers)).status_code == 403
