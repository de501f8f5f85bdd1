"""
Integration Tests for Budgets and Catalog API.

Tests budget plans, plan items, the utilization summary, and the catalog
with a real database.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

API = "/api/v1"


def utc_today():
    return datetime.now(timezone.utc).date()


class TestBudgetPlans:
    """Tests for the budget plan endpoints."""

    @pytest.mark.asyncio
    async def test_create_plan(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()

        response = await client.post(
            f"{API}/clients/{record['id']}/budget-plans",
            json={
                "plan_code": "NDIS-2024",
                "total_funds": 12000,
                "start_date": "2024-01-01",
                "end_date": "2024-12-31",
            },
        )

        data = api.assert_success(response, expected_status=201)
        assert data["data"]["client_id"] == record["id"]
        assert data["data"]["is_active"] is True
        assert data["data"]["total_funds"] == 12000

    @pytest.mark.asyncio
    async def test_inverted_dates_rejected(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()

        response = await client.post(
            f"{API}/clients/{record['id']}/budget-plans",
            json={"start_date": "2024-12-31", "end_date": "2024-01-01"},
        )

        api.assert_validation_error(response)

    @pytest.mark.asyncio
    async def test_single_active_plan(self, client: AsyncClient, clinic, api):
        """A new active plan deactivates the previous one."""
        record = await clinic.client_record()
        old = await clinic.plan(record["id"], plan_code="NDIS-2023")
        new = await clinic.plan(record["id"], plan_code="NDIS-2024")

        active = api.assert_success(
            await client.get(f"{API}/clients/{record['id']}/budget-plans/active")
        )
        assert active["data"]["id"] == new["id"]

        previous = api.assert_success(await client.get(f"{API}/budget-plans/{old['id']}"))
        assert previous["data"]["is_active"] is False

        plans = api.assert_success(await client.get(f"{API}/clients/{record['id']}/budget-plans"))
        assert {p["id"] for p in plans["data"]} == {old["id"], new["id"]}

    @pytest.mark.asyncio
    async def test_reactivating_plan(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        old = await clinic.plan(record["id"], plan_code="NDIS-2023")
        new = await clinic.plan(record["id"], plan_code="NDIS-2024")

        response = await client.put(f"{API}/budget-plans/{old['id']}", json={"is_active": True})

        api.assert_success(response)
        current = api.assert_success(await client.get(f"{API}/budget-plans/{new['id']}"))
        assert current["data"]["is_active"] is False

    @pytest.mark.asyncio
    async def test_update_checks_stored_dates(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])

        response = await client.put(
            f"{API}/budget-plans/{plan['id']}",
            json={"end_date": "2023-06-30"},
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_no_active_plan(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()

        response = await client.get(f"{API}/clients/{record['id']}/budget-plans/active")

        data = api.assert_error(response, 404, "RES_NOT_FOUND")
        assert data["error"]["message"] == "Client has no active budget plan"

    @pytest.mark.asyncio
    async def test_delete_plan_removes_items(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])
        await clinic.item(plan["id"])

        response = await client.delete(f"{API}/budget-plans/{plan['id']}")
        assert response.status_code == 204

        api.assert_error(
            await client.get(f"{API}/budget-plans/{plan['id']}/items"), 404, "RES_NOT_FOUND"
        )


class TestExpiringPlans:
    """Tests for GET /api/v1/budget-plans/expiring."""

    @pytest.mark.asyncio
    async def test_lists_plans_ending_soon(self, client: AsyncClient, clinic, api):
        today = utc_today()
        ava = await clinic.client_record("Ava Thompson")
        ben = await clinic.client_record("Ben Carter")
        soon = await clinic.plan(
            ava["id"],
            start_date=(today - timedelta(days=170)).isoformat(),
            end_date=(today + timedelta(days=10)).isoformat(),
        )
        await clinic.item(soon["id"], quantity=10, used_quantity=4)
        await clinic.plan(
            ben["id"],
            start_date=(today - timedelta(days=90)).isoformat(),
            end_date=(today + timedelta(days=90)).isoformat(),
        )

        response = await client.get(f"{API}/budget-plans/expiring")

        data = api.assert_success(response)
        assert len(data["data"]) == 1
        expiring = data["data"][0]
        assert expiring["plan_id"] == soon["id"]
        assert expiring["client_name"] == "Ava Thompson"
        assert expiring["days_remaining"] == 10
        assert expiring["total_budget"] == 1500
        assert expiring["remaining_budget"] == 900

    @pytest.mark.asyncio
    async def test_custom_window(self, client: AsyncClient, clinic, api):
        today = utc_today()
        record = await clinic.client_record()
        await clinic.plan(
            record["id"],
            start_date=(today - timedelta(days=90)).isoformat(),
            end_date=(today + timedelta(days=90)).isoformat(),
        )

        response = await client.get(f"{API}/budget-plans/expiring", params={"within_days": 120})

        data = api.assert_success(response)
        assert len(data["data"]) == 1


class TestBudgetItems:
    """Tests for plan items."""

    @pytest.mark.asyncio
    async def test_create_item(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])

        response = await client.post(
            f"{API}/budget-plans/{plan['id']}/items",
            json={"item_code": "SPEECH-1H", "unit_price": 150, "quantity": 20},
        )

        data = api.assert_success(response, expected_status=201)
        assert data["data"]["plan_id"] == plan["id"]
        assert data["data"]["used_quantity"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_code_conflicts(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])
        await clinic.item(plan["id"])

        response = await client.post(
            f"{API}/budget-plans/{plan['id']}/items",
            json={"item_code": "SPEECH-1H", "unit_price": 150, "quantity": 5},
        )

        data = api.assert_error(response, 409, "RES_CONFLICT")
        assert data["error"]["message"] == "Item SPEECH-1H is already part of this plan"

    @pytest.mark.asyncio
    async def test_price_required_outside_catalog(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])

        response = await client.post(
            f"{API}/budget-plans/{plan['id']}/items",
            json={"item_code": "CUSTOM", "quantity": 1},
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_catalog_defaults(self, client: AsyncClient, clinic, api):
        await client.post(
            f"{API}/budget-catalog",
            json={
                "item_code": "SPEECH-1H",
                "description": "Speech therapy, 1 hour",
                "default_unit_price": 193.99,
                "category": "Therapy",
            },
        )
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])

        response = await client.post(
            f"{API}/budget-plans/{plan['id']}/items",
            json={"item_code": "SPEECH-1H", "quantity": 10},
        )

        data = api.assert_success(response, expected_status=201)
        assert data["data"]["unit_price"] == 193.99
        assert data["data"]["description"] == "Speech therapy, 1 hour"
        assert data["data"]["category"] == "Therapy"

    @pytest.mark.asyncio
    async def test_update_item(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])
        item = await clinic.item(plan["id"])

        updated = api.assert_success(
            await client.put(f"{API}/budget-items/{item['id']}", json={"quantity": 30})
        )
        assert updated["data"]["quantity"] == 30

        response = await client.put(f"{API}/budget-items/{item['id']}", json={"unit_price": None})
        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_delete_item(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])
        item = await clinic.item(plan["id"])

        response = await client.delete(f"{API}/budget-items/{item['id']}")
        assert response.status_code == 204

        items = api.assert_success(await client.get(f"{API}/budget-plans/{plan['id']}/items"))
        assert items["data"] == []


class TestBudgetSummary:
    """Tests for GET /api/v1/clients/{id}/budget-summary."""

    @pytest.mark.asyncio
    async def test_summary_from_items_and_notes(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])
        await clinic.item(plan["id"])
        session = await clinic.session(record["id"], session_date="2024-03-05T10:00:00")
        await clinic.note(
            session["id"],
            products=[{"item_code": "SPEECH-1H", "quantity": 2}],
            status="completed",
        )

        response = await client.get(f"{API}/clients/{record['id']}/budget-summary")

        data = api.assert_success(response)["data"]
        assert data["plan_id"] == plan["id"]
        assert data["total_budget"] == 3000
        assert data["used_budget"] == 300
        assert data["remaining_budget"] == 2700
        assert data["utilization_percentage"] == 10.0
        assert data["start_date"] == "2024-01-01"
        assert data["end_date"] == "2024-12-31"
        assert len(data["monthly_spending"]) == 12
        march = data["monthly_spending"][2]
        assert march["month"] == "2024-03"
        assert march["actual"] == 300
        assert data["spending_events"] == [
            {
                "event_date": "2024-03-05",
                "session_id": session["id"],
                "item_code": "SPEECH-1H",
                "quantity": 2,
                "amount": 300,
            }
        ]

    @pytest.mark.asyncio
    async def test_summary_without_items_uses_total_funds(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()
        await clinic.plan(record["id"], total_funds=8000)

        data = api.assert_success(
            await client.get(f"{API}/clients/{record['id']}/budget-summary")
        )["data"]

        assert data["total_budget"] == 8000
        assert data["used_budget"] == 0
        assert data["spending_events"] == []

    @pytest.mark.asyncio
    async def test_summary_needs_active_plan(self, client: AsyncClient, clinic, api):
        record = await clinic.client_record()

        response = await client.get(f"{API}/clients/{record['id']}/budget-summary")

        api.assert_error(response, 404, "RES_NOT_FOUND")

    @pytest.mark.asyncio
    async def test_manual_reconcile(self, client: AsyncClient, clinic, api):
        """Manual edits to used quantities are corrected from session notes."""
        record = await clinic.client_record()
        plan = await clinic.plan(record["id"])
        item = await clinic.item(plan["id"])
        session = await clinic.session(record["id"])
        await clinic.note(
            session["id"],
            products=[{"item_code": "SPEECH-1H", "quantity": 1}],
            status="completed",
        )
        await client.put(f"{API}/budget-items/{item['id']}", json={"used_quantity": 9})

        response = await client.post(f"{API}/clients/{record['id']}/budget-usage/reconcile")

        data = api.assert_success(response)["data"]
        assert data["plan_id"] == plan["id"]
        assert data["updated_items"] == 1
        assert data["used_quantities"] == {"SPEECH-1H": 1}


class TestCatalog:
    """Tests for the budget catalog endpoints."""

    @pytest.mark.asyncio
    async def test_create_get_and_update(self, client: AsyncClient, api):
        created = await client.post(
            f"{API}/budget-catalog",
            json={
                "item_code": "SPEECH-1H",
                "description": "Speech therapy, 1 hour",
                "default_unit_price": 193.99,
            },
        )
        api.assert_success(created, expected_status=201)

        fetched = api.assert_success(await client.get(f"{API}/budget-catalog/SPEECH-1H"))
        assert fetched["data"]["default_unit_price"] == 193.99

        updated = api.assert_success(
            await client.put(f"{API}/budget-catalog/SPEECH-1H", json={"default_unit_price": 200})
        )
        assert updated["data"]["default_unit_price"] == 200
        assert updated["data"]["description"] == "Speech therapy, 1 hour"

    @pytest.mark.asyncio
    async def test_duplicate_code_conflicts(self, client: AsyncClient, api):
        payload = {"item_code": "REPORT", "description": "Progress report", "default_unit_price": 300}
        await client.post(f"{API}/budget-catalog", json=payload)

        response = await client.post(f"{API}/budget-catalog", json=payload)

        api.assert_error(response, 409, "RES_CONFLICT")

    @pytest.mark.asyncio
    async def test_inactive_items_hidden_by_default(self, client: AsyncClient, api):
        for code in ["ASSESS", "REPORT"]:
            await client.post(
                f"{API}/budget-catalog",
                json={"item_code": code, "description": code, "default_unit_price": 100},
            )
        await client.put(f"{API}/budget-catalog/REPORT", json={"is_active": False})

        active = api.assert_success(await client.get(f"{API}/budget-catalog"))
        assert [i["item_code"] for i in active["data"]] == ["ASSESS"]

        everything = api.assert_success(
            await client.get(f"{API}/budget-catalog", params={"include_inactive": True})
        )
        assert [i["item_code"] for i in everything["data"]] == ["ASSESS", "REPORT"]

    @pytest.mark.asyncio
    async def test_unknown_code(self, client: AsyncClient, api):
        response = await client.get(f"{API}/budget-catalog/NOPE")

        data = api.assert_error(response, 404, "RES_NOT_FOUND")
        assert data["error"]["message"] == "Catalog item not found"
