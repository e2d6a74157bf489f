"""Tests for the dashboard, campaign and health endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

ITEMS = [{"description": "Service call", "quantity": 1, "rate": "100.00"}]


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class TestDashboard:

    @pytest.mark.asyncio
    async def test_empty(self, client):
        response = await client.get("/api/dashboard/metrics")

        assert response.status_code == 200
        body = response.json()
        assert body["totalRevenue"] == "0.00"
        assert body["activeJobs"] == 0
        assert body["pendingQuotes"] == 0
        assert body["pendingQuotesValue"] == "0.00"
        assert body["todaysCalls"] == 0
        assert body["recentActivity"] == {"jobs": [], "quotes": [], "invoices": [], "calls": []}
        assert len(body["revenueByDay"]) == 7
        assert list(body["revenueByDay"])[-1] == utc_today()
        assert set(body["revenueByDay"].values()) == {"0.00"}
        assert body["todaysSchedule"] == []

    @pytest.mark.asyncio
    async def test_counts_and_sums(self, client):
        await client.post("/api/jobs", json={"title": "Active", "status": "in_progress"})
        await client.post("/api/jobs", json={"title": "Done", "status": "completed"})
        quote = (await client.post("/api/quotes", json={"title": "Q", "items": ITEMS})).json()
        await client.post(f"/api/quotes/{quote['id']}/send")
        invoice = (await client.post("/api/invoices", json={"items": ITEMS})).json()
        await client.post(f"/api/invoices/{invoice['id']}/send")
        await client.post(f"/api/invoices/{invoice['id']}/pay")
        await client.post("/api/call-logs", json={"phoneNumber": "+1"})

        body = (await client.get("/api/dashboard/metrics")).json()

        assert body["totalRevenue"] == "108.25"
        assert body["activeJobs"] == 1
        assert body["pendingQuotes"] == 1
        assert body["pendingQuotesValue"] == "108.25"
        assert body["todaysCalls"] == 1
        assert body["revenueByDay"][utc_today()] == "108.25"
        assert len(body["recentActivity"]["jobs"]) == 2
        assert body["recentActivity"]["invoices"][0]["status"] == "paid"

    @pytest.mark.asyncio
    async def test_needs_auth(self, anonymous_client):
        response = await anonymous_client.get("/api/dashboard/metrics")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_failing_query_is_500_not_zeros(self, client):
        from callmate.db.repositories import InvoiceRepository

        failure = OperationalError("SELECT invoices.total", {}, Exception("database is locked"))
        with patch.object(InvoiceRepository, "paid_totals", AsyncMock(side_effect=failure)):
            response = await client.get("/api/dashboard/metrics")

        assert response.status_code == 500
        assert response.json() == {
            "error": "DATABASE_ERROR",
            "message": "Database operation failed",
        }


class TestCampaignEndpoints:

    @pytest.mark.asyncio
    async def test_crud(self, client):
        created = await client.post(
            "/api/campaigns",
            json={
                "name": "Spring tune-up",
                "type": "email",
                "targetAudience": {"lastServiceBefore": "2024-01-01"},
                "messageTemplate": "Hi {firstName}, time for a tune-up!",
            },
        )

        assert created.status_code == 201
        campaign = created.json()
        assert campaign["status"] == "draft"
        assert campaign["sentCount"] == 0

        updated = await client.patch(
            f"/api/campaigns/{campaign['id']}",
            json={"status": "active", "sentCount": 120, "openCount": 48},
        )
        assert updated.json()["status"] == "active"
        assert updated.json()["sentCount"] == 120
        assert updated.json()["name"] == "Spring tune-up"

        listed = await client.get("/api/campaigns")
        assert [c["id"] for c in listed.json()] == [campaign["id"]]

        assert (await client.delete(f"/api/campaigns/{campaign['id']}")).status_code == 204
        assert (await client.get(f"/api/campaigns/{campaign['id']}")).status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "X", "type": "fax"},
            {"name": "X", "type": "sms", "status": "archived"},
            {"name": "", "type": "sms"},
        ],
    )
    async def test_invalid_is_400(self, client, payload):
        response = await client.post("/api/campaigns", json=payload)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_negative_counter_is_400(self, client):
        campaign = (await client.post("/api/campaigns", json={"name": "X", "type": "sms"})).json()

        response = await client.patch(f"/api/campaigns/{campaign['id']}", json={"sentCount": -1})

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["name", "type", "status", "sentCount"])
    async def test_null_required_field_is_400(self, client, field):
        campaign = (await client.post("/api/campaigns", json={"name": "X", "type": "sms"})).json()

        response = await client.patch(f"/api/campaigns/{campaign['id']}", json={field: None})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == field


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, anonymous_client):
        from callmate import __version__

        response = await anonymous_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"api": "ok", "database": "ok"}
        assert body["version"] == __version__
        assert body["environment"] == "development"


class TestErrorShapes:

    @pytest.mark.asyncio
    async def test_unknown_route_is_404(self, client):
        response = await client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_validation_detail_fields(self, client):
        response = await client.post("/api/quotes", json={"title": "Q", "items": [{"description": "X"}]})

        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["details"]}
        assert "items.0.quantity" in fields
        assert "items.0.rate" in fields
