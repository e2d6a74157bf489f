"""Tests for the job endpoints."""

from __future__ import annotations

import re

import pytest


class TestJobEndpoints:

    @pytest.mark.asyncio
    async def test_create_assigns_number(self, client):
        response = await client.post(
            "/api/jobs",
            json={
                "title": "Replace water heater",
                "status": "scheduled",
                "scheduledDate": "2024-06-03T14:00:00Z",
                "startTime": "09:00",
                "endTime": "11:30",
                "estimatedDuration": 150,
                "totalAmount": "1250.00",
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert re.fullmatch(r"JOB-\d+", body["jobNumber"])
        assert body["status"] == "scheduled"
        assert body["startTime"] == "09:00"
        assert body["totalAmount"] == "1250.00"
        assert body["scheduledDate"].startswith("2024-06-03T14:00:00")

    @pytest.mark.asyncio
    async def test_default_status_is_draft(self, client):
        response = await client.post("/api/jobs", json={"title": "Estimate"})

        assert response.json()["status"] == "draft"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "X", "status": "paused"},
            {"title": "X", "startTime": "25:00"},
            {"title": "X", "totalAmount": "-5.00"},
            {"title": ""},
        ],
    )
    async def test_invalid_fields_are_400(self, client, payload):
        response = await client.post("/api/jobs", json=payload)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_patch_status(self, client):
        job = (await client.post("/api/jobs", json={"title": "Repair"})).json()

        response = await client.patch(f"/api/jobs/{job['id']}", json={"status": "in_progress"})

        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"
        assert response.json()["title"] == "Repair"

    @pytest.mark.asyncio
    async def test_filter_by_status_and_window(self, client):
        await client.post(
            "/api/jobs",
            json={"title": "Monday", "status": "scheduled", "scheduledDate": "2024-06-03T14:00:00Z"},
        )
        await client.post(
            "/api/jobs",
            json={"title": "Tuesday", "status": "scheduled", "scheduledDate": "2024-06-04T14:00:00Z"},
        )
        await client.post("/api/jobs", json={"title": "Unscheduled"})

        scheduled = await client.get("/api/jobs", params={"status": "scheduled"})
        monday = await client.get(
            "/api/jobs",
            params={"start": "2024-06-03T00:00:00Z", "end": "2024-06-04T00:00:00Z"},
        )

        assert {j["title"] for j in scheduled.json()} == {"Monday", "Tuesday"}
        assert [j["title"] for j in monday.json()] == ["Monday"]

    @pytest.mark.asyncio
    async def test_add_note_is_timestamped(self, client):
        job = (await client.post("/api/jobs", json={"title": "Repair", "notes": "Gate code 1234"})).json()

        response = await client.post(f"/api/jobs/{job['id']}/notes", json={"note": "Parts ordered"})

        notes = response.json()["notes"].splitlines()
        assert notes[0] == "Gate code 1234"
        assert re.fullmatch(r"\[\d{4}-\d{2}-\d{2} \d{2}:\d{2} UTC\] Sam Owner: Parts ordered", notes[1])

    @pytest.mark.asyncio
    async def test_delete(self, client):
        job = (await client.post("/api/jobs", json={"title": "Repair"})).json()

        assert (await client.delete(f"/api/jobs/{job['id']}")).status_code == 204
        assert (await client.get(f"/api/jobs/{job['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_malformed_id_is_400(self, client):
        response = await client.get("/api/jobs/not-a-uuid")

        assert response.status_code == 400


class TestJobConstraints:
    """Input the database would refuse is rejected as a 400."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["title", "status"])
    async def test_null_required_field_is_400(self, client, field):
        job = (await client.post("/api/jobs", json={"title": "Tune-up"})).json()

        response = await client.patch(f"/api/jobs/{job['id']}", json={field: None})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert response.json()["details"][0]["field"] == field
        kept = (await client.get(f"/api/jobs/{job['id']}")).json()
        assert kept["title"] == "Tune-up"
        assert kept["status"] == "draft"

    @pytest.mark.asyncio
    async def test_null_optional_field_clears_it(self, client):
        job = (await client.post("/api/jobs", json={"title": "Tune-up", "notes": "Side gate"})).json()

        response = await client.patch(f"/api/jobs/{job['id']}", json={"notes": None})

        assert response.status_code == 200
        assert response.json()["notes"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reference",
        [
            {"customerId": "7d0c6f47-3a1e-4b8e-9a56-2f1d8c0b9e11"},
            {"assignedTechnicianId": "nobody"},
        ],
    )
    async def test_unknown_reference_is_400(self, client, reference):
        response = await client.post("/api/jobs", json={"title": "X", **reference})

        assert response.status_code == 400
        assert response.json() == {
            "error": "VALIDATION_ERROR",
            "message": "Referenced record does not exist",
        }
        assert (await client.get("/api/jobs")).json() == []

    @pytest.mark.asyncio
    async def test_patch_unknown_customer_is_400(self, client):
        job = (await client.post("/api/jobs", json={"title": "X"})).json()

        response = await client.patch(
            f"/api/jobs/{job['id']}",
            json={"customerId": "7d0c6f47-3a1e-4b8e-9a56-2f1d8c0b9e11"},
        )

        assert response.status_code == 400
        assert (await client.get(f"/api/jobs/{job['id']}")).json()["customerId"] is None
