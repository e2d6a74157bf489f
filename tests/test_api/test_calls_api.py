"""Tests for call logs and the AI receptionist endpoints."""

from __future__ import annotations

import pytest

from callmate.core.exceptions import LLMError


class TestCallLogEndpoints:

    @pytest.mark.asyncio
    async def test_create_plain(self, client, fake_llm):
        response = await client.post(
            "/api/call-logs",
            json={"phoneNumber": "+15125550100", "direction": "outbound", "duration": 95},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["direction"] == "outbound"
        assert body["outcome"] is None
        assert body["aiGenerated"] is False
        fake_llm.complete_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transcript_is_analyzed(self, client, fake_llm):
        fake_llm.complete_json.return_value = {
            "summary": "Wants a quote for a new furnace.",
            "outcome": "quote_requested",
            "followUpRequired": True,
            "followUpNotes": "Call back Monday",
        }

        response = await client.post(
            "/api/call-logs",
            json={"phoneNumber": "+15125550100", "transcript": "Hi, I need a new furnace."},
        )

        body = response.json()
        assert body["summary"] == "Wants a quote for a new furnace."
        assert body["outcome"] == "quote_requested"
        assert body["followUpRequired"] is True
        assert body["followUpNotes"] == "Call back Monday"

    @pytest.mark.asyncio
    async def test_client_outcome_wins_over_analysis(self, client, fake_llm):
        fake_llm.complete_json.return_value = {"summary": "Booked.", "outcome": "quote_requested"}

        response = await client.post(
            "/api/call-logs",
            json={"phoneNumber": "+1", "transcript": "Book me", "outcome": "job_booked"},
        )

        assert response.json()["outcome"] == "job_booked"
        assert response.json()["summary"] == "Booked."

    @pytest.mark.asyncio
    async def test_unknown_outcome_is_400(self, client):
        response = await client.post("/api/call-logs", json={"phoneNumber": "+1", "outcome": "great"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_closed_call_only_takes_follow_up_changes(self, client):
        call = (
            await client.post(
                "/api/call-logs",
                json={"phoneNumber": "+1", "summary": "Voicemail left", "outcome": "voicemail"},
            )
        ).json()

        locked = await client.patch(f"/api/call-logs/{call['id']}", json={"summary": "Rewritten"})
        follow_up = await client.patch(
            f"/api/call-logs/{call['id']}",
            json={"followUpRequired": True, "followUpNotes": "Try again at 5pm"},
        )

        assert locked.status_code == 400
        assert locked.json()["details"]["fields"] == ["summary"]
        assert follow_up.status_code == 200
        assert follow_up.json()["followUpNotes"] == "Try again at 5pm"
        assert follow_up.json()["summary"] == "Voicemail left"

    @pytest.mark.asyncio
    async def test_open_call_can_be_completed(self, client):
        call = (await client.post("/api/call-logs", json={"phoneNumber": "+1"})).json()

        response = await client.patch(
            f"/api/call-logs/{call['id']}",
            json={"outcome": "no_answer", "duration": 0},
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "no_answer"


class TestAiSettingsEndpoints:

    @pytest.mark.asyncio
    async def test_defaults_created_on_read(self, client):
        first = await client.get("/api/ai/settings")
        second = await client.get("/api/ai/settings")

        assert first.status_code == 200
        assert first.json()["isActive"] is True
        assert "HVAC" in first.json()["services"]
        assert first.json()["id"] == second.json()["id"]

    @pytest.mark.asyncio
    async def test_upsert_keeps_other_fields(self, client):
        before = (await client.get("/api/ai/settings")).json()

        response = await client.post(
            "/api/ai/settings",
            json={"greeting": "Reyes HVAC, how can we help?", "pricingInfo": {"diagnostic": "89.00"}},
        )

        body = response.json()
        assert body["id"] == before["id"]
        assert body["greeting"] == "Reyes HVAC, how can we help?"
        assert body["pricingInfo"] == {"diagnostic": "89.00"}
        assert body["services"] == before["services"]

    @pytest.mark.asyncio
    async def test_upsert_without_existing_row(self, client):
        response = await client.post("/api/ai/settings", json={"isActive": False})

        assert response.status_code == 200
        assert response.json()["isActive"] is False
        assert response.json()["greeting"]

    @pytest.mark.asyncio
    async def test_settings_need_auth(self, anonymous_client):
        response = await anonymous_client.get("/api/ai/settings")

        assert response.status_code == 401


class TestHandleCallWebhook:

    @pytest.mark.asyncio
    async def test_no_auth_needed_and_call_logged(self, anonymous_client, client, fake_llm):
        fake_llm.complete_json.return_value = {
            "response": "We can come out Tuesday at 10.",
            "action": "book_appointment",
            "customer_info": {"name": "Dana"},
        }

        response = await anonymous_client.post(
            "/api/ai/handle-call",
            json={"phoneNumber": "+15125550100", "transcript": "My AC is broken"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["response"] == "We can come out Tuesday at 10."
        assert body["action"] == "book_appointment"
        assert body["customerInfo"] == {"name": "Dana"}

        call = (await client.get(f"/api/call-logs/{body['callLogId']}")).json()
        assert call["outcome"] == "job_booked"
        assert call["aiGenerated"] is True

    @pytest.mark.asyncio
    async def test_llm_failure_is_500_and_nothing_logged(self, anonymous_client, client, fake_llm):
        fake_llm.complete_json.side_effect = LLMError("Request timeout")

        response = await anonymous_client.post(
            "/api/ai/handle-call",
            json={"phoneNumber": "+1", "transcript": "Hello"},
        )

        assert response.status_code == 500
        assert response.json()["error"] == "LLM_ERROR"
        assert (await client.get("/api/call-logs")).json() == []

    @pytest.mark.asyncio
    async def test_empty_transcript_is_400(self, anonymous_client, fake_llm):
        response = await anonymous_client.post(
            "/api/ai/handle-call",
            json={"phoneNumber": "+1", "transcript": ""},
        )

        assert response.status_code == 400
        fake_llm.complete_json.assert_not_awaited()
