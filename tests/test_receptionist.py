"""Tests for the AI receptionist service."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from callmate.core.exceptions import LLMError, ValidationError
from callmate.services.receptionist import (
    ReceptionistService,
    normalize_outcome,
    outcome_for_action,
)


class TestOutcomeMapping:

    @pytest.mark.parametrize(
        "action, outcome",
        [
            ("book_appointment", "job_booked"),
            ("request_callback", "callback_requested"),
            ("provide_info", "no_interest"),
            ("transfer_to_human", "no_interest"),
            (None, "no_interest"),
        ],
    )
    def test_outcome_for_action(self, action, outcome):
        assert outcome_for_action(action) == outcome

    def test_normalize_outcome(self):
        assert normalize_outcome("voicemail") == "voicemail"
        assert normalize_outcome("very_happy") is None
        assert normalize_outcome(["job_booked"]) is None
        assert normalize_outcome(None) is None


class TestBuildSystemPrompt:

    @pytest.mark.asyncio
    async def test_prompt_uses_stored_settings(self, db_session, fake_llm):
        from callmate.db.repositories import AiAgentSettingsRepository

        await AiAgentSettingsRepository(db_session).upsert({
            "greeting": "Reyes HVAC, how can we help?",
            "services": ["Furnace repair"],
            "pricing_info": {"diagnostic": "89.00"},
        })

        prompt = await ReceptionistService(db_session, fake_llm).build_system_prompt()

        assert "Reyes HVAC, how can we help?" in prompt
        assert "Furnace repair" in prompt
        assert "diagnostic" in prompt

    @pytest.mark.asyncio
    async def test_prompt_creates_default_settings(self, db_session, fake_llm):
        prompt = await ReceptionistService(db_session, fake_llm).build_system_prompt()

        assert "HVAC" in prompt
        assert "Pricing" not in prompt


class TestHandleCall:

    @pytest.mark.asyncio
    async def test_logs_call_for_known_customer(self, db_session, fake_llm, sample_customer):
        fake_llm.complete_json.return_value = {
            "response": "I can book you for Tuesday at 10.",
            "action": "book_appointment",
            "customer_info": {"name": "Dana"},
        }

        result = await ReceptionistService(db_session, fake_llm).handle_call(
            "+15125550100", "My AC stopped working"
        )

        assert result.response == "I can book you for Tuesday at 10."
        assert result.action == "book_appointment"
        call = result.call_log
        assert call.customer_id == sample_customer.id
        assert call.outcome == "job_booked"
        assert call.ai_generated is True
        assert call.follow_up_required is False
        assert call.transcript == "My AC stopped working"
        assert json.loads(call.follow_up_notes) == {"name": "Dana"}

        user_prompt = fake_llm.complete_json.await_args.args[1]
        assert "My AC stopped working" in user_prompt

    @pytest.mark.asyncio
    async def test_callback_request_needs_follow_up(self, db_session, fake_llm):
        fake_llm.complete_json.return_value = {"response": "We'll call you back.", "action": "request_callback"}

        result = await ReceptionistService(db_session, fake_llm).handle_call("+19995550000", "Call me later")

        assert result.call_log.customer_id is None
        assert result.call_log.outcome == "callback_requested"
        assert result.call_log.follow_up_required is True

    @pytest.mark.asyncio
    async def test_malformed_reply_fields_are_dropped(self, db_session, fake_llm):
        fake_llm.complete_json.return_value = {"response": "Hi", "action": ["x"], "customer_info": "Dana"}

        result = await ReceptionistService(db_session, fake_llm).handle_call("+1", "Hello")

        assert result.action is None
        assert result.customer_info is None
        assert result.call_log.outcome == "no_interest"

    @pytest.mark.asyncio
    async def test_llm_failure_writes_no_log(self, db_session, fake_llm):
        from callmate.db.repositories import CallLogRepository

        fake_llm.complete_json.side_effect = LLMError("Request timeout")

        with pytest.raises(LLMError):
            await ReceptionistService(db_session, fake_llm).handle_call("+1", "Hello")

        assert await CallLogRepository(db_session).count() == 0


class TestAnalyzeTranscript:

    @pytest.mark.asyncio
    async def test_reads_camel_case_fields(self, db_session, fake_llm):
        fake_llm.complete_json.return_value = {
            "summary": "Customer wants a quote for a new water heater.",
            "outcome": "quote_requested",
            "followUpRequired": True,
            "followUpNotes": "Send quote by Friday",
            "customerInfo": {"name": "Pat"},
        }

        analysis = await ReceptionistService(db_session, fake_llm).analyze_transcript("...")

        assert analysis.summary == "Customer wants a quote for a new water heater."
        assert analysis.outcome == "quote_requested"
        assert analysis.follow_up_required is True
        assert analysis.follow_up_notes == "Send quote by Friday"
        assert analysis.customer_info == {"name": "Pat"}

    @pytest.mark.asyncio
    async def test_unknown_outcome_dropped(self, db_session, fake_llm):
        fake_llm.complete_json.return_value = {"summary": "Chat", "outcome": "delighted"}

        analysis = await ReceptionistService(db_session, fake_llm).analyze_transcript("...")

        assert analysis.outcome is None
        assert analysis.follow_up_required is False


class TestDraftQuote:

    @pytest.mark.asyncio
    async def test_totals_are_computed_locally(self, db_session, fake_llm):
        fake_llm.complete_json.return_value = {
            "description": "Replace condenser fan motor",
            "items": [
                {"description": "Fan motor", "quantity": 1, "rate": 180},
                {"description": "Labor", "quantity": 2, "rate": "95.00"},
            ],
            "total": "1.00",
        }

        draft = await ReceptionistService(db_session, fake_llm).draft_quote(["AC repair"])

        assert draft.description == "Replace condenser fan motor"
        assert draft.totals.subtotal == Decimal("370.00")
        assert draft.totals.tax == Decimal("30.53")
        assert draft.totals.total == Decimal("400.53")
        assert draft.notes == []

    @pytest.mark.asyncio
    async def test_bad_items_are_skipped(self, db_session, fake_llm):
        fake_llm.complete_json.return_value = {
            "items": [
                {"description": "Fan motor", "quantity": 1, "rate": "180.00"},
                {"description": "Labor", "quantity": 1.5, "rate": "95.00"},
                "not an item",
            ],
        }

        draft = await ReceptionistService(db_session, fake_llm).draft_quote(["AC repair"])

        assert [item.description for item in draft.items] == ["Fan motor"]
        assert len(draft.notes) == 2

    @pytest.mark.asyncio
    async def test_no_usable_items_is_an_llm_error(self, db_session, fake_llm):
        fake_llm.complete_json.return_value = {"items": []}

        with pytest.raises(LLMError):
            await ReceptionistService(db_session, fake_llm).draft_quote(["AC repair"])

    @pytest.mark.asyncio
    async def test_services_required(self, db_session, fake_llm):
        with pytest.raises(ValidationError):
            await ReceptionistService(db_session, fake_llm).draft_quote([])

        fake_llm.complete_json.assert_not_awaited()
