"""AI phone receptionist.

Uses the LLM collaborator to:
- answer an inbound call and log it (``handle_call``)
- summarize a call transcript (``analyze_transcript``)
- suggest quote line items (``draft_quote``)

The model's output is treated as untrusted: unknown outcomes are dropped
and money is always recomputed locally.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from callmate.billing.totals import (
    DocumentTotals,
    LineItem,
    calculate_totals,
    validate_line_items,
)
from callmate.config import get_settings
from callmate.core.exceptions import LLMError, ValidationError
from callmate.core.log import get_logger
from callmate.db.models.calls import CallDirection, CallLogModel, CallOutcome
from callmate.db.repositories import (
    AiAgentSettingsRepository,
    CallLogRepository,
    CustomerRepository,
)
from callmate.integrations.llm import LLMClient

log = get_logger(__name__)


class CallAction:
    """Actions the receptionist model may choose."""

    BOOK_APPOINTMENT = "book_appointment"
    REQUEST_CALLBACK = "request_callback"
    PROVIDE_INFO = "provide_info"
    TRANSFER_TO_HUMAN = "transfer_to_human"


_ACTION_OUTCOMES = {
    CallAction.BOOK_APPOINTMENT: CallOutcome.JOB_BOOKED,
    CallAction.REQUEST_CALLBACK: CallOutcome.CALLBACK_REQUESTED,
}

RECEPTIONIST_PROMPT = """You are an AI receptionist for a trades and service company called {business}.
Your role is to:
1. Answer customer calls professionally
2. Book appointments and schedule services
3. Provide basic pricing information
4. Gather customer information
5. Handle inquiries about services

Business info:
- Greeting: {greeting}
- Services: {services}
- Business hours: {hours}
{pricing}
Always be professional, helpful, and try to schedule appointments when appropriate.
Respond with JSON containing: response (what to say), action (book_appointment|request_callback|provide_info|transfer_to_human), and any extracted customer_info."""

TRANSCRIPT_PROMPT = """Analyze this customer service call transcript and extract key information.
Respond with JSON containing:
- summary: Brief summary of the call
- outcome: One of (job_booked|quote_requested|no_interest|callback_requested|voicemail|no_answer)
- followUpRequired: boolean
- followUpNotes: any specific follow-up actions needed
- customerInfo: extracted customer information if any"""

QUOTE_PROMPT = """Generate a professional quote summary for a trades/service company.
Include estimated pricing ranges and service descriptions.
Respond with JSON containing:
- description: Professional description of services
- items: array of line items with description, quantity (whole number), rate (dollars)"""


@dataclass
class CallHandlingResult:
    """Reply to the telephony webhook."""

    response: str
    action: str | None
    customer_info: dict[str, Any] | None
    call_log: CallLogModel


@dataclass
class TranscriptAnalysis:
    summary: str | None = None
    outcome: str | None = None
    follow_up_required: bool = False
    follow_up_notes: str | None = None
    customer_info: dict[str, Any] | None = None


@dataclass
class QuoteDraft:
    description: str | None
    items: list[LineItem]
    totals: DocumentTotals
    notes: list[str] = field(default_factory=list)


def outcome_for_action(action: Any) -> str:
    """Map a receptionist action to the call outcome stored in the log."""
    return _ACTION_OUTCOMES.get(action, CallOutcome.NO_INTEREST).value


def normalize_outcome(value: Any) -> str | None:
    """Known outcome value, or None for anything else."""
    try:
        return CallOutcome(value).value
    except (ValueError, TypeError):
        return None


def _as_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


class ReceptionistService:
    """LLM-backed receptionist operations."""

    def __init__(self, session: AsyncSession, llm: LLMClient):
        self._session = session
        self._llm = llm
        self.settings_repo = AiAgentSettingsRepository(session)
        self.calls = CallLogRepository(session)
        self.customers = CustomerRepository(session)

    async def build_system_prompt(self) -> str:
        """Receptionist instructions from the stored agent settings."""
        agent = await self.settings_repo.get_or_create_default()
        business = get_settings().business.name
        pricing = ""
        if agent.pricing_info:
            pricing = f"- Pricing: {json.dumps(agent.pricing_info)}\n"
        return RECEPTIONIST_PROMPT.format(
            business=business,
            greeting=agent.greeting,
            services=json.dumps(agent.services or []),
            hours=json.dumps(agent.business_hours or {}),
            pricing=pricing,
        )

    async def handle_call(self, phone_number: str, transcript: str) -> CallHandlingResult:
        """Answer one caller utterance and log the call.

        Raises:
            LLMError: If the completion fails; no call log is written
        """
        system_prompt = await self.build_system_prompt()
        reply = await self._llm.complete_json(system_prompt, f'Customer said: "{transcript}"')

        action = reply.get("action")
        if not isinstance(action, str):
            action = None
        customer_info = reply.get("customer_info")
        if not isinstance(customer_info, dict):
            customer_info = None
        response_text = _as_text(reply.get("response")) or ""

        customer = await self.customers.find_by_phone(phone_number)
        call_log = await self.calls.create(
            CallLogModel(
                customer_id=customer.id if customer else None,
                phone_number=phone_number,
                direction=CallDirection.INBOUND.value,
                transcript=transcript,
                summary=response_text,
                outcome=outcome_for_action(action),
                ai_generated=True,
                follow_up_required=action == CallAction.REQUEST_CALLBACK,
                follow_up_notes=json.dumps(customer_info) if customer_info else None,
            )
        )
        log.info(
            "AI call handled",
            call_log_id=str(call_log.id),
            action=action,
            outcome=call_log.outcome,
        )
        return CallHandlingResult(
            response=response_text,
            action=action,
            customer_info=customer_info,
            call_log=call_log,
        )

    async def analyze_transcript(self, transcript: str) -> TranscriptAnalysis:
        """Summarize a call transcript.

        Raises:
            LLMError: If the completion fails
        """
        result = await self._llm.complete_json(TRANSCRIPT_PROMPT, transcript)

        outcome = normalize_outcome(result.get("outcome"))
        if result.get("outcome") is not None and outcome is None:
            log.warning("Dropping unknown call outcome", outcome=result.get("outcome"))

        customer_info = result.get("customerInfo")
        return TranscriptAnalysis(
            summary=_as_text(result.get("summary")),
            outcome=outcome,
            follow_up_required=bool(result.get("followUpRequired", False)),
            follow_up_notes=_as_text(result.get("followUpNotes")),
            customer_info=customer_info if isinstance(customer_info, dict) else None,
        )

    async def draft_quote(
        self,
        services: Sequence[str],
        customer_info: dict[str, Any] | None = None,
    ) -> QuoteDraft:
        """Suggest quote items for the requested services.

        Items the model gets wrong are skipped; totals come from the local
        calculator, never from the model.

        Raises:
            LLMError: If the completion fails or yields no usable item
        """
        if not services:
            raise ValidationError("At least one service is required")

        result = await self._llm.complete_json(
            QUOTE_PROMPT,
            f"Services requested: {', '.join(services)}. Customer: {json.dumps(customer_info or {})}",
        )

        raw_items = result.get("items")
        items: list[LineItem] = []
        notes: list[str] = []
        for index, raw in enumerate(raw_items if isinstance(raw_items, list) else []):
            try:
                item = LineItem.from_mapping(raw if isinstance(raw, dict) else {})
                validate_line_items([item])
            except ValidationError as e:
                notes.append(f"Skipped item {index}: {e.message}")
                continue
            items.append(item)

        if not items:
            raise LLMError("No usable line items in the suggestion")

        tax_rate: Decimal = get_settings().business.tax_rate
        return QuoteDraft(
            description=_as_text(result.get("description")),
            items=items,
            totals=calculate_totals(items, tax_rate),
            notes=notes,
        )
