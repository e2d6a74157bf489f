"""AI Receptionist Endpoints.

- Settings (authenticated): read with get-or-create default, upsert
- Inbound call webhook (unauthenticated, rate limited)
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import get_current_user
from callmate.api.dependencies import get_llm_client
from callmate.api.rate_limits import RateLimits, limiter
from callmate.api.schemas import CamelModel, PatchModel, UTCDateTime
from callmate.core.log import get_logger
from callmate.db.models.marketing import AiAgentSettingsModel
from callmate.db.repositories import AiAgentSettingsRepository
from callmate.db.session import get_db
from callmate.integrations.llm import LLMClient
from callmate.services.receptionist import ReceptionistService

log = get_logger(__name__)

router = APIRouter()


# ============================================================================
# Pydantic Schemas
# ============================================================================

class AiAgentSettingsUpdate(PatchModel):
    """Settings fields to update (missing fields are left as they are)."""

    required_fields = frozenset({"is_active"})

    greeting: str | None = None
    business_hours: dict[str, Any] | None = None
    services: list[str] | None = None
    pricing_info: dict[str, Any] | None = None
    booking_rules: dict[str, Any] | None = None
    escalation_rules: dict[str, Any] | None = None
    is_active: bool | None = None


class AiAgentSettings(CamelModel):
    """AI agent settings for API responses."""

    id: UUID
    greeting: str | None = None
    business_hours: dict[str, Any] | None = None
    services: list[Any] | None = None
    pricing_info: dict[str, Any] | None = None
    booking_rules: dict[str, Any] | None = None
    escalation_rules: dict[str, Any] | None = None
    is_active: bool
    updated_at: UTCDateTime | None = None

    @classmethod
    def from_model(cls, model: AiAgentSettingsModel) -> "AiAgentSettings":
        return cls.model_validate(model)


class HandleCallRequest(CamelModel):
    """Webhook payload from the telephony provider."""

    phone_number: str = Field(min_length=1, max_length=50)
    transcript: str = Field(min_length=1)


class HandleCallResponse(CamelModel):
    """What the receptionist says back, plus the logged call id."""

    response: str
    action: str | None = None
    customer_info: dict[str, Any] | None = None
    call_log_id: UUID


# ============================================================================
# Dependencies
# ============================================================================

async def get_settings_repository(
    session: Annotated[AsyncSession, Depends(get_db)]
) -> AiAgentSettingsRepository:
    """Get AI agent settings repository instance."""
    return AiAgentSettingsRepository(session)


SettingsRepo = Annotated[AiAgentSettingsRepository, Depends(get_settings_repository)]


# ============================================================================
# Endpoints
# ============================================================================

@router.get(
    "/ai/settings",
    response_model=AiAgentSettings,
    dependencies=[Depends(get_current_user)],
)
async def get_ai_settings(repo: SettingsRepo) -> AiAgentSettings:
    """Get the receptionist settings, creating defaults on first use."""
    return AiAgentSettings.from_model(await repo.get_or_create_default())


@router.post(
    "/ai/settings",
    response_model=AiAgentSettings,
    dependencies=[Depends(get_current_user)],
)
async def save_ai_settings(body: AiAgentSettingsUpdate, repo: SettingsRepo) -> AiAgentSettings:
    """Update the receptionist settings, inserting them if missing."""
    settings = await repo.upsert(body.changes())
    log.info("AI agent settings saved", fields=sorted(body.changes()))
    return AiAgentSettings.from_model(settings)


@router.post("/ai/handle-call", response_model=HandleCallResponse)
@limiter.limit(RateLimits.WEBHOOK)
async def handle_call(
    request: Request,
    body: HandleCallRequest,
    session: Annotated[AsyncSession, Depends(get_db)],
    llm: Annotated[LLMClient, Depends(get_llm_client)],
) -> HandleCallResponse:
    """Answer an inbound caller and log the call.

    Called by the telephony provider without a bearer token.
    """
    result = await ReceptionistService(session, llm).handle_call(body.phone_number, body.transcript)
    return HandleCallResponse(
        response=result.response,
        action=result.action,
        customer_info=result.customer_info,
        call_log_id=result.call_log.id,
    )
