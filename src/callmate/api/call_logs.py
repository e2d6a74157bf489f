"""Call Log Endpoints.

Call logs are append-only records. Once an outcome is recorded only the
follow-up annotation can change.
"""
from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import get_current_user
from callmate.api.dependencies import get_llm_client
from callmate.api.schemas import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    CamelModel,
    PatchModel,
    UTCDateTime,
)
from callmate.core.exceptions import ValidationError
from callmate.core.log import get_logger
from callmate.db.models.calls import CallDirection, CallLogModel, CallOutcome
from callmate.db.repositories import CallLogRepository
from callmate.db.session import get_db
from callmate.integrations.llm import LLMClient
from callmate.services.receptionist import ReceptionistService

log = get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])

# Fields that stay editable after the outcome is set
FOLLOW_UP_FIELDS = frozenset({"follow_up_required", "follow_up_notes"})


# ============================================================================
# Pydantic Schemas
# ============================================================================

class CallLogCreate(CamelModel):
    """Schema for logging a call."""

    phone_number: str = Field(min_length=1, max_length=50)
    customer_id: UUID | None = None
    direction: CallDirection = CallDirection.INBOUND
    duration: int | None = Field(default=None, ge=0)
    outcome: CallOutcome | None = None
    transcript: str | None = None
    summary: str | None = None
    ai_generated: bool = False
    follow_up_required: bool = False
    follow_up_notes: str | None = None


class CallLogUpdate(PatchModel):
    """Schema for updating a call log."""

    required_fields = frozenset({"direction", "follow_up_required"})

    customer_id: UUID | None = None
    direction: CallDirection | None = None
    duration: int | None = Field(default=None, ge=0)
    outcome: CallOutcome | None = None
    transcript: str | None = None
    summary: str | None = None
    follow_up_required: bool | None = None
    follow_up_notes: str | None = None


class CallLog(CamelModel):
    """Call log schema for API responses."""

    id: UUID
    customer_id: UUID | None = None
    phone_number: str
    direction: str
    duration: int | None = None
    outcome: str | None = None
    transcript: str | None = None
    summary: str | None = None
    ai_generated: bool
    follow_up_required: bool
    follow_up_notes: str | None = None
    created_at: UTCDateTime | None = None

    @classmethod
    def from_model(cls, model: CallLogModel) -> "CallLog":
        """Create schema from ORM model."""
        return cls.model_validate(model)


def _enum_values(values: dict) -> dict:
    for key in ("direction", "outcome"):
        if values.get(key) is not None:
            values[key] = values[key].value
    return values


def check_call_log_update(call_log: CallLogModel, changes: dict) -> None:
    """Reject edits to a call whose outcome is already recorded.

    Raises:
        ValidationError: If a field other than the follow-up annotation changes
    """
    if call_log.outcome is None:
        return
    locked = sorted(
        field
        for field, value in changes.items()
        if field not in FOLLOW_UP_FIELDS and getattr(call_log, field) != value
    )
    if locked:
        raise ValidationError(
            "Call log is closed; only follow-up fields can change",
            details={"fields": locked, "outcome": call_log.outcome},
        )


# ============================================================================
# Dependencies
# ============================================================================

async def get_call_log_repository(
    session: Annotated[AsyncSession, Depends(get_db)]
) -> CallLogRepository:
    """Get call log repository instance."""
    return CallLogRepository(session)


CallLogs = Annotated[CallLogRepository, Depends(get_call_log_repository)]


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/call-logs", response_model=list[CallLog])
async def list_call_logs(
    repo: CallLogs,
    limit: Annotated[int, Query(ge=1, le=MAX_LIST_LIMIT)] = DEFAULT_LIST_LIMIT,
) -> list[CallLog]:
    """List call logs newest first."""
    return [CallLog.from_model(c) for c in await repo.list_recent(limit=limit)]


@router.get("/call-logs/{call_log_id}", response_model=CallLog)
async def get_call_log(call_log_id: UUID, repo: CallLogs) -> CallLog:
    return CallLog.from_model(await repo.get_or_raise(call_log_id))


@router.post("/call-logs", response_model=CallLog, status_code=status.HTTP_201_CREATED)
async def create_call_log(
    body: CallLogCreate,
    repo: CallLogs,
    llm: Annotated[LLMClient, Depends(get_llm_client)],
) -> CallLog:
    """Log a call.

    A transcript without a summary is analyzed by the LLM first; fields
    the client sent take precedence over the analysis.
    """
    values = _enum_values(body.model_dump())

    if body.transcript and not body.summary:
        analysis = await ReceptionistService(repo.session, llm).analyze_transcript(body.transcript)
        values["summary"] = analysis.summary
        if values.get("outcome") is None:
            values["outcome"] = analysis.outcome
        if not body.follow_up_required:
            values["follow_up_required"] = analysis.follow_up_required
        if values.get("follow_up_notes") is None:
            values["follow_up_notes"] = analysis.follow_up_notes

    call_log = await repo.create(CallLogModel(**values))
    log.info("Call logged", call_log_id=str(call_log.id), outcome=call_log.outcome)
    return CallLog.from_model(call_log)


@router.patch("/call-logs/{call_log_id}", response_model=CallLog)
async def update_call_log(call_log_id: UUID, body: CallLogUpdate, repo: CallLogs) -> CallLog:
    """Update a call log; closed calls accept only follow-up changes."""
    call_log = await repo.get_or_raise(call_log_id)
    changes = _enum_values(body.changes())
    check_call_log_update(call_log, changes)
    return CallLog.from_model(await repo.apply(call_log, changes))


@router.delete("/call-logs/{call_log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_call_log(call_log_id: UUID, repo: CallLogs) -> Response:
    await repo.delete(call_log_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
