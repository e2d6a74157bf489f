"""Campaign Endpoints.

Campaign counters are written by whatever runs the campaign; this API
only stores them.
"""
from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import get_current_user
from callmate.api.schemas import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    CamelModel,
    PatchModel,
    UTCDateTime,
)
from callmate.db.models.marketing import CampaignModel, CampaignStatus, CampaignType
from callmate.db.repositories import CampaignRepository
from callmate.db.session import get_db

router = APIRouter(dependencies=[Depends(get_current_user)])

Counter = Annotated[int, Field(ge=0)]


class CampaignCreate(CamelModel):
    """Schema for creating a campaign."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    type: CampaignType
    status: CampaignStatus = CampaignStatus.DRAFT
    target_audience: dict[str, Any] | None = None
    message_template: str | None = None
    scheduled_date: UTCDateTime | None = None


class CampaignUpdate(PatchModel):
    """Schema for updating a campaign."""

    required_fields = frozenset({
        "name", "type", "status", "sent_count", "open_count", "click_count", "response_count",
    })

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    type: CampaignType | None = None
    status: CampaignStatus | None = None
    target_audience: dict[str, Any] | None = None
    message_template: str | None = None
    scheduled_date: UTCDateTime | None = None
    sent_count: Counter | None = None
    open_count: Counter | None = None
    click_count: Counter | None = None
    response_count: Counter | None = None


class Campaign(CamelModel):
    """Campaign schema for API responses."""

    id: UUID
    name: str
    description: str | None = None
    type: str
    status: str
    target_audience: dict[str, Any] | None = None
    message_template: str | None = None
    scheduled_date: UTCDateTime | None = None
    sent_count: int
    open_count: int
    click_count: int
    response_count: int
    created_at: UTCDateTime | None = None
    updated_at: UTCDateTime | None = None

    @classmethod
    def from_model(cls, model: CampaignModel) -> "Campaign":
        return cls.model_validate(model)


def _enum_values(values: dict) -> dict:
    for key in ("type", "status"):
        if values.get(key) is not None:
            values[key] = values[key].value
    return values


async def get_campaign_repository(
    session: Annotated[AsyncSession, Depends(get_db)]
) -> CampaignRepository:
    """Get campaign repository instance."""
    return CampaignRepository(session)


Campaigns = Annotated[CampaignRepository, Depends(get_campaign_repository)]


@router.get("/campaigns", response_model=list[Campaign])
async def list_campaigns(
    repo: Campaigns,
    limit: Annotated[int, Query(ge=1, le=MAX_LIST_LIMIT)] = DEFAULT_LIST_LIMIT,
) -> list[Campaign]:
    return [Campaign.from_model(c) for c in await repo.list_recent(limit=limit)]


@router.get("/campaigns/{campaign_id}", response_model=Campaign)
async def get_campaign(campaign_id: UUID, repo: Campaigns) -> Campaign:
    return Campaign.from_model(await repo.get_or_raise(campaign_id))


@router.post("/campaigns", response_model=Campaign, status_code=status.HTTP_201_CREATED)
async def create_campaign(body: CampaignCreate, repo: Campaigns) -> Campaign:
    campaign = await repo.create(CampaignModel(**_enum_values(body.model_dump())))
    return Campaign.from_model(campaign)


@router.patch("/campaigns/{campaign_id}", response_model=Campaign)
async def update_campaign(campaign_id: UUID, body: CampaignUpdate, repo: Campaigns) -> Campaign:
    return Campaign.from_model(await repo.update(campaign_id, _enum_values(body.changes())))


@router.delete("/campaigns/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_campaign(campaign_id: UUID, repo: Campaigns) -> Response:
    await repo.delete(campaign_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
