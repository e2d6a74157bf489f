"""Campaign repository."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from callmate.db.models.marketing import CampaignModel
from callmate.db.repositories.base import BaseRepository


class CampaignRepository(BaseRepository[CampaignModel]):
    """Repository for marketing campaigns."""

    resource_name = "Campaign"

    def __init__(self, session: AsyncSession):
        super().__init__(CampaignModel, session)
