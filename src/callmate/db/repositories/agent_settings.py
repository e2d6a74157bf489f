"""AI agent settings repository.

There is one settings row per installation. Readers get a default row
created on first access; writers update it in place.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.core.log import get_logger
from callmate.db.models.marketing import AiAgentSettingsModel
from callmate.db.repositories.base import BaseRepository

log = get_logger(__name__)

DEFAULT_GREETING = "Hello! Thank you for calling. How can I help you today?"
DEFAULT_SERVICES = ["HVAC", "Electrical", "Plumbing"]
DEFAULT_BUSINESS_HOURS = {
    day: {"open": "09:00", "close": "17:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
}


def default_settings_values() -> dict[str, Any]:
    """Fresh copies of the default settings."""
    return {
        "greeting": DEFAULT_GREETING,
        "services": list(DEFAULT_SERVICES),
        "business_hours": {day: dict(hours) for day, hours in DEFAULT_BUSINESS_HOURS.items()},
        "pricing_info": {},
        "booking_rules": {},
        "escalation_rules": {},
        "is_active": True,
    }


class AiAgentSettingsRepository(BaseRepository[AiAgentSettingsModel]):
    """Repository for the receptionist configuration."""

    resource_name = "AI agent settings"

    def __init__(self, session: AsyncSession):
        super().__init__(AiAgentSettingsModel, session)

    async def get_current(self) -> AiAgentSettingsModel | None:
        """Oldest settings row, if any."""
        stmt = select(self._model).order_by(self._model.created_at).limit(1)
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def get_or_create_default(self) -> AiAgentSettingsModel:
        """Return the settings row, creating the default one when missing."""
        settings = await self.get_current()
        if settings is not None:
            return settings

        log.info("Creating default AI agent settings")
        return await self.create(AiAgentSettingsModel(**default_settings_values()))

    async def upsert(self, data: dict[str, Any]) -> AiAgentSettingsModel:
        """Update the settings row with ``data`` or insert it."""
        settings = await self.get_current()
        if settings is None:
            values = default_settings_values()
            values.update(data)
            return await self.create(AiAgentSettingsModel(**values))
        return await self.apply(settings, data)
