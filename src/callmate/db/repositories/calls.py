"""Call log repository."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.db.models.calls import CallLogModel
from callmate.db.repositories.base import BaseRepository


class CallLogRepository(BaseRepository[CallLogModel]):
    """Repository for call logs."""

    resource_name = "Call log"

    def __init__(self, session: AsyncSession):
        super().__init__(CallLogModel, session)

    async def count_since(self, start: datetime) -> int:
        """Calls logged at or after ``start``."""
        stmt = (
            select(func.count())
            .select_from(self._model)
            .where(self._model.created_at >= start)
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0
