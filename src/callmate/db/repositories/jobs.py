"""Job Repository.

Extends BaseRepository with scheduling queries.
"""
from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.db.models.jobs import ACTIVE_JOB_STATUSES, JobModel
from callmate.db.repositories.base import DEFAULT_LIST_LIMIT, BaseRepository


class JobRepository(BaseRepository[JobModel]):
    """Repository for job database operations."""

    resource_name = "Job"

    def __init__(self, session: AsyncSession):
        super().__init__(JobModel, session)

    async def get_by_number(self, job_number: str) -> JobModel | None:
        """Get job by job number (e.g. JOB-1718000000000123)."""
        stmt = select(self._model).where(self._model.job_number == job_number)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def search(
        self,
        *,
        status: str | None = None,
        technician_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[JobModel]:
        """List jobs with optional filters.

        Args:
            status: Only jobs in this status
            technician_id: Only jobs assigned to this user
            start: Scheduled at or after this time
            end: Scheduled before this time

        Returns:
            Matching jobs; by schedule when a window is given, else newest first
        """
        conditions = []
        if status:
            conditions.append(self._model.status == status)
        if technician_id:
            conditions.append(self._model.assigned_technician_id == technician_id)
        if start:
            conditions.append(self._model.scheduled_date >= start)
        if end:
            conditions.append(self._model.scheduled_date < end)

        stmt = select(self._model)
        if conditions:
            stmt = stmt.where(and_(*conditions))

        if start or end:
            stmt = stmt.order_by(self._model.scheduled_date, self._model.start_time)
        else:
            stmt = stmt.order_by(self._model.created_at.desc())

        result = await self._session.execute(stmt.limit(limit))
        return result.scalars().all()

    async def count_active(self) -> int:
        """Jobs that are scheduled or in progress."""
        stmt = (
            select(func.count())
            .select_from(self._model)
            .where(self._model.status.in_(ACTIVE_JOB_STATUSES))
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def scheduled_between(self, start: datetime, end: datetime) -> Sequence[JobModel]:
        """Jobs scheduled in ``[start, end)`` ordered by start time."""
        stmt = (
            select(self._model)
            .where(
                and_(
                    self._model.scheduled_date >= start,
                    self._model.scheduled_date < end,
                )
            )
            .order_by(self._model.start_time, self._model.scheduled_date)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()
