"""Dashboard Endpoints."""
from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import get_current_user
from callmate.api.call_logs import CallLog
from callmate.api.invoices import Invoice
from callmate.api.jobs import Job
from callmate.api.quotes import Quote
from callmate.api.schemas import CamelModel
from callmate.config import get_settings
from callmate.core.clock import business_today, utcnow
from callmate.db.session import get_db
from callmate.services.dashboard import DashboardAggregator, DashboardMetrics

router = APIRouter(dependencies=[Depends(get_current_user)])


class RecentActivity(CamelModel):
    jobs: list[Job]
    quotes: list[Quote]
    invoices: list[Invoice]
    calls: list[CallLog]


class DashboardResponse(CamelModel):
    """Dashboard view model."""

    total_revenue: Decimal
    active_jobs: int
    pending_quotes: int
    pending_quotes_value: Decimal
    todays_calls: int
    recent_activity: RecentActivity
    revenue_by_day: dict[str, Decimal]
    todays_schedule: list[Job]

    @classmethod
    def from_metrics(cls, metrics: DashboardMetrics, tz_name: str) -> "DashboardResponse":
        today = business_today(utcnow(), tz_name)
        activity = metrics.recent_activity
        return cls(
            total_revenue=metrics.total_revenue,
            active_jobs=metrics.active_jobs,
            pending_quotes=metrics.pending_quotes,
            pending_quotes_value=metrics.pending_quotes_value,
            todays_calls=metrics.todays_calls,
            recent_activity=RecentActivity(
                jobs=[Job.from_model(j) for j in activity.jobs],
                quotes=[Quote.from_model(q, today) for q in activity.quotes],
                invoices=[Invoice.from_model(i, today) for i in activity.invoices],
                calls=[CallLog.from_model(c) for c in activity.calls],
            ),
            revenue_by_day=metrics.revenue_by_day,
            todays_schedule=[Job.from_model(j) for j in metrics.todays_schedule],
        )


@router.get("/dashboard/metrics", response_model=DashboardResponse)
async def dashboard_metrics(
    session: Annotated[AsyncSession, Depends(get_db)],
) -> DashboardResponse:
    """Summary counts, sums and recent activity for the dashboard."""
    tz_name = get_settings().business.timezone
    metrics = await DashboardAggregator(session, tz_name).metrics(utcnow())
    return DashboardResponse.from_metrics(metrics, tz_name)
