"""Dashboard aggregation.

Two steps:
- ``DashboardAggregator.collect`` reads a snapshot through the repositories
- ``summarize`` reduces the snapshot to display metrics (pure)

Reads run one after another on the request session (an AsyncSession does
not allow concurrent operations). Any failing read propagates; there is no
partial dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from callmate.billing.totals import to_money
from callmate.config import get_settings
from callmate.core.clock import business_today, business_zone, day_window, start_of_day
from callmate.core.log import get_logger
from callmate.db.base import as_utc
from callmate.db.repositories import (
    CallLogRepository,
    InvoiceRepository,
    JobRepository,
    QuoteRepository,
)

log = get_logger(__name__)

RECENT_DOCUMENTS = 5
RECENT_CALLS = 10
REVENUE_DAYS = 7


@dataclass
class DashboardSnapshot:
    """Raw rows read for one dashboard request."""

    now: datetime
    timezone: str
    paid_invoice_totals: list[Decimal]
    active_job_count: int
    pending_quote_totals: list[Decimal]
    todays_call_count: int
    recent_jobs: Sequence[Any] = field(default_factory=list)
    recent_quotes: Sequence[Any] = field(default_factory=list)
    recent_invoices: Sequence[Any] = field(default_factory=list)
    recent_calls: Sequence[Any] = field(default_factory=list)
    # (paid_at, total) for the revenue chart window
    recent_payments: Sequence[tuple[datetime, Decimal]] = field(default_factory=list)
    todays_jobs: Sequence[Any] = field(default_factory=list)


@dataclass
class RecentActivity:
    jobs: Sequence[Any]
    quotes: Sequence[Any]
    invoices: Sequence[Any]
    calls: Sequence[Any]


@dataclass
class DashboardMetrics:
    """What the dashboard displays."""

    total_revenue: Decimal
    active_jobs: int
    pending_quotes: int
    pending_quotes_value: Decimal
    todays_calls: int
    recent_activity: RecentActivity
    revenue_by_day: dict[str, Decimal]
    todays_schedule: Sequence[Any]


def _money_sum(values: Iterable[Any]) -> Decimal:
    return sum((to_money(value) for value in values if value is not None), Decimal("0.00"))


def revenue_by_day(
    payments: Iterable[tuple[datetime, Any]],
    today: date,
    tz_name: str = "UTC",
    days: int = REVENUE_DAYS,
) -> dict[str, Decimal]:
    """Paid totals per business day, oldest first, zero-filled.

    Keys are ISO dates of the last ``days`` days ending with ``today``.
    """
    zone = business_zone(tz_name)
    buckets = {
        (today - timedelta(days=offset)).isoformat(): Decimal("0.00")
        for offset in range(days - 1, -1, -1)
    }
    for paid_at, total in payments:
        if paid_at is None:
            continue
        key = as_utc(paid_at).astimezone(zone).date().isoformat()
        if key in buckets:
            buckets[key] += to_money(total or 0)
    return buckets


def summarize(snapshot: DashboardSnapshot) -> DashboardMetrics:
    """Reduce a snapshot to dashboard metrics. No I/O."""
    today = business_today(snapshot.now, snapshot.timezone)
    return DashboardMetrics(
        total_revenue=_money_sum(snapshot.paid_invoice_totals),
        active_jobs=snapshot.active_job_count,
        pending_quotes=len(snapshot.pending_quote_totals),
        pending_quotes_value=_money_sum(snapshot.pending_quote_totals),
        todays_calls=snapshot.todays_call_count,
        recent_activity=RecentActivity(
            jobs=list(snapshot.recent_jobs),
            quotes=list(snapshot.recent_quotes),
            invoices=list(snapshot.recent_invoices),
            calls=list(snapshot.recent_calls),
        ),
        revenue_by_day=revenue_by_day(snapshot.recent_payments, today, snapshot.timezone),
        todays_schedule=list(snapshot.todays_jobs),
    )


class DashboardAggregator:
    """Reads the dashboard snapshot from the database."""

    def __init__(self, session: AsyncSession, tz_name: str | None = None):
        self.jobs = JobRepository(session)
        self.quotes = QuoteRepository(session)
        self.invoices = InvoiceRepository(session)
        self.calls = CallLogRepository(session)
        self.tz_name = tz_name or get_settings().business.timezone

    async def collect(self, now: datetime) -> DashboardSnapshot:
        """Read everything the dashboard needs as of ``now``."""
        day_start, day_end = day_window(now, self.tz_name)
        today = business_today(now, self.tz_name)
        chart_start = start_of_day(today - timedelta(days=REVENUE_DAYS - 1), self.tz_name)

        snapshot = DashboardSnapshot(
            now=now,
            timezone=self.tz_name,
            paid_invoice_totals=await self.invoices.paid_totals(),
            active_job_count=await self.jobs.count_active(),
            pending_quote_totals=await self.quotes.pending_totals(),
            todays_call_count=await self.calls.count_since(day_start),
            recent_jobs=await self.jobs.list_recent(limit=RECENT_DOCUMENTS),
            recent_quotes=await self.quotes.list_recent(limit=RECENT_DOCUMENTS),
            recent_invoices=await self.invoices.list_recent(limit=RECENT_DOCUMENTS),
            recent_calls=await self.calls.list_recent(limit=RECENT_CALLS),
            recent_payments=await self.invoices.paid_since(chart_start),
            todays_jobs=await self.jobs.scheduled_between(day_start, day_end),
        )
        log.debug(
            "Dashboard snapshot collected",
            day_start=day_start.isoformat(),
            paid_invoices=len(snapshot.paid_invoice_totals),
        )
        return snapshot

    async def metrics(self, now: datetime) -> DashboardMetrics:
        return summarize(await self.collect(now))
