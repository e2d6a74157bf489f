"""Quote and Invoice repositories."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.billing.lifecycle import InvoiceStatus, QuoteStatus
from callmate.db.models.billing import InvoiceModel, QuoteModel
from callmate.db.repositories.base import BaseRepository


class QuoteRepository(BaseRepository[QuoteModel]):
    """Repository for quotes (items are loaded with the quote)."""

    resource_name = "Quote"

    def __init__(self, session: AsyncSession):
        super().__init__(QuoteModel, session)

    async def get_by_number(self, quote_number: str) -> QuoteModel | None:
        stmt = select(self._model).where(self._model.quote_number == quote_number)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def pending_totals(self) -> list[Decimal]:
        """Totals of quotes waiting on the customer (stored status sent)."""
        stmt = select(self._model.total).where(self._model.status == QuoteStatus.SENT.value)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class InvoiceRepository(BaseRepository[InvoiceModel]):
    """Repository for invoices (items are loaded with the invoice)."""

    resource_name = "Invoice"

    def __init__(self, session: AsyncSession):
        super().__init__(InvoiceModel, session)

    async def get_by_number(self, invoice_number: str) -> InvoiceModel | None:
        stmt = select(self._model).where(self._model.invoice_number == invoice_number)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def paid_totals(self) -> list[Decimal]:
        """Totals of all paid invoices.

        Summed by the caller in Decimal; SQLite aggregates NUMERIC as float.
        """
        stmt = select(self._model.total).where(self._model.status == InvoiceStatus.PAID.value)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def paid_since(self, start: datetime) -> Sequence[tuple[datetime, Decimal]]:
        """``(paid_at, total)`` of invoices paid at or after ``start``."""
        stmt = (
            select(self._model.paid_at, self._model.total)
            .where(
                self._model.status == InvoiceStatus.PAID.value,
                self._model.paid_at >= start,
            )
            .order_by(self._model.paid_at)
        )
        result = await self._session.execute(stmt)
        return [(row.paid_at, row.total) for row in result]
