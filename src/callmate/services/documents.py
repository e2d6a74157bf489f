"""Quote and invoice services.

Wraps the billing rules around persistence:
- documents and their items are written together inside a savepoint
- totals are always recomputed from the items on the server
- status changes only go through the lifecycle tracker
- items only change while a document is draft or sent
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from callmate.billing.lifecycle import (
    InvoiceStatus,
    QuoteStatus,
    record_payment,
    transition_invoice,
    transition_quote,
)
from callmate.billing.numbering import invoice_numbers, quote_numbers
from callmate.billing.totals import (
    DocumentTotals,
    LineItem,
    calculate_totals,
    to_money,
    validate_line_items,
)
from callmate.config import BusinessSettings, get_settings
from callmate.core.clock import utcnow
from callmate.core.exceptions import ValidationError
from callmate.core.log import get_logger
from callmate.db.models.billing import (
    InvoiceItemModel,
    InvoiceModel,
    QuoteItemModel,
    QuoteModel,
)
from callmate.db.repositories.billing import InvoiceRepository, QuoteRepository

log = get_logger(__name__)


def parse_items(raw_items: Sequence[Any]) -> list[LineItem]:
    """Build validated line items from dicts or LineItem instances.

    Raises:
        ValidationError: If the list is empty or any item is invalid
    """
    items = [
        item if isinstance(item, LineItem) else LineItem.from_mapping(dict(item))
        for item in raw_items or []
    ]
    validate_line_items(items)
    return items


def _item_rows(items: Sequence[LineItem], model: type) -> list[Any]:
    return [
        model(
            position=position,
            description=item.description,
            quantity=item.quantity,
            rate=item.rate,
            amount=item.amount,
        )
        for position, item in enumerate(items)
    ]


def _apply_totals(document: Any, totals: DocumentTotals) -> None:
    document.subtotal = totals.subtotal
    document.tax = totals.tax
    document.total = totals.total


class _DocumentService:
    """Shared plumbing of the quote and invoice services."""

    item_model: type
    document_name: str
    #: Statuses in which the items (and so the totals) may still change
    editable_statuses: frozenset[str]

    def __init__(
        self,
        session: AsyncSession,
        business: BusinessSettings | None = None,
    ):
        self._session = session
        self._business = business or get_settings().business

    @property
    def tax_rate(self) -> Decimal:
        return self._business.tax_rate

    def compute(self, raw_items: Sequence[Any]) -> tuple[list[LineItem], DocumentTotals]:
        """Validate items and compute their totals."""
        items = parse_items(raw_items)
        return items, calculate_totals(items, self.tax_rate)

    async def _persist_new(self, document: Any, items: Sequence[LineItem]) -> Any:
        async with self._session.begin_nested():
            document.items = _item_rows(items, self.item_model)
            self._session.add(document)
            await self._session.flush()
        await self._session.refresh(document)
        return document

    def _check_editable(self, document: Any, totals: DocumentTotals) -> None:
        if document.status not in self.editable_statuses:
            raise ValidationError(
                f"Items cannot be changed on a {self.document_name} in status '{document.status}'",
                details={"status": document.status, "editable": sorted(self.editable_statuses)},
            )

    async def _replace_items(self, document: Any, raw_items: Sequence[Any]) -> Any:
        items, totals = self.compute(raw_items)
        self._check_editable(document, totals)
        async with self._session.begin_nested():
            document.items = _item_rows(items, self.item_model)
            _apply_totals(document, totals)
            await self._session.flush()
        await self._session.refresh(document)
        return document

    async def _save(self, document: Any) -> Any:
        await self._session.flush()
        await self._session.refresh(document)
        return document


class QuoteService(_DocumentService):
    """Quote creation, editing and lifecycle actions."""

    item_model = QuoteItemModel
    document_name = "quote"
    editable_statuses = frozenset({QuoteStatus.DRAFT.value, QuoteStatus.SENT.value})

    def __init__(self, session: AsyncSession, business: BusinessSettings | None = None):
        super().__init__(session, business)
        self.repo = QuoteRepository(session)

    async def create(self, data: dict[str, Any], now: datetime | None = None) -> QuoteModel:
        """Create a draft quote with its items.

        Args:
            data: Quote fields plus ``items`` (list of description/quantity/rate)
            now: Creation time (defaults to current UTC time)

        Returns:
            The stored quote with items and totals

        Raises:
            ValidationError: If the items are invalid; nothing is persisted
        """
        fields = dict(data)
        items, totals = self.compute(fields.pop("items", None) or [])
        fields.pop("status", None)
        if fields.get("valid_until") is None:
            fields["valid_until"] = (now or utcnow()) + timedelta(days=self._business.quote_validity_days)

        quote = QuoteModel(
            quote_number=quote_numbers.next(),
            status=QuoteStatus.DRAFT.value,
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
            **fields,
        )
        quote = await self._persist_new(quote, items)
        log.info("Quote created", quote_number=quote.quote_number, total=str(quote.total))
        return quote

    async def update(self, quote_id: UUID | str, data: dict[str, Any]) -> QuoteModel:
        """Merge fields; ``items`` recomputes totals, ``status`` is a transition."""
        quote = await self.repo.get_or_raise(quote_id)
        fields = dict(data)
        items = fields.pop("items", None)
        status = fields.pop("status", None)

        if items is not None:
            await self._replace_items(quote, items)
        if status is not None and status != quote.status:
            transition_quote(quote, status)
        return await self.repo.apply(quote, fields)

    async def replace_items(self, quote_id: UUID | str, raw_items: Sequence[Any]) -> QuoteModel:
        """Swap the quote's items and recompute its totals."""
        quote = await self.repo.get_or_raise(quote_id)
        return await self._replace_items(quote, raw_items)

    async def send(
        self,
        quote_id: UUID | str,
        *,
        recipient: str | None = None,
        message: str | None = None,
    ) -> QuoteModel:
        """Mark the quote sent. Delivery itself is handled elsewhere."""
        quote = await self.repo.get_or_raise(quote_id)
        transition_quote(quote, QuoteStatus.SENT)
        to = recipient or (quote.customer.email if quote.customer else None)
        log.info(
            "Quote sent",
            quote_number=quote.quote_number,
            to=to,
            has_message=bool(message),
        )
        return await self._save(quote)

    async def accept(self, quote_id: UUID | str) -> QuoteModel:
        quote = await self.repo.get_or_raise(quote_id)
        transition_quote(quote, QuoteStatus.ACCEPTED)
        log.info("Quote accepted", quote_number=quote.quote_number)
        return await self._save(quote)

    async def decline(self, quote_id: UUID | str) -> QuoteModel:
        quote = await self.repo.get_or_raise(quote_id)
        transition_quote(quote, QuoteStatus.DECLINED)
        log.info("Quote declined", quote_number=quote.quote_number)
        return await self._save(quote)

    async def expire(self, quote_id: UUID | str) -> QuoteModel:
        quote = await self.repo.get_or_raise(quote_id)
        transition_quote(quote, QuoteStatus.EXPIRED)
        return await self._save(quote)


class InvoiceService(_DocumentService):
    """Invoice creation, editing, payment and lifecycle actions."""

    item_model = InvoiceItemModel
    document_name = "invoice"
    editable_statuses = frozenset({InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value})

    def __init__(self, session: AsyncSession, business: BusinessSettings | None = None):
        super().__init__(session, business)
        self.repo = InvoiceRepository(session)
        self.quotes = QuoteRepository(session)

    def _check_editable(self, invoice: InvoiceModel, totals: DocumentTotals) -> None:
        super()._check_editable(invoice, totals)
        paid = to_money(invoice.amount_paid or 0)
        if totals.total < paid:
            raise ValidationError(
                "Invoice total cannot drop below the amount already paid",
                details={"total": str(totals.total), "amount_paid": str(paid)},
            )

    async def create(self, data: dict[str, Any], now: datetime | None = None) -> InvoiceModel:
        """Create a draft invoice with its items.

        Raises:
            ValidationError: If the items are invalid; nothing is persisted
        """
        fields = dict(data)
        items, totals = self.compute(fields.pop("items", None) or [])
        fields.pop("status", None)
        fields.pop("amount_paid", None)
        if fields.get("due_date") is None:
            fields["due_date"] = (now or utcnow()) + timedelta(days=self._business.invoice_due_days)

        invoice = InvoiceModel(
            invoice_number=invoice_numbers.next(),
            status=InvoiceStatus.DRAFT.value,
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
            amount_paid=Decimal("0.00"),
            **fields,
        )
        invoice = await self._persist_new(invoice, items)
        log.info("Invoice created", invoice_number=invoice.invoice_number, total=str(invoice.total))
        return invoice

    async def create_from_quote(
        self,
        quote_id: UUID | str,
        *,
        job_id: UUID | None = None,
        now: datetime | None = None,
    ) -> InvoiceModel:
        """Draft an invoice from an accepted quote, copying its items.

        Raises:
            RecordNotFoundError: If the quote does not exist
            ValidationError: If the quote is not accepted
        """
        quote = await self.quotes.get_or_raise(quote_id)
        if quote.status != QuoteStatus.ACCEPTED.value:
            raise ValidationError(
                "Only accepted quotes can be invoiced",
                details={"quote_id": str(quote.id), "status": quote.status},
            )

        items = [
            LineItem(description=item.description, quantity=item.quantity, rate=item.rate)
            for item in quote.items
        ]
        return await self.create(
            {
                "customer_id": quote.customer_id,
                "quote_id": quote.id,
                "job_id": job_id,
                "notes": quote.notes,
                "items": items,
            },
            now=now,
        )

    async def update(self, invoice_id: UUID | str, data: dict[str, Any]) -> InvoiceModel:
        """Merge fields; ``items`` recomputes totals, ``status`` is a transition.

        ``amount_paid`` is not writable here; payments go through
        ``mark_paid``. A PATCH to ``paid`` records a full payment.
        """
        invoice = await self.repo.get_or_raise(invoice_id)
        fields = dict(data)
        items = fields.pop("items", None)
        status = fields.pop("status", None)
        fields.pop("amount_paid", None)

        if items is not None:
            await self._replace_items(invoice, items)
        if status is not None and status != invoice.status:
            if status == InvoiceStatus.PAID.value:
                record_payment(invoice)
            else:
                transition_invoice(invoice, status)
        return await self.repo.apply(invoice, fields)

    async def replace_items(self, invoice_id: UUID | str, raw_items: Sequence[Any]) -> InvoiceModel:
        """Swap the invoice's items and recompute its totals."""
        invoice = await self.repo.get_or_raise(invoice_id)
        return await self._replace_items(invoice, raw_items)

    async def send(
        self,
        invoice_id: UUID | str,
        *,
        recipient: str | None = None,
        message: str | None = None,
    ) -> InvoiceModel:
        """Mark the invoice sent. Delivery itself is handled elsewhere."""
        invoice = await self.repo.get_or_raise(invoice_id)
        transition_invoice(invoice, InvoiceStatus.SENT)
        to = recipient or (invoice.customer.email if invoice.customer else None)
        log.info(
            "Invoice sent",
            invoice_number=invoice.invoice_number,
            to=to,
            has_message=bool(message),
        )
        return await self._save(invoice)

    async def mark_paid(self, invoice_id: UUID | str, amount: Any | None = None) -> InvoiceModel:
        """Record a full payment, or a partial one when ``amount`` is below the balance."""
        invoice = await self.repo.get_or_raise(invoice_id)
        status = record_payment(invoice, amount)
        log.info(
            "Invoice payment recorded",
            invoice_number=invoice.invoice_number,
            amount_paid=str(invoice.amount_paid),
            status=status.value,
        )
        return await self._save(invoice)

    async def cancel(self, invoice_id: UUID | str) -> InvoiceModel:
        invoice = await self.repo.get_or_raise(invoice_id)
        transition_invoice(invoice, InvoiceStatus.CANCELLED)
        log.info("Invoice cancelled", invoice_number=invoice.invoice_number)
        return await self._save(invoice)

    async def mark_overdue(self, invoice_id: UUID | str) -> InvoiceModel:
        invoice = await self.repo.get_or_raise(invoice_id)
        transition_invoice(invoice, InvoiceStatus.OVERDUE)
        return await self._save(invoice)
