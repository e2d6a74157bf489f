"""Invoice Endpoints.

CRUD plus lifecycle actions (send, pay, cancel).
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import get_current_user
from callmate.api.schemas import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    CamelModel,
    LineItemIn,
    LineItemOut,
    PatchModel,
    SendRequest,
    UTCDateTime,
)
from callmate.billing.lifecycle import balance_due, effective_invoice_status
from callmate.config import get_settings
from callmate.core.clock import business_today, utcnow
from callmate.core.log import get_logger
from callmate.db.models.billing import InvoiceModel
from callmate.db.session import get_db
from callmate.services.documents import InvoiceService

log = get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


# ============================================================================
# Pydantic Schemas
# ============================================================================

class InvoiceCreate(CamelModel):
    """Schema for creating an invoice. Totals are computed server-side."""

    customer_id: UUID | None = None
    job_id: UUID | None = None
    quote_id: UUID | None = None
    due_date: UTCDateTime | None = None
    notes: str | None = None
    items: list[LineItemIn] = Field(min_length=1)


class InvoiceUpdate(PatchModel):
    """Schema for updating an invoice.

    ``items`` replaces all items and recomputes totals; ``status`` must be
    a permitted transition. Payments go through ``/pay``.
    """

    required_fields = frozenset({"status", "items"})

    customer_id: UUID | None = None
    job_id: UUID | None = None
    quote_id: UUID | None = None
    due_date: UTCDateTime | None = None
    notes: str | None = None
    status: str | None = None
    items: list[LineItemIn] | None = Field(default=None, min_length=1)


class PaymentRequest(CamelModel):
    """Record a payment. Without an amount the full balance is paid."""

    amount: Decimal | None = Field(default=None, gt=0, decimal_places=2)


class Invoice(CamelModel):
    """Invoice schema for API responses."""

    id: UUID
    invoice_number: str
    customer_id: UUID | None = None
    customer_name: str | None = None
    job_id: UUID | None = None
    quote_id: UUID | None = None
    status: str
    effective_status: str
    subtotal: Decimal
    tax: Decimal
    discount: Decimal = Decimal("0.00")
    total: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    due_date: UTCDateTime | None = None
    sent_at: UTCDateTime | None = None
    paid_at: UTCDateTime | None = None
    cancelled_at: UTCDateTime | None = None
    notes: str | None = None
    items: list[LineItemOut] = Field(default_factory=list)
    created_at: UTCDateTime | None = None
    updated_at: UTCDateTime | None = None

    @classmethod
    def from_model(cls, model: InvoiceModel, today: date | None = None) -> "Invoice":
        """Create schema from ORM model, deriving the effective status."""
        tz_name = get_settings().business.timezone
        if today is None:
            today = business_today(utcnow(), tz_name)
        return cls(
            id=model.id,
            invoice_number=model.invoice_number,
            customer_id=model.customer_id,
            customer_name=model.customer.full_name if model.customer else None,
            job_id=model.job_id,
            quote_id=model.quote_id,
            status=model.status,
            effective_status=effective_invoice_status(model.status, model.due_date, today, tz_name).value,
            subtotal=model.subtotal,
            tax=model.tax,
            total=model.total,
            amount_paid=model.amount_paid,
            balance_due=balance_due(model.total, model.amount_paid),
            due_date=model.due_date,
            sent_at=model.sent_at,
            paid_at=model.paid_at,
            cancelled_at=model.cancelled_at,
            notes=model.notes,
            items=[LineItemOut.model_validate(item) for item in model.items],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ============================================================================
# Dependencies
# ============================================================================

async def get_invoice_service(
    session: Annotated[AsyncSession, Depends(get_db)]
) -> InvoiceService:
    """Get invoice service instance."""
    return InvoiceService(session)


Invoices = Annotated[InvoiceService, Depends(get_invoice_service)]


# ============================================================================
# CRUD Endpoints
# ============================================================================

@router.get("/invoices", response_model=list[Invoice])
async def list_invoices(
    service: Invoices,
    limit: Annotated[int, Query(ge=1, le=MAX_LIST_LIMIT)] = DEFAULT_LIST_LIMIT,
) -> list[Invoice]:
    """List invoices newest first."""
    return [Invoice.from_model(i) for i in await service.repo.list_recent(limit=limit)]


@router.get("/invoices/{invoice_id}", response_model=Invoice)
async def get_invoice(invoice_id: UUID, service: Invoices) -> Invoice:
    """Get a single invoice with its items."""
    return Invoice.from_model(await service.repo.get_or_raise(invoice_id))


@router.post("/invoices", response_model=Invoice, status_code=status.HTTP_201_CREATED)
async def create_invoice(body: InvoiceCreate, service: Invoices) -> Invoice:
    """Create a draft invoice; totals and number are assigned here."""
    return Invoice.from_model(await service.create(body.model_dump()))


@router.patch("/invoices/{invoice_id}", response_model=Invoice)
async def update_invoice(invoice_id: UUID, body: InvoiceUpdate, service: Invoices) -> Invoice:
    """Merge the supplied fields into an invoice."""
    return Invoice.from_model(await service.update(invoice_id, body.changes()))


@router.delete("/invoices/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(invoice_id: UUID, service: Invoices) -> Response:
    """Delete an invoice and its items."""
    await service.repo.delete(invoice_id)
    log.info("Invoice deleted", invoice_id=str(invoice_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Lifecycle Actions
# ============================================================================

@router.post("/invoices/{invoice_id}/send", response_model=Invoice)
async def send_invoice(
    invoice_id: UUID,
    service: Invoices,
    body: SendRequest | None = None,
) -> Invoice:
    """Mark a draft invoice as sent."""
    body = body or SendRequest()
    invoice = await service.send(invoice_id, recipient=body.email, message=body.message)
    return Invoice.from_model(invoice)


@router.post("/invoices/{invoice_id}/pay", response_model=Invoice)
async def pay_invoice(
    invoice_id: UUID,
    service: Invoices,
    body: PaymentRequest | None = None,
) -> Invoice:
    """Record a full or partial payment."""
    amount = body.amount if body else None
    return Invoice.from_model(await service.mark_paid(invoice_id, amount))


@router.post("/invoices/{invoice_id}/cancel", response_model=Invoice)
async def cancel_invoice(invoice_id: UUID, service: Invoices) -> Invoice:
    return Invoice.from_model(await service.cancel(invoice_id))
