"""Quote Endpoints.

CRUD plus lifecycle actions (send, accept, decline), conversion to an
invoice and AI-drafted line items.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import get_current_user
from callmate.api.dependencies import get_llm_client
from callmate.api.invoices import Invoice
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
from callmate.billing.lifecycle import effective_quote_status
from callmate.config import get_settings
from callmate.core.clock import business_today, utcnow
from callmate.core.log import get_logger
from callmate.db.models.billing import QuoteModel
from callmate.db.session import get_db
from callmate.integrations.llm import LLMClient
from callmate.services.documents import InvoiceService, QuoteService
from callmate.services.receptionist import ReceptionistService

log = get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


# ============================================================================
# Pydantic Schemas
# ============================================================================

class QuoteCreate(CamelModel):
    """Schema for creating a quote. Totals are computed server-side."""

    title: str = Field(min_length=1, max_length=255)
    customer_id: UUID | None = None
    description: str | None = None
    valid_until: UTCDateTime | None = None
    notes: str | None = None
    items: list[LineItemIn] = Field(min_length=1)


class QuoteUpdate(PatchModel):
    """Schema for updating a quote.

    ``items`` replaces all items and recomputes totals; ``status`` must be
    a permitted transition.
    """

    required_fields = frozenset({"title", "status", "items"})

    title: str | None = Field(default=None, min_length=1, max_length=255)
    customer_id: UUID | None = None
    description: str | None = None
    valid_until: UTCDateTime | None = None
    notes: str | None = None
    status: str | None = None
    items: list[LineItemIn] | None = Field(default=None, min_length=1)


class Quote(CamelModel):
    """Quote schema for API responses."""

    id: UUID
    quote_number: str
    customer_id: UUID | None = None
    customer_name: str | None = None
    title: str
    description: str | None = None
    status: str
    effective_status: str
    subtotal: Decimal
    tax: Decimal
    discount: Decimal = Decimal("0.00")
    total: Decimal
    valid_until: UTCDateTime | None = None
    sent_at: UTCDateTime | None = None
    accepted_at: UTCDateTime | None = None
    declined_at: UTCDateTime | None = None
    notes: str | None = None
    items: list[LineItemOut] = Field(default_factory=list)
    created_at: UTCDateTime | None = None
    updated_at: UTCDateTime | None = None

    @classmethod
    def from_model(cls, model: QuoteModel, today: date | None = None) -> "Quote":
        """Create schema from ORM model, deriving the effective status."""
        tz_name = get_settings().business.timezone
        if today is None:
            today = business_today(utcnow(), tz_name)
        return cls(
            id=model.id,
            quote_number=model.quote_number,
            customer_id=model.customer_id,
            customer_name=model.customer.full_name if model.customer else None,
            title=model.title,
            description=model.description,
            status=model.status,
            effective_status=effective_quote_status(model.status, model.valid_until, today, tz_name).value,
            subtotal=model.subtotal,
            tax=model.tax,
            total=model.total,
            valid_until=model.valid_until,
            sent_at=model.sent_at,
            accepted_at=model.accepted_at,
            declined_at=model.declined_at,
            notes=model.notes,
            items=[LineItemOut.model_validate(item) for item in model.items],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class QuoteDraftRequest(CamelModel):
    """Ask the AI for suggested line items."""

    services: list[str] = Field(min_length=1)
    customer_info: dict[str, Any] | None = None


class QuoteDraftItem(CamelModel):
    description: str
    quantity: int
    rate: Decimal
    amount: Decimal


class QuoteDraftResponse(CamelModel):
    """Suggested items with locally computed totals."""

    description: str | None = None
    items: list[QuoteDraftItem]
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    notes: list[str] = Field(default_factory=list)


# ============================================================================
# Dependencies
# ============================================================================

async def get_quote_service(
    session: Annotated[AsyncSession, Depends(get_db)]
) -> QuoteService:
    """Get quote service instance."""
    return QuoteService(session)


Quotes = Annotated[QuoteService, Depends(get_quote_service)]


# ============================================================================
# CRUD Endpoints
# ============================================================================

@router.get("/quotes", response_model=list[Quote])
async def list_quotes(
    service: Quotes,
    limit: Annotated[int, Query(ge=1, le=MAX_LIST_LIMIT)] = DEFAULT_LIST_LIMIT,
) -> list[Quote]:
    """List quotes newest first."""
    return [Quote.from_model(q) for q in await service.repo.list_recent(limit=limit)]


@router.post("/quotes/draft", response_model=QuoteDraftResponse)
async def draft_quote(
    body: QuoteDraftRequest,
    session: Annotated[AsyncSession, Depends(get_db)],
    llm: Annotated[LLMClient, Depends(get_llm_client)],
) -> QuoteDraftResponse:
    """Suggest line items for the requested services."""
    draft = await ReceptionistService(session, llm).draft_quote(body.services, body.customer_info)
    return QuoteDraftResponse(
        description=draft.description,
        items=[
            QuoteDraftItem(
                description=item.description,
                quantity=item.quantity,
                rate=item.rate,
                amount=item.amount,
            )
            for item in draft.items
        ],
        subtotal=draft.totals.subtotal,
        tax=draft.totals.tax,
        discount=draft.totals.discount,
        total=draft.totals.total,
        notes=draft.notes,
    )


@router.get("/quotes/{quote_id}", response_model=Quote)
async def get_quote(quote_id: UUID, service: Quotes) -> Quote:
    """Get a single quote with its items."""
    return Quote.from_model(await service.repo.get_or_raise(quote_id))


@router.post("/quotes", response_model=Quote, status_code=status.HTTP_201_CREATED)
async def create_quote(body: QuoteCreate, service: Quotes) -> Quote:
    """Create a draft quote; totals and number are assigned here."""
    return Quote.from_model(await service.create(body.model_dump()))


@router.patch("/quotes/{quote_id}", response_model=Quote)
async def update_quote(quote_id: UUID, body: QuoteUpdate, service: Quotes) -> Quote:
    """Merge the supplied fields into a quote."""
    return Quote.from_model(await service.update(quote_id, body.changes()))


@router.delete("/quotes/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote(quote_id: UUID, service: Quotes) -> Response:
    """Delete a quote and its items."""
    await service.repo.delete(quote_id)
    log.info("Quote deleted", quote_id=str(quote_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Lifecycle Actions
# ============================================================================

@router.post("/quotes/{quote_id}/send", response_model=Quote)
async def send_quote(
    quote_id: UUID,
    service: Quotes,
    body: SendRequest | None = None,
) -> Quote:
    """Mark a draft quote as sent."""
    body = body or SendRequest()
    quote = await service.send(quote_id, recipient=body.email, message=body.message)
    return Quote.from_model(quote)


@router.post("/quotes/{quote_id}/accept", response_model=Quote)
async def accept_quote(quote_id: UUID, service: Quotes) -> Quote:
    return Quote.from_model(await service.accept(quote_id))


@router.post("/quotes/{quote_id}/decline", response_model=Quote)
async def decline_quote(quote_id: UUID, service: Quotes) -> Quote:
    return Quote.from_model(await service.decline(quote_id))


@router.post(
    "/quotes/{quote_id}/invoice",
    response_model=Invoice,
    status_code=status.HTTP_201_CREATED,
)
async def invoice_from_quote(
    quote_id: UUID,
    session: Annotated[AsyncSession, Depends(get_db)],
) -> Invoice:
    """Create a draft invoice from an accepted quote."""
    invoice = await InvoiceService(session).create_from_quote(quote_id)
    log.info("Quote invoiced", quote_id=str(quote_id), invoice_number=invoice.invoice_number)
    return Invoice.from_model(invoice)
