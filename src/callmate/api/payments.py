"""Payment Endpoints."""
from __future__ import annotations

from decimal import Decimal
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import get_current_user
from callmate.api.dependencies import get_payments_client
from callmate.api.schemas import CamelModel
from callmate.billing.lifecycle import balance_due
from callmate.core.exceptions import ValidationError
from callmate.db.repositories import InvoiceRepository
from callmate.db.session import get_db
from callmate.integrations.payments import PaymentsClient

router = APIRouter(dependencies=[Depends(get_current_user)])


class PaymentIntentRequest(CamelModel):
    """Amount in dollars, or an invoice whose balance should be charged."""

    amount: Decimal | None = Field(default=None, gt=0, decimal_places=2)
    invoice_id: UUID | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class PaymentIntentResponse(CamelModel):
    client_secret: str


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: PaymentIntentRequest,
    session: Annotated[AsyncSession, Depends(get_db)],
    payments: Annotated[PaymentsClient, Depends(get_payments_client)],
) -> PaymentIntentResponse:
    """Create a payment intent for the browser to confirm."""
    amount = body.amount
    metadata: dict[str, str] = {}

    if body.invoice_id is not None:
        invoice = await InvoiceRepository(session).get_or_raise(body.invoice_id)
        metadata = {"invoice_id": str(invoice.id), "invoice_number": invoice.invoice_number}
        if amount is None:
            amount = balance_due(invoice.total, invoice.amount_paid)

    if amount is None:
        raise ValidationError("Either amount or invoiceId is required")

    secret = await payments.create_payment_intent(
        amount,
        currency=body.currency.lower() if body.currency else None,
        metadata=metadata,
    )
    return PaymentIntentResponse(client_secret=secret)
