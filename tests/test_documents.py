"""Tests for the quote and invoice services."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from callmate.core.exceptions import InvalidTransitionError, ValidationError

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


class TestQuoteService:

    @pytest.mark.asyncio
    async def test_create_computes_totals_and_number(self, db_session, business, sample_customer, quote_items):
        from callmate.services.documents import QuoteService

        quote = await QuoteService(db_session, business).create(
            {"title": "AC repair", "customer_id": sample_customer.id, "items": quote_items},
            now=NOW,
        )

        assert quote.quote_number.startswith("QU-")
        assert quote.status == "draft"
        assert quote.subtotal == Decimal("119.99")
        assert quote.tax == Decimal("9.90")
        assert quote.total == Decimal("129.89")
        assert [item.amount for item in quote.items] == [Decimal("100.00"), Decimal("19.99")]
        assert [item.position for item in quote.items] == [0, 1]
        assert quote.customer.full_name == "Dana Reyes"

    @pytest.mark.asyncio
    async def test_default_valid_until(self, db_session, business, quote_items):
        from callmate.db.base import as_utc
        from callmate.services.documents import QuoteService

        quote = await QuoteService(db_session, business).create({"title": "Q", "items": quote_items}, now=NOW)

        assert as_utc(quote.valid_until) == NOW + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_client_status_ignored_on_create(self, db_session, business, quote_items):
        from callmate.services.documents import QuoteService

        quote = await QuoteService(db_session, business).create(
            {"title": "Q", "status": "accepted", "items": quote_items}
        )

        assert quote.status == "draft"

    @pytest.mark.asyncio
    async def test_invalid_items_persist_nothing(self, db_session, business):
        from callmate.db.models import QuoteItemModel, QuoteModel
        from callmate.services.documents import QuoteService

        service = QuoteService(db_session, business)
        with pytest.raises(ValidationError):
            await service.create({
                "title": "Broken",
                "items": [
                    {"description": "Fine", "quantity": 1, "rate": "10.00"},
                    {"description": "", "quantity": 1, "rate": "10.00"},
                ],
            })

        assert await _count(db_session, QuoteModel) == 0
        assert await _count(db_session, QuoteItemModel) == 0

    @pytest.mark.asyncio
    async def test_update_items_recomputes_totals(self, db_session, business, quote_items):
        from callmate.db.models import QuoteItemModel
        from callmate.services.documents import QuoteService

        service = QuoteService(db_session, business)
        quote = await service.create({"title": "Q", "items": quote_items})

        updated = await service.update(
            quote.id,
            {"title": "Revised", "items": [{"description": "Labor", "quantity": 4, "rate": "25.00"}]},
        )

        assert updated.title == "Revised"
        assert updated.subtotal == Decimal("100.00")
        assert updated.total == Decimal("108.25")
        assert [item.description for item in updated.items] == ["Labor"]
        assert await _count(db_session, QuoteItemModel) == 1

    @pytest.mark.asyncio
    async def test_update_status_goes_through_lifecycle(self, db_session, business, quote_items):
        from callmate.services.documents import QuoteService

        service = QuoteService(db_session, business)
        quote = await service.create({"title": "Q", "items": quote_items})

        with pytest.raises(InvalidTransitionError):
            await service.update(quote.id, {"status": "accepted"})

        sent = await service.update(quote.id, {"status": "sent"})
        assert sent.status == "sent"
        assert sent.sent_at is not None

    @pytest.mark.asyncio
    async def test_send_accept_flow(self, db_session, business, quote_items):
        from callmate.services.documents import QuoteService

        service = QuoteService(db_session, business)
        quote = await service.create({"title": "Q", "items": quote_items})

        await service.send(quote.id, recipient="dana@example.com")
        accepted = await service.accept(quote.id)

        assert accepted.status == "accepted"
        assert accepted.accepted_at is not None
        with pytest.raises(InvalidTransitionError):
            await service.decline(quote.id)

    @pytest.mark.asyncio
    async def test_expire_only_from_sent(self, db_session, business, quote_items):
        from callmate.services.documents import QuoteService

        service = QuoteService(db_session, business)
        quote = await service.create({"title": "Q", "items": quote_items})

        with pytest.raises(InvalidTransitionError):
            await service.expire(quote.id)

        await service.send(quote.id)
        expired = await service.expire(quote.id)

        assert expired.status == "expired"

    @pytest.mark.asyncio
    async def test_replace_items(self, db_session, business, quote_items):
        from callmate.services.documents import QuoteService

        service = QuoteService(db_session, business)
        quote = await service.create({"title": "Q", "items": quote_items})

        replaced = await service.replace_items(
            quote.id, [{"description": "Labor", "quantity": 3, "rate": "95.00"}]
        )

        assert [item.description for item in replaced.items] == ["Labor"]
        assert replaced.subtotal == Decimal("285.00")
        assert replaced.total == Decimal("308.51")

    @pytest.mark.asyncio
    async def test_items_locked_after_acceptance(self, db_session, business, quote_items):
        from callmate.services.documents import QuoteService

        service = QuoteService(db_session, business)
        quote = await service.create({"title": "Q", "items": quote_items})
        await service.send(quote.id)
        revised = await service.replace_items(quote.id, [{"description": "Labor", "quantity": 1, "rate": "95.00"}])
        assert revised.total == Decimal("102.84")
        await service.accept(quote.id)

        with pytest.raises(ValidationError, match="status 'accepted'"):
            await service.replace_items(quote.id, quote_items)

        assert quote.total == Decimal("102.84")


class TestInvoiceService:

    @pytest.mark.asyncio
    async def test_create_starts_unpaid(self, db_session, business, quote_items):
        from callmate.db.base import as_utc
        from callmate.services.documents import InvoiceService

        invoice = await InvoiceService(db_session, business).create(
            {"items": quote_items, "amount_paid": "129.89"}, now=NOW
        )

        assert invoice.invoice_number.startswith("INV-")
        assert invoice.status == "draft"
        assert invoice.amount_paid == Decimal("0.00")
        assert invoice.total == Decimal("129.89")
        assert as_utc(invoice.due_date) == NOW + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_partial_then_full_payment(self, db_session, business, quote_items):
        from callmate.services.documents import InvoiceService

        service = InvoiceService(db_session, business)
        invoice = await service.create({"items": quote_items})
        await service.send(invoice.id)

        partial = await service.mark_paid(invoice.id, Decimal("29.89"))
        assert partial.status == "sent"
        assert partial.amount_paid == Decimal("29.89")

        paid = await service.mark_paid(invoice.id)
        assert paid.status == "paid"
        assert paid.amount_paid == Decimal("129.89")
        assert paid.paid_at is not None

    @pytest.mark.asyncio
    async def test_patch_to_paid_records_full_payment(self, db_session, business, quote_items):
        from callmate.services.documents import InvoiceService

        service = InvoiceService(db_session, business)
        invoice = await service.create({"items": quote_items})
        await service.send(invoice.id)

        paid = await service.update(invoice.id, {"status": "paid", "amount_paid": "1.00"})

        assert paid.status == "paid"
        assert paid.amount_paid == paid.total

    @pytest.mark.asyncio
    async def test_cancel_draft(self, db_session, business, quote_items):
        from callmate.services.documents import InvoiceService

        service = InvoiceService(db_session, business)
        invoice = await service.create({"items": quote_items})

        cancelled = await service.cancel(invoice.id)

        assert cancelled.status == "cancelled"
        with pytest.raises(InvalidTransitionError):
            await service.send(invoice.id)

    @pytest.mark.asyncio
    async def test_overdue_invoice_can_still_be_paid(self, db_session, business, quote_items):
        from callmate.services.documents import InvoiceService

        service = InvoiceService(db_session, business)
        invoice = await service.create({"items": quote_items})
        await service.send(invoice.id)

        overdue = await service.mark_overdue(invoice.id)
        assert overdue.status == "overdue"

        paid = await service.mark_paid(invoice.id)
        assert paid.status == "paid"

    @pytest.mark.asyncio
    async def test_replace_items_keeps_payment(self, db_session, business, quote_items):
        from callmate.services.documents import InvoiceService

        service = InvoiceService(db_session, business)
        invoice = await service.create({"items": quote_items})

        replaced = await service.replace_items(
            invoice.id, [{"description": "Labor", "quantity": 1, "rate": "100.00"}]
        )

        assert replaced.total == Decimal("108.25")
        assert replaced.amount_paid == Decimal("0.00")
        assert len(replaced.items) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("close", ["mark_paid", "cancel"])
    async def test_items_locked_once_closed(self, db_session, business, quote_items, close):
        from callmate.services.documents import InvoiceService

        service = InvoiceService(db_session, business)
        invoice = await service.create({"items": quote_items})
        await service.send(invoice.id)
        await getattr(service, close)(invoice.id)

        with pytest.raises(ValidationError):
            await service.update(invoice.id, {"items": [{"description": "Labor", "quantity": 1, "rate": "1.00"}]})

        assert invoice.total == Decimal("129.89")

    @pytest.mark.asyncio
    async def test_total_cannot_drop_below_amount_paid(self, db_session, business, quote_items):
        from callmate.services.documents import InvoiceService

        service = InvoiceService(db_session, business)
        invoice = await service.create({"items": quote_items})
        await service.send(invoice.id)
        await service.mark_paid(invoice.id, Decimal("100.00"))

        with pytest.raises(ValidationError, match="already paid"):
            await service.replace_items(invoice.id, [{"description": "Labor", "quantity": 1, "rate": "50.00"}])

        raised = await service.replace_items(invoice.id, [{"description": "Labor", "quantity": 2, "rate": "95.00"}])
        assert raised.total == Decimal("205.68")
        assert raised.status == "sent"

    @pytest.mark.asyncio
    async def test_create_from_accepted_quote(self, db_session, business, sample_customer, quote_items):
        from callmate.services.documents import InvoiceService, QuoteService

        quotes = QuoteService(db_session, business)
        quote = await quotes.create(
            {"title": "Q", "customer_id": sample_customer.id, "notes": "Side gate", "items": quote_items}
        )
        await quotes.send(quote.id)
        await quotes.accept(quote.id)

        invoice = await InvoiceService(db_session, business).create_from_quote(quote.id)

        assert invoice.quote_id == quote.id
        assert invoice.customer_id == sample_customer.id
        assert invoice.total == quote.total
        assert invoice.notes == "Side gate"
        assert [i.description for i in invoice.items] == ["Service call", "Capacitor"]

    @pytest.mark.asyncio
    async def test_create_from_unaccepted_quote_rejected(self, db_session, business, quote_items):
        from callmate.services.documents import InvoiceService, QuoteService

        quote = await QuoteService(db_session, business).create({"title": "Q", "items": quote_items})

        with pytest.raises(ValidationError, match="accepted"):
            await InvoiceService(db_session, business).create_from_quote(quote.id)

    @pytest.mark.asyncio
    async def test_tax_rate_comes_from_settings(self, db_session, quote_items):
        from callmate.config import BusinessSettings
        from callmate.services.documents import InvoiceService

        service = InvoiceService(db_session, BusinessSettings(tax_rate=Decimal("0.10")))
        invoice = await service.create({"items": quote_items})

        assert invoice.tax == Decimal("12.00")
        assert invoice.total == Decimal("131.99")
