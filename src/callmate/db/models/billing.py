"""Quote and Invoice ORM Models.

Contains:
- QuoteModel / QuoteItemModel: priced proposals sent to customers
- InvoiceModel / InvoiceItemModel: bills issued to customers

Line items belong to their document and are deleted with it. Totals are
stored as computed by ``callmate.billing.totals`` at write time.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from callmate.billing.lifecycle import InvoiceStatus, QuoteStatus
from callmate.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from callmate.db.models.crm import CustomerModel
    from callmate.db.models.jobs import JobModel


class _LineItemColumns:
    """Columns shared by quote and invoice line items."""

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="quantity * rate",
    )


class QuoteModel(Base, UUIDMixin, TimestampMixin):
    """Quote ORM model."""

    __tablename__ = "quotes"

    quote_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    customer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        default=QuoteStatus.DRAFT.value,
        comment="draft, sent, accepted, declined, expired",
    )

    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    customer: Mapped["CustomerModel | None"] = relationship(
        back_populates="quotes",
        lazy="selectin",
    )
    items: Mapped[list["QuoteItemModel"]] = relationship(
        back_populates="quote",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuoteItemModel.position",
        lazy="selectin",
    )


class QuoteItemModel(Base, UUIDMixin, _LineItemColumns):
    """Line item on a quote."""

    __tablename__ = "quote_items"

    quote_id: Mapped[UUID] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quote: Mapped["QuoteModel"] = relationship(back_populates="items")


class InvoiceModel(Base, UUIDMixin, TimestampMixin):
    """Invoice ORM model."""

    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    customer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Traceability links only
    job_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("jobs.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    quote_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("quotes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        default=InvoiceStatus.DRAFT.value,
        comment="draft, sent, paid, overdue, cancelled",
    )

    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    customer: Mapped["CustomerModel | None"] = relationship(
        back_populates="invoices",
        lazy="selectin",
    )
    job: Mapped["JobModel | None"] = relationship(lazy="selectin")
    items: Mapped[list["InvoiceItemModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="InvoiceItemModel.position",
        lazy="selectin",
    )


class InvoiceItemModel(Base, UUIDMixin, _LineItemColumns):
    """Line item on an invoice."""

    __tablename__ = "invoice_items"

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    invoice: Mapped["InvoiceModel"] = relationship(back_populates="items")
