"""Quote and invoice lifecycle.

Statuses are closed enums. Stored status only changes through an explicit
action (send, accept, pay, ...). Expiry and overdue are derived at read
time from ``valid_until`` / ``due_date``; nothing flips them in the
background.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from callmate.billing.totals import to_money
from callmate.core.clock import business_zone
from callmate.core.exceptions import InvalidTransitionError, ValidationError


class QuoteStatus(str, Enum):
    """Quote workflow stage."""

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class InvoiceStatus(str, Enum):
    """Invoice workflow stage."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


QUOTE_TRANSITIONS: dict[QuoteStatus, frozenset[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT}),
    QuoteStatus.SENT: frozenset({QuoteStatus.ACCEPTED, QuoteStatus.DECLINED, QuoteStatus.EXPIRED}),
    QuoteStatus.ACCEPTED: frozenset(),
    QuoteStatus.DECLINED: frozenset(),
    QuoteStatus.EXPIRED: frozenset(),
}

INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}

# Timestamp column stamped when a document enters a status
_QUOTE_STAMPS = {
    QuoteStatus.SENT: "sent_at",
    QuoteStatus.ACCEPTED: "accepted_at",
    QuoteStatus.DECLINED: "declined_at",
}
_INVOICE_STAMPS = {
    InvoiceStatus.SENT: "sent_at",
    InvoiceStatus.PAID: "paid_at",
    InvoiceStatus.CANCELLED: "cancelled_at",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_quote_status(value: Any) -> QuoteStatus:
    """Coerce to QuoteStatus, rejecting anything outside the enum."""
    try:
        return QuoteStatus(value)
    except ValueError:
        raise InvalidTransitionError(
            "quote", "?", str(value), allowed=[s.value for s in QuoteStatus]
        )


def parse_invoice_status(value: Any) -> InvoiceStatus:
    """Coerce to InvoiceStatus, rejecting anything outside the enum."""
    try:
        return InvoiceStatus(value)
    except ValueError:
        raise InvalidTransitionError(
            "invoice", "?", str(value), allowed=[s.value for s in InvoiceStatus]
        )


def can_transition_quote(current: QuoteStatus, target: QuoteStatus) -> bool:
    return target in QUOTE_TRANSITIONS[current]


def can_transition_invoice(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    return target in INVOICE_TRANSITIONS[current]


def transition_quote(quote: Any, target: Any, now: datetime | None = None) -> QuoteStatus:
    """Move a quote to ``target`` and stamp the matching timestamp.

    Args:
        quote: Object with ``status`` and the ``*_at`` timestamp attributes
        target: Target status (enum member or its string value)
        now: Transition time (defaults to current UTC time)

    Returns:
        The new status

    Raises:
        InvalidTransitionError: If target is unknown or not reachable
    """
    target_status = parse_quote_status(target)
    current = parse_quote_status(quote.status)
    if not can_transition_quote(current, target_status):
        raise InvalidTransitionError(
            "quote",
            current.value,
            target_status.value,
            allowed=sorted(s.value for s in QUOTE_TRANSITIONS[current]),
        )

    quote.status = target_status.value
    stamp = _QUOTE_STAMPS.get(target_status)
    if stamp:
        setattr(quote, stamp, now or _utcnow())
    return target_status


def transition_invoice(
    invoice: Any,
    target: Any,
    now: datetime | None = None,
) -> InvoiceStatus:
    """Move an invoice to ``target`` and stamp the matching timestamp.

    Raises:
        InvalidTransitionError: If target is unknown or not reachable
    """
    target_status = parse_invoice_status(target)
    current = parse_invoice_status(invoice.status)
    if not can_transition_invoice(current, target_status):
        raise InvalidTransitionError(
            "invoice",
            current.value,
            target_status.value,
            allowed=sorted(s.value for s in INVOICE_TRANSITIONS[current]),
        )

    invoice.status = target_status.value
    stamp = _INVOICE_STAMPS.get(target_status)
    if stamp:
        setattr(invoice, stamp, now or _utcnow())
    return target_status


def record_payment(
    invoice: Any,
    amount: Any | None = None,
    now: datetime | None = None,
) -> InvoiceStatus:
    """Record a payment against an invoice.

    A full payment (or no amount) marks the invoice paid and sets
    ``amount_paid`` to the total. A partial payment only raises
    ``amount_paid``; the status stays where it is.

    Raises:
        ValidationError: If the amount is not positive
        InvalidTransitionError: If the invoice cannot be paid from its status
    """
    current = parse_invoice_status(invoice.status)
    if not can_transition_invoice(current, InvoiceStatus.PAID):
        raise InvalidTransitionError(
            "invoice",
            current.value,
            InvoiceStatus.PAID.value,
            allowed=sorted(s.value for s in INVOICE_TRANSITIONS[current]),
        )

    total = to_money(invoice.total or 0)
    paid_so_far = to_money(invoice.amount_paid or 0)

    if amount is None:
        new_paid = total
    else:
        payment = to_money(amount)
        if payment <= 0:
            raise ValidationError("Payment amount must be positive")
        new_paid = min(paid_so_far + payment, total)

    invoice.amount_paid = new_paid
    if new_paid >= total:
        return transition_invoice(invoice, InvoiceStatus.PAID, now)
    return current


def _as_date(value: date | datetime | None, tz_name: str) -> date | None:
    """Calendar date of a stored UTC timestamp in the business timezone."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(business_zone(tz_name)).date()
    return value


def effective_quote_status(
    status: Any,
    valid_until: date | datetime | None,
    today: date,
    tz_name: str = "UTC",
) -> QuoteStatus:
    """Status as displayed: a sent quote past ``valid_until`` reads as expired.

    ``today`` and the date of ``valid_until`` are both taken in ``tz_name``.
    """
    current = parse_quote_status(status)
    limit = _as_date(valid_until, tz_name)
    if current is QuoteStatus.SENT and limit is not None and limit < today:
        return QuoteStatus.EXPIRED
    return current


def effective_invoice_status(
    status: Any,
    due_date: date | datetime | None,
    today: date,
    tz_name: str = "UTC",
) -> InvoiceStatus:
    """Status as displayed: a sent invoice past ``due_date`` reads as overdue."""
    current = parse_invoice_status(status)
    due = _as_date(due_date, tz_name)
    if current is InvoiceStatus.SENT and due is not None and due < today:
        return InvoiceStatus.OVERDUE
    return current


def balance_due(total: Any, amount_paid: Any) -> Decimal:
    """Outstanding amount, never negative."""
    remaining = to_money(total or 0) - to_money(amount_paid or 0)
    return max(remaining, Decimal("0.00"))
