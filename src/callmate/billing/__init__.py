"""Billing rules: line-item totals, document lifecycle and numbering."""

from callmate.billing.lifecycle import (
    InvoiceStatus,
    QuoteStatus,
    effective_invoice_status,
    effective_quote_status,
    record_payment,
    transition_invoice,
    transition_quote,
)
from callmate.billing.numbering import (
    DocumentNumberGenerator,
    invoice_numbers,
    job_numbers,
    quote_numbers,
)
from callmate.billing.totals import (
    DocumentTotals,
    LineItem,
    calculate_totals,
    validate_line_items,
)

__all__ = [
    "InvoiceStatus",
    "QuoteStatus",
    "effective_invoice_status",
    "effective_quote_status",
    "record_payment",
    "transition_invoice",
    "transition_quote",
    "DocumentNumberGenerator",
    "invoice_numbers",
    "job_numbers",
    "quote_numbers",
    "DocumentTotals",
    "LineItem",
    "calculate_totals",
    "validate_line_items",
]
