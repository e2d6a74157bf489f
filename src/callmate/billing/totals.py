"""Line-item totals for quotes and invoices.

All money math is done in ``Decimal``. Floats coming from JSON are
converted through ``str()`` so ``0.1 + 0.2`` stays ``0.30``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Sequence

from callmate.core.exceptions import ValidationError

CENT = Decimal("0.01")
DEFAULT_TAX_RATE = Decimal("0.0825")


def to_money(value: Any) -> Decimal:
    """Convert a number or numeric string to a cent-quantized Decimal."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """Convert to Decimal without binary float drift."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Not a monetary amount: {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValidationError(f"Not a monetary amount: {value!r}", cause=e)


@dataclass(frozen=True)
class LineItem:
    """One billable row on a quote or invoice."""

    description: str
    quantity: int
    rate: Decimal

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "LineItem":
        """Build from a plain dict (API payload or LLM output)."""
        return cls(
            description=str(data.get("description") or "").strip(),
            quantity=data.get("quantity", 0),
            rate=to_decimal(data.get("rate", 0)),
        )

    @property
    def amount(self) -> Decimal:
        return line_amount(self)


@dataclass(frozen=True)
class DocumentTotals:
    """Computed totals of a line-item list."""

    subtotal: Decimal
    tax: Decimal
    total: Decimal
    tax_rate: Decimal = DEFAULT_TAX_RATE
    # Shown on documents, never applied
    discount: Decimal = Decimal("0.00")

    def as_dict(self) -> dict[str, str]:
        return {
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "discount": str(self.discount),
            "total": str(self.total),
        }


def validate_line_items(items: Sequence[LineItem]) -> None:
    """Reject item lists the calculator must never see.

    Raises:
        ValidationError: On an empty list, a blank description, a quantity
            below 1, a negative rate or a rate with sub-cent precision.
    """
    if not items:
        raise ValidationError("At least one line item is required")

    problems: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        if not item.description or not item.description.strip():
            problems.append({"index": index, "field": "description", "message": "Description is required"})
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
            problems.append({"index": index, "field": "quantity", "message": "Quantity must be a whole number"})
        elif item.quantity < 1:
            problems.append({"index": index, "field": "quantity", "message": "Quantity must be at least 1"})
        if item.rate < 0:
            problems.append({"index": index, "field": "rate", "message": "Rate cannot be negative"})
        elif item.rate != item.rate.quantize(CENT):
            problems.append({"index": index, "field": "rate", "message": "Rate has more than two decimals"})

    if problems:
        raise ValidationError("Invalid line items", details={"items": problems})


def line_amount(item: LineItem) -> Decimal:
    """Quantity times rate, in cents."""
    return (Decimal(item.quantity) * item.rate).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_totals(
    items: Iterable[LineItem],
    tax_rate: Decimal = DEFAULT_TAX_RATE,
) -> DocumentTotals:
    """Compute subtotal, tax and total.

    ``subtotal = sum(quantity * rate)``, ``tax = round(subtotal * tax_rate, 2)``
    (half up), ``total = subtotal + tax``. Pure; callers validate first.

    Args:
        items: Validated line items
        tax_rate: Flat tax rate as a fraction (0.0825 for 8.25%)

    Returns:
        DocumentTotals with cent-quantized values
    """
    subtotal = sum((line_amount(item) for item in items), Decimal("0")).quantize(CENT)
    tax = (subtotal * tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return DocumentTotals(
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        tax_rate=tax_rate,
    )


def to_minor_units(amount: Any) -> int:
    """Convert a major-unit amount (dollars) to integer cents."""
    return int(to_money(amount) * 100)
