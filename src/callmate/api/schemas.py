"""Shared API schema pieces.

JSON bodies use camelCase keys; requests may also use snake_case.
"""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, ClassVar
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

MAX_LIST_LIMIT = 500
DEFAULT_LIST_LIMIT = 100


def to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Datetimes are stored in UTC; naive input is taken as UTC
UTCDateTime = Annotated[datetime, AfterValidator(to_utc)]

# Money amounts in major units with at most two decimals
Money = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]

HHMM = Annotated[str, Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PatchModel(CamelModel):
    """Base for PATCH bodies: only fields the client sent are applied.

    Fields listed in ``required_fields`` may be left out but not cleared
    with an explicit null.
    """

    required_fields: ClassVar[frozenset[str]] = frozenset()

    @field_validator("*")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name in cls.required_fields:
            raise ValueError("Field cannot be null")
        return value

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class LineItemIn(CamelModel):
    """One billable row in a quote/invoice request.

    Quantity and rate are checked again by the calculator's validation.
    """

    description: str = Field(min_length=1)
    quantity: int = Field(ge=1, strict=True)
    rate: Money


class LineItemOut(CamelModel):
    id: UUID | None = None
    position: int
    description: str
    quantity: int
    rate: Decimal
    amount: Decimal


class SendRequest(CamelModel):
    """Send a quote or invoice. Delivery is handled outside this service."""

    email: str | None = None
    message: str | None = None
