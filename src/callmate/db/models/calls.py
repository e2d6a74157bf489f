"""Call Log ORM Model.

Call logs are append-only: rows only carry ``created_at``, and once an
outcome is recorded only the follow-up fields may change.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from callmate.db.base import Base, CreatedAtMixin, UUIDMixin

if TYPE_CHECKING:
    from callmate.db.models.crm import CustomerModel


class CallDirection(str, Enum):
    """Call direction."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class CallOutcome(str, Enum):
    """How a call ended, from the business' point of view."""

    JOB_BOOKED = "job_booked"
    QUOTE_REQUESTED = "quote_requested"
    NO_INTEREST = "no_interest"
    CALLBACK_REQUESTED = "callback_requested"
    VOICEMAIL = "voicemail"
    NO_ANSWER = "no_answer"


class CallLogModel(Base, UUIDMixin, CreatedAtMixin):
    """Call log ORM model."""

    __tablename__ = "call_logs"

    customer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    phone_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    direction: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=CallDirection.INBOUND.value,
        comment="inbound, outbound",
    )
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True, comment="Seconds")
    outcome: Mapped[str | None] = mapped_column(String(30), nullable=True, index=True)

    transcript: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    follow_up_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    follow_up_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    customer: Mapped["CustomerModel | None"] = relationship(
        back_populates="call_logs",
        lazy="selectin",
    )
