"""Job ORM Model.

A job is a scheduled piece of field work for a customer, optionally
assigned to a technician.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from callmate.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from callmate.db.models.crm import CustomerModel, UserModel


class JobStatus(str, Enum):
    """Job status values."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_JOB_STATUSES = (JobStatus.SCHEDULED.value, JobStatus.IN_PROGRESS.value)


class JobModel(Base, UUIDMixin, TimestampMixin):
    """Service job ORM model."""

    __tablename__ = "jobs"

    job_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Human-readable job number (JOB-<digits>)",
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        default=JobStatus.DRAFT.value,
        comment="draft, scheduled, in_progress, completed, cancelled",
    )

    # Schedule window
    scheduled_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True, comment="HH:MM")
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True, comment="HH:MM")
    estimated_duration: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Minutes",
    )

    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    customer_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assigned_technician_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    customer: Mapped["CustomerModel | None"] = relationship(
        back_populates="jobs",
        lazy="selectin",
    )
    assigned_technician: Mapped["UserModel | None"] = relationship(
        back_populates="assigned_jobs",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_jobs_status_date", "status", "scheduled_date"),
    )
