"""CRM ORM Models.

Contains the people the business deals with:
- UserModel: staff and technicians, mirrored from the external auth provider
- CustomerModel: customers referenced by jobs, quotes, invoices and calls
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from callmate.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from callmate.db.models.billing import InvoiceModel, QuoteModel
    from callmate.db.models.calls import CallLogModel
    from callmate.db.models.jobs import JobModel


class UserRole(str, Enum):
    """Staff roles."""

    ADMIN = "admin"
    TECHNICIAN = "technician"
    STAFF = "staff"


class UserModel(Base, TimestampMixin):
    """Staff/technician record.

    Identity lives in the external auth provider; the primary key is the
    token subject so the local row can be upserted from token claims.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Auth provider subject id",
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.ADMIN.value,
        comment="admin, technician, staff",
    )

    assigned_jobs: Mapped[list["JobModel"]] = relationship(
        back_populates="assigned_technician",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class CustomerModel(Base, UUIDMixin, TimestampMixin):
    """Customer ORM model.

    Aggregate root for jobs, quotes, invoices and call logs. Deleting a
    customer leaves those rows in place with ``customer_id`` cleared.
    """

    __tablename__ = "customers"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # The database clears customer_id (ON DELETE SET NULL); unloaded
    # children are never fetched just to be detached
    jobs: Mapped[list["JobModel"]] = relationship(back_populates="customer", passive_deletes=True)
    quotes: Mapped[list["QuoteModel"]] = relationship(back_populates="customer", passive_deletes=True)
    invoices: Mapped[list["InvoiceModel"]] = relationship(back_populates="customer", passive_deletes=True)
    call_logs: Mapped[list["CallLogModel"]] = relationship(back_populates="customer", passive_deletes=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
