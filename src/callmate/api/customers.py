"""Customer Endpoints.

CRUD for customers plus the per-customer document and call lists.
"""
from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import get_current_user
from callmate.api.call_logs import CallLog
from callmate.api.invoices import Invoice
from callmate.api.jobs import Job
from callmate.api.quotes import Quote
from callmate.api.schemas import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    CamelModel,
    PatchModel,
    UTCDateTime,
)
from callmate.core.log import get_logger
from callmate.db.models.crm import CustomerModel
from callmate.db.repositories import (
    CallLogRepository,
    CustomerRepository,
    InvoiceRepository,
    JobRepository,
    QuoteRepository,
)
from callmate.db.session import get_db

log = get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


# ============================================================================
# Pydantic Schemas
# ============================================================================

class CustomerCreate(CamelModel):
    """Schema for creating a customer."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    notes: str | None = None


class CustomerUpdate(PatchModel):
    """Schema for updating a customer."""

    required_fields = frozenset({"first_name", "last_name"})

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    notes: str | None = None


class Customer(CamelModel):
    """Customer schema for API responses."""

    id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    notes: str | None = None
    created_at: UTCDateTime | None = None
    updated_at: UTCDateTime | None = None

    @classmethod
    def from_model(cls, model: CustomerModel) -> "Customer":
        """Create schema from ORM model."""
        return cls.model_validate(model)


# ============================================================================
# Dependencies
# ============================================================================

async def get_customer_repository(
    session: Annotated[AsyncSession, Depends(get_db)]
) -> CustomerRepository:
    """Get customer repository instance."""
    return CustomerRepository(session)


CustomerRepo = Annotated[CustomerRepository, Depends(get_customer_repository)]
ListLimit = Annotated[int, Query(ge=1, le=MAX_LIST_LIMIT)]


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/customers", response_model=list[Customer])
async def list_customers(
    repo: CustomerRepo,
    search: str | None = None,
    limit: ListLimit = DEFAULT_LIST_LIMIT,
) -> list[Customer]:
    """List customers newest first, optionally filtered by a search term."""
    if search:
        customers = await repo.search(search, limit=limit)
    else:
        customers = await repo.list_recent(limit=limit)
    return [Customer.from_model(c) for c in customers]


@router.get("/customers/{customer_id}", response_model=Customer)
async def get_customer(customer_id: UUID, repo: CustomerRepo) -> Customer:
    """Get a single customer."""
    return Customer.from_model(await repo.get_or_raise(customer_id))


@router.post("/customers", response_model=Customer, status_code=status.HTTP_201_CREATED)
async def create_customer(body: CustomerCreate, repo: CustomerRepo) -> Customer:
    """Create a customer."""
    customer = await repo.create(CustomerModel(**body.model_dump()))
    log.info("Customer created", customer_id=str(customer.id))
    return Customer.from_model(customer)


@router.patch("/customers/{customer_id}", response_model=Customer)
async def update_customer(
    customer_id: UUID,
    body: CustomerUpdate,
    repo: CustomerRepo,
) -> Customer:
    """Merge the supplied fields into a customer."""
    return Customer.from_model(await repo.update(customer_id, body.changes()))


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: UUID, repo: CustomerRepo) -> Response:
    """Delete a customer. Their jobs, quotes, invoices and calls are kept."""
    await repo.delete(customer_id)
    log.info("Customer deleted", customer_id=str(customer_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Per-customer lists
# ============================================================================

@router.get("/customers/{customer_id}/jobs", response_model=list[Job])
async def list_customer_jobs(
    customer_id: UUID,
    repo: CustomerRepo,
    limit: ListLimit = DEFAULT_LIST_LIMIT,
) -> list[Job]:
    await repo.get_or_raise(customer_id)
    jobs = await JobRepository(repo.session).list_for_customer(customer_id, limit=limit)
    return [Job.from_model(j) for j in jobs]


@router.get("/customers/{customer_id}/quotes", response_model=list[Quote])
async def list_customer_quotes(
    customer_id: UUID,
    repo: CustomerRepo,
    limit: ListLimit = DEFAULT_LIST_LIMIT,
) -> list[Quote]:
    await repo.get_or_raise(customer_id)
    quotes = await QuoteRepository(repo.session).list_for_customer(customer_id, limit=limit)
    return [Quote.from_model(q) for q in quotes]


@router.get("/customers/{customer_id}/invoices", response_model=list[Invoice])
async def list_customer_invoices(
    customer_id: UUID,
    repo: CustomerRepo,
    limit: ListLimit = DEFAULT_LIST_LIMIT,
) -> list[Invoice]:
    await repo.get_or_raise(customer_id)
    invoices = await InvoiceRepository(repo.session).list_for_customer(customer_id, limit=limit)
    return [Invoice.from_model(i) for i in invoices]


@router.get("/customers/{customer_id}/call-logs", response_model=list[CallLog])
async def list_customer_call_logs(
    customer_id: UUID,
    repo: CustomerRepo,
    limit: ListLimit = DEFAULT_LIST_LIMIT,
) -> list[CallLog]:
    await repo.get_or_raise(customer_id)
    calls = await CallLogRepository(repo.session).list_for_customer(customer_id, limit=limit)
    return [CallLog.from_model(c) for c in calls]
