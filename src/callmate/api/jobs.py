"""Job Endpoints.

Provides API endpoints for service jobs and the schedule.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import AuthenticatedUser, get_current_user
from callmate.api.schemas import (
    DEFAULT_LIST_LIMIT,
    HHMM,
    MAX_LIST_LIMIT,
    CamelModel,
    Money,
    PatchModel,
    UTCDateTime,
    to_utc,
)
from callmate.billing.numbering import job_numbers
from callmate.core.clock import utcnow
from callmate.core.log import get_logger
from callmate.db.models.jobs import JobModel, JobStatus
from callmate.db.repositories import JobRepository
from callmate.db.session import get_db

log = get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


# ============================================================================
# Pydantic Schemas
# ============================================================================

class JobCreate(CamelModel):
    """Schema for creating a job."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    address: str | None = None
    customer_id: UUID | None = None
    assigned_technician_id: str | None = None
    status: JobStatus = JobStatus.DRAFT
    scheduled_date: UTCDateTime | None = None
    start_time: HHMM | None = None
    end_time: HHMM | None = None
    estimated_duration: int | None = Field(default=None, ge=0)
    total_amount: Money | None = None
    notes: str | None = None


class JobUpdate(PatchModel):
    """Schema for updating a job."""

    required_fields = frozenset({"title", "status"})

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    address: str | None = None
    customer_id: UUID | None = None
    assigned_technician_id: str | None = None
    status: JobStatus | None = None
    scheduled_date: UTCDateTime | None = None
    start_time: HHMM | None = None
    end_time: HHMM | None = None
    estimated_duration: int | None = Field(default=None, ge=0)
    total_amount: Money | None = None
    notes: str | None = None


class JobNote(CamelModel):
    """A note appended to a job."""

    note: str = Field(min_length=1)


class Job(CamelModel):
    """Job schema for API responses."""

    id: UUID
    job_number: str
    title: str
    description: str | None = None
    address: str | None = None
    customer_id: UUID | None = None
    customer_name: str | None = None
    assigned_technician_id: str | None = None
    status: str
    scheduled_date: UTCDateTime | None = None
    start_time: str | None = None
    end_time: str | None = None
    estimated_duration: int | None = None
    total_amount: Decimal | None = None
    notes: str | None = None
    created_at: UTCDateTime | None = None
    updated_at: UTCDateTime | None = None

    @classmethod
    def from_model(cls, model: JobModel) -> "Job":
        """Create schema from ORM model."""
        return cls(
            id=model.id,
            job_number=model.job_number,
            title=model.title,
            description=model.description,
            address=model.address,
            customer_id=model.customer_id,
            customer_name=model.customer.full_name if model.customer else None,
            assigned_technician_id=model.assigned_technician_id,
            status=model.status,
            scheduled_date=model.scheduled_date,
            start_time=model.start_time,
            end_time=model.end_time,
            estimated_duration=model.estimated_duration,
            total_amount=model.total_amount,
            notes=model.notes,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


def _job_values(values: dict) -> dict:
    if values.get("status") is not None:
        values["status"] = JobStatus(values["status"]).value
    return values


def append_note(existing: str | None, note: str, author: str | None, now: datetime) -> str:
    """Add a timestamped line to a job's notes."""
    stamp = now.strftime("%Y-%m-%d %H:%M UTC")
    line = f"[{stamp}] {author}: {note.strip()}" if author else f"[{stamp}] {note.strip()}"
    return f"{existing.rstrip()}\n{line}" if existing else line


# ============================================================================
# Dependencies
# ============================================================================

async def get_job_repository(
    session: Annotated[AsyncSession, Depends(get_db)]
) -> JobRepository:
    """Get job repository instance."""
    return JobRepository(session)


JobRepo = Annotated[JobRepository, Depends(get_job_repository)]


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/jobs", response_model=list[Job])
async def list_jobs(
    repo: JobRepo,
    status_filter: Annotated[JobStatus | None, Query(alias="status")] = None,
    technician_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: Annotated[int, Query(ge=1, le=MAX_LIST_LIMIT)] = DEFAULT_LIST_LIMIT,
) -> list[Job]:
    """List jobs.

    Args:
        status: Only jobs in this status
        technician_id: Only jobs assigned to this user
        start: Scheduled at or after (ISO datetime)
        end: Scheduled before (ISO datetime)
    """
    jobs = await repo.search(
        status=status_filter.value if status_filter else None,
        technician_id=technician_id,
        start=to_utc(start),
        end=to_utc(end),
        limit=limit,
    )
    return [Job.from_model(j) for j in jobs]


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(job_id: UUID, repo: JobRepo) -> Job:
    """Get a single job."""
    return Job.from_model(await repo.get_or_raise(job_id))


@router.post("/jobs", response_model=Job, status_code=status.HTTP_201_CREATED)
async def create_job(body: JobCreate, repo: JobRepo) -> Job:
    """Create a job with a generated job number."""
    values = _job_values(body.model_dump())
    job = await repo.create(JobModel(job_number=job_numbers.next(), **values))
    log.info("Job created", job_number=job.job_number, status=job.status)
    return Job.from_model(job)


@router.patch("/jobs/{job_id}", response_model=Job)
async def update_job(job_id: UUID, body: JobUpdate, repo: JobRepo) -> Job:
    """Merge the supplied fields into a job."""
    values = _job_values(body.changes())
    return Job.from_model(await repo.update(job_id, values))


@router.delete("/jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(job_id: UUID, repo: JobRepo) -> Response:
    """Delete a job."""
    await repo.delete(job_id)
    log.info("Job deleted", job_id=str(job_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/jobs/{job_id}/notes", response_model=Job)
async def add_job_note(
    job_id: UUID,
    body: JobNote,
    repo: JobRepo,
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
) -> Job:
    """Append a timestamped note to a job."""
    job = await repo.get_or_raise(job_id)
    author = " ".join(p for p in (user.first_name, user.last_name) if p) or user.email or user.id
    notes = append_note(job.notes, body.note, author, utcnow())
    return Job.from_model(await repo.apply(job, {"notes": notes}))
