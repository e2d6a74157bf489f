"""Base Repository Pattern for Call Mate.

Provides generic CRUD operations with async SQLAlchemy support.
All specialized repositories inherit from BaseRepository.
"""
from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.core.exceptions import RecordNotFoundError
from callmate.db.base import Base

# Type variable for model classes
ModelT = TypeVar("ModelT", bound=Base)

DEFAULT_LIST_LIMIT = 100


class BaseRepository(Generic[ModelT]):
    """Generic base repository with async CRUD operations.

    Repositories only flush; the request-scoped session commits.

    Usage:
        class CustomerRepository(BaseRepository[CustomerModel]):
            resource_name = "Customer"

            def __init__(self, session: AsyncSession):
                super().__init__(CustomerModel, session)
    """

    #: Name used in "<resource> not found" errors
    resource_name: str = "Record"

    def __init__(self, model: type[ModelT], session: AsyncSession):
        """Initialize repository with model class and session.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """Get the current database session."""
        return self._session

    def _coerce_id(self, id: UUID | str) -> UUID | str:
        if isinstance(id, str):
            return UUID(id)
        return id

    # ========================================================================
    # Basic CRUD Operations
    # ========================================================================

    async def get(self, id: UUID | str) -> ModelT | None:
        """Get a single record by ID.

        Args:
            id: UUID or string primary key

        Returns:
            Model instance or None if not found (or the id is malformed)
        """
        try:
            key = self._coerce_id(id)
        except ValueError:
            return None

        stmt = select(self._model).where(self._model.id == key)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_raise(self, id: UUID | str) -> ModelT:
        """Get a single record by ID, raising if not found.

        Raises:
            RecordNotFoundError: If record not found
        """
        obj = await self.get(id)
        if obj is None:
            raise RecordNotFoundError(self.resource_name, str(id))
        return obj

    async def list_recent(self, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[ModelT]:
        """Newest records first."""
        stmt = select(self._model).order_by(self._model.created_at.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def list_for_customer(
        self,
        customer_id: UUID,
        *,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[ModelT]:
        """Newest records of one customer first."""
        stmt = (
            select(self._model)
            .where(self._model.customer_id == customer_id)
            .order_by(self._model.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def create(self, obj_in: ModelT) -> ModelT:
        """Create a new record.

        Args:
            obj_in: Model instance to create

        Returns:
            Created model instance with generated ID
        """
        self._session.add(obj_in)
        await self._session.flush()
        await self._session.refresh(obj_in)
        return obj_in

    async def update(self, id: UUID | str, obj_in: dict[str, Any]) -> ModelT:
        """Merge the supplied fields into a record.

        Args:
            id: UUID or string primary key
            obj_in: Dictionary of fields to update

        Returns:
            Updated model instance

        Raises:
            RecordNotFoundError: If record not found
        """
        db_obj = await self.get_or_raise(id)
        return await self.apply(db_obj, obj_in)

    async def apply(self, db_obj: ModelT, obj_in: dict[str, Any]) -> ModelT:
        """Set fields on an already loaded record and flush."""
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await self._session.flush()
        await self._session.refresh(db_obj)
        return db_obj

    async def delete(self, id: UUID | str) -> None:
        """Hard delete a record by ID.

        Raises:
            RecordNotFoundError: If record not found
        """
        db_obj = await self.get_or_raise(id)
        await self._session.delete(db_obj)
        await self._session.flush()

    # ========================================================================
    # Query Helpers
    # ========================================================================

    async def count(self) -> int:
        """Get total count of records."""
        stmt = select(func.count()).select_from(self._model)
        result = await self._session.execute(stmt)
        return result.scalar() or 0
