"""Customer and User repositories."""
from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.db.models.crm import CustomerModel, UserModel, UserRole
from callmate.db.repositories.base import DEFAULT_LIST_LIMIT, BaseRepository


class CustomerRepository(BaseRepository[CustomerModel]):
    """Repository for customer records."""

    resource_name = "Customer"

    def __init__(self, session: AsyncSession):
        super().__init__(CustomerModel, session)

    async def search(self, term: str, *, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[CustomerModel]:
        """Case-insensitive match on name, email or phone."""
        pattern = f"%{term.strip()}%"
        stmt = (
            select(self._model)
            .where(
                or_(
                    self._model.first_name.ilike(pattern),
                    self._model.last_name.ilike(pattern),
                    self._model.email.ilike(pattern),
                    self._model.phone.ilike(pattern),
                )
            )
            .order_by(self._model.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def find_by_phone(self, phone: str) -> CustomerModel | None:
        """First customer with this exact phone number."""
        stmt = select(self._model).where(self._model.phone == phone).limit(1)
        result = await self._session.execute(stmt)
        return result.scalars().first()


# Token claims copied into the local users table
_CLAIM_FIELDS = ("email", "first_name", "last_name", "profile_image_url", "role")


class UserRepository(BaseRepository[UserModel]):
    """Repository for staff/technician records.

    User ids are auth-provider subject strings, not UUIDs.
    """

    resource_name = "User"

    def __init__(self, session: AsyncSession):
        super().__init__(UserModel, session)

    def _coerce_id(self, id: Any) -> str:
        return str(id)

    async def list_all(self, *, role: str | None = None) -> Sequence[UserModel]:
        """Users ordered by name, optionally limited to one role."""
        stmt = select(self._model)
        if role:
            stmt = stmt.where(self._model.role == role)
        stmt = stmt.order_by(self._model.last_name, self._model.first_name)
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def upsert_from_claims(self, subject: str, claims: dict[str, Any]) -> UserModel:
        """Insert or refresh the local copy of an authenticated user.

        Args:
            subject: Token ``sub`` claim
            claims: Decoded token payload

        Returns:
            The stored user
        """
        values = {field: claims[field] for field in _CLAIM_FIELDS if claims.get(field) is not None}
        if values.get("role") not in {role.value for role in UserRole}:
            values.pop("role", None)

        user = await self.get(subject)
        if user is None:
            return await self.create(UserModel(id=subject, **values))
        return await self.apply(user, values)
