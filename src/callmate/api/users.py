"""User Endpoints.

Users are mirrored from bearer token claims; there is no local sign-up.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from callmate.api.auth import AuthenticatedUser, get_current_user
from callmate.api.schemas import CamelModel, UTCDateTime
from callmate.db.models.crm import UserModel, UserRole
from callmate.db.repositories import UserRepository
from callmate.db.session import get_db

router = APIRouter()


class User(CamelModel):
    """User schema for API responses."""

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    role: str
    created_at: UTCDateTime | None = None

    @classmethod
    def from_model(cls, model: UserModel) -> "User":
        return cls.model_validate(model)


async def get_user_repository(
    session: Annotated[AsyncSession, Depends(get_db)]
) -> UserRepository:
    """Get user repository instance."""
    return UserRepository(session)


Users = Annotated[UserRepository, Depends(get_user_repository)]


@router.get("/auth/user", response_model=User)
async def current_user(
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    repo: Users,
) -> User:
    """The signed-in user, refreshed from the token claims."""
    return User.from_model(await repo.upsert_from_claims(user.id, user.claims()))


@router.get("/users", response_model=list[User], dependencies=[Depends(get_current_user)])
async def list_users(repo: Users, role: UserRole | None = None) -> list[User]:
    """Staff and technicians, by name."""
    users = await repo.list_all(role=role.value if role else None)
    return [User.from_model(u) for u in users]
