"""JWT Authentication for API endpoints.

Identity is issued by the external auth provider; this service verifies
bearer tokens signed with the shared secret. The AI call webhook is the
only unauthenticated business endpoint.
"""

from __future__ import annotations

import warnings
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict

from callmate.config import get_settings


# HTTP Bearer security scheme
security_required = HTTPBearer(auto_error=False)

_DEV_SECRET = "INSECURE-DEV-SECRET-DO-NOT-USE-IN-PRODUCTION"


class TokenPayload(BaseModel):
    """JWT token payload."""

    model_config = ConfigDict(extra="allow")

    sub: str  # Auth provider subject id
    exp: datetime
    iat: datetime | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    role: str | None = None


class AuthenticatedUser(BaseModel):
    """Authenticated user information taken from the token."""

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    role: str | None = None

    def claims(self) -> dict[str, Any]:
        """Profile claims to mirror into the users table."""
        return self.model_dump(exclude={"id"}, exclude_none=True)


def get_secret_key() -> str:
    """Get JWT secret key from settings.

    Raises:
        ValueError: If no secret key is configured in production environment.
    """
    settings = get_settings()
    secret = settings.auth.jwt_secret_key

    if not secret:
        if settings.is_production:
            raise ValueError(
                "JWT secret key must be configured in production! "
                "Set CALLMATE_AUTH__JWT_SECRET_KEY environment variable."
            )
        warnings.warn(
            "Using insecure default JWT secret. "
            "Set CALLMATE_AUTH__JWT_SECRET_KEY for production!",
            RuntimeWarning,
            stacklevel=2,
        )
        secret = _DEV_SECRET

    return secret


def get_algorithm() -> str:
    """Get JWT algorithm."""
    return get_settings().auth.jwt_algorithm


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    **claims: Any,
) -> str:
    """Create a signed access token.

    Used by tests and local tooling; production tokens come from the
    auth provider.

    Args:
        subject: The user id for the token
        expires_delta: Optional custom expiration time
        **claims: Extra profile claims (email, first_name, role, ...)

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()

    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.auth.jwt_expiry_minutes)

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "exp": now + expires_delta,
        "iat": now,
    }
    payload.update({key: value for key, value in claims.items() if value is not None})

    return jwt.encode(payload, get_secret_key(), algorithm=get_algorithm())


def decode_token(token: str) -> TokenPayload:
    """Decode and validate a JWT token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            get_secret_key(),
            algorithms=[get_algorithm()],
        )
        return TokenPayload(**payload)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(security_required),
) -> AuthenticatedUser:
    """Dependency to get the current authenticated user.

    Usage:
        @router.get("/protected")
        async def protected_endpoint(
            user: AuthenticatedUser = Depends(get_current_user)
        ):
            return {"user_id": user.id}
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)

    return AuthenticatedUser(
        id=payload.sub,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        profile_image_url=payload.profile_image_url,
        role=payload.role,
    )
