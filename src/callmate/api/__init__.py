"""API routers and authentication."""

from callmate.api.auth import (
    AuthenticatedUser,
    TokenPayload,
    create_access_token,
    decode_token,
    get_current_user,
)

__all__ = [
    "AuthenticatedUser",
    "TokenPayload",
    "create_access_token",
    "decode_token",
    "get_current_user",
]
