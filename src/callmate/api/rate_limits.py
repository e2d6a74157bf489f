"""Rate limiting configuration for API endpoints.

Only the unauthenticated telephony webhook is limited; everything else
sits behind bearer auth.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address


# Rate limiter instance - shared across the application
limiter = Limiter(key_func=get_remote_address)


class RateLimits:
    """Rate limit constants for different endpoint types."""

    # Inbound call webhook (each request costs an LLM completion)
    WEBHOOK = "30/minute"

    # Health checks (allow frequent polling)
    HEALTH = "300/minute"
