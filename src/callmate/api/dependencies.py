"""Dependency Injection for Call Mate.

Provides FastAPI dependency functions for the external collaborators.
Each client is created once per process; tests swap them through
``app.dependency_overrides``.

Usage:
    from callmate.api.dependencies import get_llm_client

    @router.post("/endpoint")
    async def handler(llm: LLMClient = Depends(get_llm_client)):
        ...
"""

from __future__ import annotations

import threading

from callmate.integrations.llm import LLMClient
from callmate.integrations.payments import PaymentsClient


# =============================================================================
# Thread-Safe Singleton Locks
# =============================================================================

_llm_lock = threading.Lock()
_payments_lock = threading.Lock()

_llm_instance: LLMClient | None = None
_payments_instance: PaymentsClient | None = None


def get_llm_client() -> LLMClient:
    """Get the LLM completion client.

    Thread-safe via double-checked locking pattern.
    """
    global _llm_instance

    if _llm_instance is None:
        with _llm_lock:
            if _llm_instance is None:
                _llm_instance = LLMClient.from_settings()

    return _llm_instance


def get_payments_client() -> PaymentsClient:
    """Get the payment provider client.

    Thread-safe via double-checked locking pattern.
    """
    global _payments_instance

    if _payments_instance is None:
        with _payments_lock:
            if _payments_instance is None:
                _payments_instance = PaymentsClient.from_settings()

    return _payments_instance


async def close_clients() -> None:
    """Close the HTTP clients (application shutdown)."""
    global _llm_instance, _payments_instance

    if _llm_instance is not None:
        await _llm_instance.close()
        _llm_instance = None
    if _payments_instance is not None:
        await _payments_instance.close()
        _payments_instance = None
